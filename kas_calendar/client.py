"""Read-only collaborators feeding the calendar.

The calendar needs two inputs per resolution pass: the schedule windows and
the current member's payments. This module provides HTTP implementations
backed by ``requests``, a JSON file implementation for offline use, and
:func:`load_snapshot`, which fetches both concurrently and falls back to
empty data when a source fails.

Credentials are never read from global state here. Each HTTP collaborator
receives a token provider: any callable returning the bearer token, or
``None`` when nobody is signed in.
"""

from __future__ import annotations

import json
import logging
import os
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, List, Optional

import requests

from .data_models import PaymentRecord, ScheduleWindow, Snapshot
from .ledger import parse_payments, parse_schedules

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class SnapshotFetchError(Exception):
    """A schedule or payment source could not be read."""


def static_token(token: Optional[str]) -> TokenProvider:
    return lambda: token or None


def env_token(name: str = "KAS_AUTH_TOKEN") -> TokenProvider:
    return lambda: os.environ.get(name) or None


def _payload_items(body: Any) -> List[Any]:
    # The API wraps lists as {"data": [...]}.
    if isinstance(body, dict):
        body = body.get("data")
    if body is None:
        return []
    if not isinstance(body, list):
        raise SnapshotFetchError(f"Expected a list of records, got {type(body).__name__}")
    return body


class _ApiResource:
    path = ""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self._session = session or requests.Session()
        self._timeout = timeout

    def _fetch_items(self) -> List[Any]:
        token = self.token_provider()
        if not token:
            logger.debug("No auth token; skipping %s", self.path)
            return []
        url = f"{self._base_url}/{self.path}"
        try:
            resp = self._session.get(
                url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            raise SnapshotFetchError(f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            raise SnapshotFetchError(f"GET {url} returned invalid JSON") from exc
        return _payload_items(body)


class ScheduleDirectory(_ApiResource):
    """Schedule windows from ``GET {base_url}/schedules``, in backend order."""

    path = "schedules"

    def list_schedules(self) -> List[ScheduleWindow]:
        return parse_schedules(self._fetch_items())


class PaymentLedger(_ApiResource):
    """The signed-in member's payments from ``GET {base_url}/payments``."""

    path = "payments"

    def list_payments(self) -> List[PaymentRecord]:
        return parse_payments(self._fetch_items())


class JsonFileSource:
    """Schedule directory and payment ledger read from exported JSON files.

    Either path may be omitted, in which case that side is empty. Files use
    the same shape as the API: a list, or ``{"data": [...]}``.
    """

    def __init__(self, schedules_path: Optional[Path] = None, payments_path: Optional[Path] = None) -> None:
        self.schedules_path = schedules_path
        self.payments_path = payments_path

    @staticmethod
    def _read(path: Optional[Path]) -> List[Any]:
        if path is None:
            return []
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                return _payload_items(json.load(f))
        except (OSError, ValueError) as exc:
            raise SnapshotFetchError(f"Cannot read {path}: {exc}") from exc

    def list_schedules(self) -> List[ScheduleWindow]:
        return parse_schedules(self._read(self.schedules_path))

    def list_payments(self) -> List[PaymentRecord]:
        return parse_payments(self._read(self.payments_path))


def load_snapshot(directory, ledger, executor: Optional[Executor] = None) -> Snapshot:
    """Fetch windows and payments concurrently and wait for both.

    A source raising ``SnapshotFetchError`` contributes an empty list; the
    failure is logged and not retried. Other exceptions propagate.
    """
    own_executor = executor is None
    pool = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="kas-snapshot")
    try:
        windows_future = pool.submit(directory.list_schedules)
        payments_future = pool.submit(ledger.list_payments)
        windows = _result_or_empty(windows_future, "schedules")
        payments = _result_or_empty(payments_future, "payments")
    finally:
        if own_executor:
            pool.shutdown(wait=True)
    logger.debug("Loaded snapshot: %d windows, %d payments", len(windows), len(payments))
    return Snapshot(windows=windows, payments=payments)


def _result_or_empty(future, what: str) -> list:
    try:
        return list(future.result())
    except SnapshotFetchError as exc:
        logger.warning("Could not load %s, continuing without them: %s", what, exc)
        return []
