"""Conversion of backend payloads into calendar models.

The schedule directory and the payment ledger both answer with lists of
plain dicts. This module is the only place that looks at their raw fields:
dates are parsed, pay days are checked and payment statuses are normalised
so the engine only ever sees ``ScheduleWindow`` and ``PaymentRecord``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .data_models import PaymentRecord, PaymentStatus, ScheduleWindow
from .utils import DEFAULT_PAY_DAY, parse_iso_date

logger = logging.getLogger(__name__)


def _parse_pay_day(raw: Any, position: int) -> int:
    # Windows saved before pay days were configurable have no value; they pay on Friday.
    if not isinstance(raw, int) or isinstance(raw, bool):
        return DEFAULT_PAY_DAY
    if not 0 <= raw <= 6:
        logger.warning(
            "Schedule %d has pay_day_of_week=%r outside 0-6; using %d",
            position, raw, DEFAULT_PAY_DAY,
        )
        return DEFAULT_PAY_DAY
    return raw


def parse_schedule(item: Mapping[str, Any], position: int = 0) -> Optional[ScheduleWindow]:
    """Convert one schedule payload, or return ``None`` if it must be skipped."""
    try:
        start = parse_iso_date(item.get("start_date"))
    except ValueError:
        logger.warning(
            "Skipping schedule %d: unparsable start_date %r",
            position, item.get("start_date"),
        )
        return None

    end: Optional[date] = None
    raw_end = item.get("end_date")
    if raw_end:
        try:
            end = parse_iso_date(raw_end)
        except ValueError:
            logger.warning(
                "Schedule %d has unparsable end_date %r; treating it as open-ended",
                position, raw_end,
            )

    return ScheduleWindow(
        start_date=start,
        end_date=end,
        pay_day_of_week=_parse_pay_day(item.get("pay_day_of_week"), position),
        label=item.get("label"),
    )


def parse_schedules(items: Iterable[Mapping[str, Any]]) -> List[ScheduleWindow]:
    """Convert schedule payloads, keeping their order and dropping malformed ones."""
    windows: List[ScheduleWindow] = []
    for position, item in enumerate(items):
        if not isinstance(item, Mapping):
            logger.warning("Skipping schedule %d: expected an object, got %r", position, item)
            continue
        window = parse_schedule(item, position)
        if window is not None:
            windows.append(window)
    return windows


def parse_payment(item: Mapping[str, Any]) -> PaymentRecord:
    due: Optional[date] = None
    raw_due = item.get("due_date")
    if raw_due:
        try:
            due = parse_iso_date(raw_due)
        except ValueError:
            logger.warning("Payment %r has unparsable due_date %r", item.get("id"), raw_due)
    raw_status = item.get("status") or ""
    return PaymentRecord(
        due_date=due,
        status=PaymentStatus.from_raw(raw_status),
        raw_status=str(raw_status),
        id=item.get("id"),
        amount=item.get("amount"),
    )


def parse_payments(items: Iterable[Mapping[str, Any]]) -> List[PaymentRecord]:
    """Convert payment payloads, dropping entries that are not objects."""
    records: List[PaymentRecord] = []
    for position, item in enumerate(items):
        if not isinstance(item, Mapping):
            logger.warning("Skipping payment %d: expected an object, got %r", position, item)
            continue
        records.append(parse_payment(item))
    return records


def payments_by_due_date(records: Iterable[PaymentRecord]) -> Dict[date, PaymentRecord]:
    """Group payments by due date for quick lookup.

    Records without a due date are left out. If several records share a due
    date, the last one in ledger order is kept.
    """
    mapping: Dict[date, PaymentRecord] = {}
    for record in records:
        if record.due_date is not None:
            mapping[record.due_date] = record
    return mapping
