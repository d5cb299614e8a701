"""Database-backed schedule and payment snapshots.

This module keeps a local copy of schedule windows and payments so the
calendar can run without the backend API (CLI demos, the bundled web app,
tests). It defaults to SQLite but accepts any SQLAlchemy-compatible URL.
``StoreDirectory`` and ``StoreLedger`` expose the store through the same
read interface as the HTTP collaborators.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Column, Date, DateTime, Integer, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .client import SnapshotFetchError, TokenProvider
from .data_models import PaymentRecord, PaymentStatus, ScheduleWindow
from .utils import DEFAULT_PAY_DAY

Base = declarative_base()

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


class ScheduleWindowModel(Base):
    __tablename__ = "schedule_windows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    label = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    pay_day_of_week = Column(Integer, nullable=False, default=DEFAULT_PAY_DAY)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_token = Column(String(255), index=True, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(String(32), nullable=False, default="pending")
    amount = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SnapshotStore:
    """Schedule windows and per-member payments stored in a SQL database."""

    def __init__(self, url: str) -> None:
        if url in _MEMORY_URLS:
            # one shared connection, otherwise each thread sees its own empty database
            self._engine = create_engine(
                url,
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def list_schedules(self) -> List[ScheduleWindow]:
        with self._session_factory() as session:
            rows = session.execute(
                select(ScheduleWindowModel).order_by(ScheduleWindowModel.id.asc())
            ).scalars()
            return [self._to_window(row) for row in rows]

    def list_payments(self, user_token: Optional[str]) -> List[PaymentRecord]:
        if not user_token:
            return []
        with self._session_factory() as session:
            rows = session.execute(
                select(PaymentModel)
                .where(PaymentModel.user_token == user_token)
                .order_by(PaymentModel.id.asc())
            ).scalars()
            return [self._to_payment(row) for row in rows]

    def add_schedule(
        self,
        start_date: date,
        end_date: Optional[date] = None,
        pay_day_of_week: int = DEFAULT_PAY_DAY,
        label: Optional[str] = None,
    ) -> int:
        """Append a window; windows are listed in insertion order."""
        row = ScheduleWindowModel(
            label=label,
            start_date=start_date,
            end_date=end_date,
            pay_day_of_week=pay_day_of_week,
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            return row.id

    def add_payment(
        self,
        user_token: str,
        due_date: Optional[date],
        status: str,
        amount: Optional[int] = None,
    ) -> int:
        row = PaymentModel(user_token=user_token, due_date=due_date, status=status, amount=amount)
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            return row.id

    def clear(self) -> None:
        with self._session_factory() as session:
            session.execute(PaymentModel.__table__.delete())
            session.execute(ScheduleWindowModel.__table__.delete())
            session.commit()

    @staticmethod
    def _to_window(row: ScheduleWindowModel) -> ScheduleWindow:
        return ScheduleWindow(
            start_date=row.start_date,
            end_date=row.end_date,
            pay_day_of_week=row.pay_day_of_week,
            label=row.label,
        )

    @staticmethod
    def _to_payment(row: PaymentModel) -> PaymentRecord:
        return PaymentRecord(
            due_date=row.due_date,
            status=PaymentStatus.from_raw(row.status),
            raw_status=row.status,
            id=row.id,
            amount=row.amount,
        )


class StoreDirectory:
    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def list_schedules(self) -> List[ScheduleWindow]:
        try:
            return self.store.list_schedules()
        except SQLAlchemyError as exc:
            raise SnapshotFetchError(f"Cannot read schedules: {exc}") from exc


class StoreLedger:
    """Payments of the member identified by the token provider."""

    def __init__(self, store: SnapshotStore, token_provider: TokenProvider) -> None:
        self.store = store
        self.token_provider = token_provider

    def list_payments(self) -> List[PaymentRecord]:
        try:
            return self.store.list_payments(self.token_provider())
        except SQLAlchemyError as exc:
            raise SnapshotFetchError(f"Cannot read payments: {exc}") from exc


def create_store_from_env(url: Optional[str]) -> SnapshotStore:
    return SnapshotStore(url or "sqlite:///kas_calendar.sqlite3")
