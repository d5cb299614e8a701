"""Data models for the weekly dues calendar.

This module defines the entities the calendar works with: admin-defined
schedule windows, payment records read from the ledger, and the pay slots
derived from both. Payment statuses and slot states are enums so the rest of
the code never compares raw strings.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from .utils import DEFAULT_PAY_DAY


class PaymentStatus(Enum):
    PAID = "paid"
    PENDING = "pending"
    REJECTED = "rejected"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "PaymentStatus":
        """Normalise a ledger status string.

        The backend reports settled payments as ``approved`` while older rows
        and the dashboard use ``Lunas``; both mean paid. Matching is
        case-insensitive. Unknown or missing statuses are treated as pending,
        which is never shown as paid.
        """
        if not value:
            return cls.PENDING
        return _STATUS_ALIASES.get(str(value).strip().lower(), cls.PENDING)


_STATUS_ALIASES = {
    "approved": PaymentStatus.PAID,
    "lunas": PaymentStatus.PAID,
    "pending": PaymentStatus.PENDING,
    "rejected": PaymentStatus.REJECTED,
}


class SlotState(Enum):
    OUT_OF_SCHEDULE = "out-of-schedule"
    PAID = "paid"
    DUE_THIS_WEEK = "due-this-week"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class ScheduleWindow:
    """An admin-defined period with a fixed pay day.

    Attributes
    ----------
    start_date: date
        First day covered by the window (inclusive).
    end_date: Optional[date]
        Last day covered (inclusive). ``None`` means the window runs until the
        next window starts, or forever when it is the last one.
    pay_day_of_week: int
        Sunday-based weekday (0 = Sunday ... 6 = Saturday) on which dues are
        due inside this window.
    """

    start_date: date
    end_date: Optional[date] = None
    pay_day_of_week: int = DEFAULT_PAY_DAY
    label: Optional[str] = None


@dataclass(frozen=True)
class PaymentRecord:
    """A payment as reported by the ledger. ``id`` and ``amount`` are opaque."""

    due_date: Optional[date]
    status: PaymentStatus
    raw_status: str = ""
    id: Any = None
    amount: Any = None

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.PAID


@dataclass(frozen=True)
class PaySlot:
    """One selectable week in the calendar.

    Slots are recomputed on every resolution pass and never stored.
    """

    index: int
    pay_date: date
    label: str
    day_name: str
    in_schedule: bool
    state: SlotState
    linked_payment: Optional[PaymentRecord] = None

    @property
    def selectable(self) -> bool:
        return self.state is not SlotState.OUT_OF_SCHEDULE

    def to_dict(self) -> Dict[str, Any]:
        payment = self.linked_payment
        return {
            "index": self.index,
            "pay_date": self.pay_date.isoformat(),
            "label": self.label,
            "day_name": self.day_name,
            "in_schedule": self.in_schedule,
            "state": self.state.value,
            "payment_id": payment.id if payment else None,
            "payment_status": payment.raw_status if payment else None,
            "amount": payment.amount if payment else None,
        }


@dataclass(frozen=True)
class Snapshot:
    """Schedule windows and payments fetched in one resolution pass."""

    windows: List[ScheduleWindow] = field(default_factory=list)
    payments: List[PaymentRecord] = field(default_factory=list)
