"""Core resolution logic for the weekly dues calendar.

This module turns a schedule window index and a payment lookup into a
sequence of labelled pay slots centered on today. It has three parts:

* :func:`generate_pay_dates` produces the weekly dates, each aligned to the
  pay day of the window covering it;
* :func:`classify_slot` assigns a display state to one date;
* :func:`build_slots` / :func:`generate_slots` combine both into ``PaySlot``
  objects, and :func:`select_slot` validates a selection.

All functions are pure: the same inputs always give the same slots.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .data_models import PaymentRecord, PaySlot, ScheduleWindow, SlotState
from .ledger import payments_by_due_date
from .schedule_index import ScheduleWindowIndex
from .utils import align_to_weekday, day_name, relative_label, same_week, sunday_based_weekday

logger = logging.getLogger(__name__)


class SlotSelectionError(ValueError):
    """Raised when a slot cannot be selected (unknown date or out of schedule)."""


def _pay_day(window: Optional[ScheduleWindow], default_pay_day: int) -> int:
    return window.pay_day_of_week if window is not None else default_pay_day


def this_pay_date(today: date, index: ScheduleWindowIndex, default_pay_day: Optional[int] = None) -> date:
    """Return the pay date of the current week.

    This is ``today`` or the first later day (at most six days ahead) that
    falls on the pay day of the window covering today, or on the default pay
    day when no window covers it.
    """
    if default_pay_day is None:
        default_pay_day = index.default_pay_day
    active_pay_day = _pay_day(index.resolve(today), default_pay_day)
    diff = (active_pay_day - sunday_based_weekday(today) + 7) % 7
    return today + timedelta(days=diff)


def generate_pay_dates(
    today: date,
    count: int,
    index: ScheduleWindowIndex,
    default_pay_day: Optional[int] = None,
) -> List[date]:
    """Return ``count`` weekly pay dates centered on the current week.

    The current week's pay date sits at position ``count // 2``. Each other
    date starts as a multiple of seven days away from it and is then moved
    onto the pay day of the window covering it (falling back to the window
    covering today, then to ``default_pay_day``). Re-aligning per slot keeps
    dates on the right weekday when consecutive windows use different pay
    days, so the spacing is not always exactly seven days.

    Raises
    ------
    ValueError
        If ``count`` is not positive.
    """
    if count <= 0:
        raise ValueError("Slot count must be positive")
    if default_pay_day is None:
        default_pay_day = index.default_pay_day

    active_window = index.resolve(today)
    anchor = this_pay_date(today, index, default_pay_day)
    half = count // 2

    dates: List[date] = []
    for i in range(-half, count - half):
        base = anchor + timedelta(days=7 * i)
        window = index.resolve(base) or active_window
        dates.append(align_to_weekday(base, _pay_day(window, default_pay_day)))
    return dates


def classify_slot(
    pay_date: date,
    window: Optional[ScheduleWindow],
    today: date,
    payment_lookup: Mapping[date, PaymentRecord],
) -> SlotState:
    """Assign the display state of a pay date. The first matching rule wins."""
    if window is None:
        return SlotState.OUT_OF_SCHEDULE
    payment = payment_lookup.get(pay_date)
    if payment is not None and payment.is_paid:
        return SlotState.PAID
    if same_week(pay_date, today):
        return SlotState.DUE_THIS_WEEK
    # Unpaid future weeks share the overdue state with unpaid past weeks.
    if pay_date > today:
        return SlotState.OVERDUE
    return SlotState.OVERDUE


def build_slots(
    today: date,
    count: int,
    index: ScheduleWindowIndex,
    payment_lookup: Mapping[date, PaymentRecord],
    locale: str = "en",
) -> List[PaySlot]:
    """Generate and classify ``count`` pay slots around ``today``."""
    default_pay_day = index.default_pay_day
    pay_dates = generate_pay_dates(today, count, index, default_pay_day)
    half = count // 2

    slots: List[PaySlot] = []
    for idx, pay_date in enumerate(pay_dates):
        window = index.resolve(pay_date)
        slots.append(
            PaySlot(
                index=idx,
                pay_date=pay_date,
                label=relative_label(idx - half, locale),
                day_name=day_name(_pay_day(window, default_pay_day), locale),
                in_schedule=window is not None,
                state=classify_slot(pay_date, window, today, payment_lookup),
                linked_payment=payment_lookup.get(pay_date),
            )
        )
    logger.debug(
        "Built %d slots from %s to %s (%d in schedule)",
        len(slots), slots[0].pay_date, slots[-1].pay_date,
        sum(1 for s in slots if s.in_schedule),
    )
    return slots


def generate_slots(
    count: int,
    today: date,
    windows: Iterable[ScheduleWindow] = (),
    payments: Iterable[PaymentRecord] = (),
    locale: str = "en",
) -> List[PaySlot]:
    """Build pay slots from plain window and payment lists."""
    index = ScheduleWindowIndex(windows)
    lookup: Dict[date, PaymentRecord] = payments_by_due_date(payments)
    return build_slots(today, count, index, lookup, locale)


def find_slot(slots: Iterable[PaySlot], pay_date: date) -> Optional[PaySlot]:
    for slot in slots:
        if slot.pay_date == pay_date:
            return slot
    return None


def select_slot(slots: Iterable[PaySlot], pay_date: date) -> Tuple[str, date]:
    """Return ``(label, due_date)`` for the slot on ``pay_date``.

    Raises
    ------
    SlotSelectionError
        If no slot falls on ``pay_date`` or the slot is out of schedule.
    """
    slot = find_slot(slots, pay_date)
    if slot is None:
        raise SlotSelectionError(f"No pay slot on {pay_date.isoformat()}")
    if not slot.selectable:
        raise SlotSelectionError(
            f"Week of {pay_date.isoformat()} is not scheduled by an admin yet"
        )
    return slot.label, slot.pay_date
