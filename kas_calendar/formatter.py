"""Output helpers for the weekly dues calendar.

This module renders pay slots, selections and schedule checks as plain
tab-separated text for the terminal.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from .data_models import PaySlot, ScheduleWindow, SlotState
from .utils import day_name

STATE_MARKERS = {
    SlotState.PAID: "PAID",
    SlotState.DUE_THIS_WEEK: "DUE",
    SlotState.OVERDUE: "OVERDUE",
    SlotState.OUT_OF_SCHEDULE: "-",
}


def print_slots(slots: Iterable[PaySlot], selected: Optional[date] = None) -> None:
    """Print pay slots as a simple table.

    Parameters
    ----------
    slots: Iterable[PaySlot]
        The slots to print, usually one page.
    selected: date
        Pay date of the selected slot; its row is marked with ``*``.
    """
    headers = ["", "Index", "Label", "Date", "Day", "State", "Payment"]
    print("\t".join(headers))
    for slot in slots:
        payment = slot.linked_payment
        row = [
            "*" if selected is not None and slot.pay_date == selected else "",
            str(slot.index),
            slot.label,
            slot.pay_date.isoformat(),
            slot.day_name,
            STATE_MARKERS[slot.state],
            payment.raw_status if payment else "",
        ]
        print("\t".join(row))


def print_page_footer(page: int, total_pages: int) -> None:
    print(f"Page {page + 1} / {total_pages}")


def print_selection(label: str, due_date: date) -> None:
    print(f"Selected week : {label}")
    print(f"Due date      : {due_date.isoformat()}")


def print_schedule_report(
    windows: Sequence[ScheduleWindow],
    overlaps: List[Tuple[int, int]],
    misordered: List[int],
) -> None:
    """Print configured windows followed by any overlap or ordering problems."""
    print("Schedules")
    print("-" * 60)
    for i, w in enumerate(windows):
        end = w.end_date.isoformat() if w.end_date else "open"
        print(f"{i:3d}  {w.start_date.isoformat()} .. {end:10s}  {day_name(w.pay_day_of_week)}  {w.label or ''}")
    print("-" * 60)
    for i, j in overlaps:
        print(f"Overlap: windows {i} and {j} cover the same dates; window {i} wins")
    for i in misordered:
        print(f"Order: window {i} starts before window {i - 1}")
    if not overlaps and not misordered:
        print("No problems found")
