"""Stateful weekly calendar view.

``WeeklyCalendar`` holds what a dashboard needs to show the calendar: the
current slots, the selected pay date and the visible page. Every resolution
pass rebuilds the slots from a fresh snapshot; nothing is updated in place.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Callable, List, Optional, Tuple

from .client import TokenProvider, load_snapshot
from .data_models import PaySlot
from .engine import build_slots, find_slot, select_slot, this_pay_date
from .ledger import payments_by_due_date
from .schedule_index import ScheduleWindowIndex

logger = logging.getLogger(__name__)

SelectCallback = Callable[[str, date], None]

# Pages open this many slots before the current week when possible.
LEAD_SLOTS = 2


class WeeklyCalendar:
    def __init__(
        self,
        directory,
        ledger,
        weeks: int = 12,
        page_size: int = 12,
        locale: str = "en",
        on_select: Optional[SelectCallback] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        if weeks <= 0:
            raise ValueError("Slot count must be positive")
        if page_size <= 0:
            raise ValueError("Page size must be positive")
        self.directory = directory
        self.ledger = ledger
        self.weeks = weeks
        self.page_size = page_size
        self.locale = locale
        self.on_select = on_select
        self._clock = clock or date.today
        self.slots: List[PaySlot] = []
        self.selected_date: Optional[date] = None
        self.page = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Dispose the calendar; a pass still in flight will not store its result."""
        self._closed = True

    def refresh(self) -> List[PaySlot]:
        """Run one resolution pass and return the new slots."""
        today = self._clock()
        snapshot = load_snapshot(self.directory, self.ledger)
        index = ScheduleWindowIndex(snapshot.windows)
        slots = build_slots(
            today, self.weeks, index, payments_by_due_date(snapshot.payments), self.locale
        )
        if self._closed:
            logger.debug("Calendar closed during refresh; discarding %d slots", len(slots))
            return slots

        self.slots = slots
        current = find_slot(slots, this_pay_date(today, index))
        if current is not None and current.in_schedule:
            self.page = max(0, current.index - LEAD_SLOTS) // self.page_size
            self._set_selection(current)
        else:
            self.page = 0
        return slots

    def set_weeks(self, weeks: int) -> None:
        if weeks <= 0:
            raise ValueError("Slot count must be positive")
        if weeks != self.weeks:
            self.weeks = weeks
            self.refresh()

    def set_token_provider(self, token_provider: TokenProvider) -> None:
        """Point both collaborators at a new session and rebuild the slots."""
        changed = False
        for source in (self.directory, self.ledger):
            if hasattr(source, "token_provider") and source.token_provider is not token_provider:
                source.token_provider = token_provider
                changed = True
        if changed:
            self.refresh()

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.slots) / self.page_size))

    def go_page(self, page: int) -> int:
        self.page = max(0, min(self.total_pages - 1, page))
        return self.page

    @property
    def current_page_slots(self) -> List[PaySlot]:
        start = self.page * self.page_size
        return self.slots[start:start + self.page_size]

    @property
    def selected_slot(self) -> Optional[PaySlot]:
        if self.selected_date is None:
            return None
        return find_slot(self.slots, self.selected_date)

    def select(self, pay_date: date) -> Tuple[str, date]:
        """Select the slot on ``pay_date``; raises ``SlotSelectionError`` if not allowed."""
        label, due_date = select_slot(self.slots, pay_date)
        slot = find_slot(self.slots, pay_date)
        self.go_page(slot.index // self.page_size)
        self._set_selection(slot)
        return label, due_date

    def _set_selection(self, slot: PaySlot) -> None:
        self.selected_date = slot.pay_date
        if self.on_select is not None:
            self.on_select(slot.label, slot.pay_date)
