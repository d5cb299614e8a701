from datetime import date

import pytest

from conftest import TODAY, ListDirectory, ListLedger, paid
from kas_calendar.client import static_token
from kas_calendar.data_models import SlotState
from kas_calendar.engine import SlotSelectionError
from kas_calendar.store import SnapshotStore, StoreDirectory, StoreLedger
from kas_calendar.weekly_calendar import WeeklyCalendar


def make_calendar(windows, payments=(), **kwargs):
    selections = []
    calendar = WeeklyCalendar(
        ListDirectory(windows),
        ListLedger(payments),
        clock=lambda: TODAY,
        on_select=lambda label, due: selections.append((label, due)),
        **kwargs,
    )
    return calendar, selections


def test_refresh_auto_selects_current_week(friday_window):
    calendar, selections = make_calendar([friday_window])
    slots = calendar.refresh()
    assert len(slots) == 12
    assert calendar.selected_date == date(2026, 1, 23)
    assert selections == [("this week", date(2026, 1, 23))]
    assert calendar.page == 0
    assert calendar.total_pages == 1


def test_page_opens_two_slots_before_current_week(friday_window):
    calendar, _ = make_calendar([friday_window], weeks=30, page_size=12)
    calendar.refresh()
    assert calendar.total_pages == 3
    # current week is slot 15; the page starts at or before slot 13
    assert calendar.page == 1
    assert calendar.selected_slot.index == 15
    assert calendar.selected_slot in calendar.current_page_slots


def test_no_selection_when_current_week_unscheduled():
    calendar, selections = make_calendar([])
    calendar.refresh()
    assert calendar.selected_date is None
    assert calendar.selected_slot is None
    assert selections == []
    assert calendar.page == 0
    assert all(s.state is SlotState.OUT_OF_SCHEDULE for s in calendar.slots)


def test_go_page_clamps(friday_window):
    calendar, _ = make_calendar([friday_window], weeks=30, page_size=12)
    calendar.refresh()
    assert calendar.go_page(10) == 2
    assert len(calendar.current_page_slots) == 6
    assert calendar.go_page(-4) == 0


def test_select_moves_page_and_notifies(friday_window):
    calendar, selections = make_calendar([friday_window], weeks=30, page_size=12)
    calendar.refresh()
    first = calendar.slots[0]
    assert first.state is SlotState.OUT_OF_SCHEDULE
    with pytest.raises(SlotSelectionError):
        calendar.select(first.pay_date)

    target = calendar.slots[25]
    assert calendar.select(target.pay_date) == (target.label, target.pay_date)
    assert calendar.page == 2
    assert calendar.selected_date == target.pay_date
    assert selections[-1] == (target.label, target.pay_date)


def test_paid_payment_reaches_slots(friday_window):
    calendar, _ = make_calendar([friday_window], payments=[paid(date(2026, 1, 16))])
    calendar.refresh()
    slot = next(s for s in calendar.slots if s.pay_date == date(2026, 1, 16))
    assert slot.state is SlotState.PAID


def test_closed_calendar_discards_result(friday_window):
    calendar, selections = make_calendar([friday_window])

    class ClosingDirectory(ListDirectory):
        def list_schedules(self):
            calendar.close()
            return super().list_schedules()

    calendar.directory = ClosingDirectory([friday_window])
    slots = calendar.refresh()
    assert len(slots) == 12
    assert calendar.closed
    assert calendar.slots == []
    assert selections == []


def test_changing_weeks_triggers_refresh(friday_window):
    calendar, _ = make_calendar([friday_window])
    calendar.refresh()
    calendar.set_weeks(12)
    assert calendar.directory.calls == 1
    calendar.set_weeks(20)
    assert calendar.directory.calls == 2
    assert len(calendar.slots) == 20
    with pytest.raises(ValueError):
        calendar.set_weeks(0)


def test_changing_token_triggers_refresh():
    store = SnapshotStore("sqlite://")
    store.add_schedule(date(2026, 1, 1), None, 5)
    store.add_payment("alice", date(2026, 1, 16), "approved")
    calendar = WeeklyCalendar(
        StoreDirectory(store),
        StoreLedger(store, static_token(None)),
        clock=lambda: TODAY,
    )
    calendar.refresh()
    slot = next(s for s in calendar.slots if s.pay_date == date(2026, 1, 16))
    assert slot.state is SlotState.OVERDUE

    calendar.set_token_provider(static_token("alice"))
    slot = next(s for s in calendar.slots if s.pay_date == date(2026, 1, 16))
    assert slot.state is SlotState.PAID


def test_invalid_construction():
    with pytest.raises(ValueError):
        WeeklyCalendar(ListDirectory(), ListLedger(), weeks=0)
    with pytest.raises(ValueError):
        WeeklyCalendar(ListDirectory(), ListLedger(), page_size=0)
