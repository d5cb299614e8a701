from datetime import date, timedelta

import pytest

from conftest import TODAY, paid
from kas_calendar.data_models import PaymentRecord, PaymentStatus, ScheduleWindow, SlotState
from kas_calendar.engine import (
    SlotSelectionError,
    classify_slot,
    generate_pay_dates,
    generate_slots,
    select_slot,
    this_pay_date,
)
from kas_calendar.schedule_index import ScheduleWindowIndex


def test_this_pay_date_moves_forward_to_pay_day(friday_window):
    index = ScheduleWindowIndex([friday_window])
    assert this_pay_date(TODAY, index) == date(2026, 1, 23)
    # on the pay day itself it stays put
    assert this_pay_date(date(2026, 1, 23), index) == date(2026, 1, 23)
    # Saturday rolls over to next Friday
    assert this_pay_date(date(2026, 1, 24), index) == date(2026, 1, 30)


def test_current_week_slot_is_centered(friday_window):
    slots = generate_slots(12, TODAY, [friday_window])
    center = slots[6]
    assert center.pay_date == date(2026, 1, 23)
    assert center.in_schedule is True
    assert center.day_name == "Friday"
    assert center.label == "this week"
    assert center.state is SlotState.DUE_THIS_WEEK
    assert slots[0].label == "-6"
    assert slots[-1].label == "+5"


def test_slots_before_first_window_are_out_of_schedule(friday_window):
    slots = generate_slots(12, TODAY, [friday_window])
    assert [s.pay_date for s in slots[:4]] == [
        date(2025, 12, 12), date(2025, 12, 19), date(2025, 12, 26), date(2026, 1, 2),
    ]
    assert [s.state for s in slots[:3]] == [SlotState.OUT_OF_SCHEDULE] * 3
    assert slots[3].in_schedule is True
    assert slots[5].state is SlotState.OVERDUE


def test_approved_payment_marks_slot_paid(friday_window):
    payment = paid(date(2026, 1, 23))
    slots = generate_slots(12, TODAY, [friday_window], [payment])
    slot = slots[6]
    assert slot.state is SlotState.PAID
    assert slot.linked_payment is payment
    assert slot.linked_payment.due_date == slot.pay_date


def test_paid_slots_always_link_their_payment(friday_window):
    payments = [paid(date(2026, 1, 9)), paid(date(2026, 1, 16), "Lunas", 2), paid(date(2026, 1, 30), "pending", 3)]
    slots = generate_slots(12, TODAY, [friday_window], payments)
    paid_slots = [s for s in slots if s.state is SlotState.PAID]
    assert [s.pay_date for s in paid_slots] == [date(2026, 1, 9), date(2026, 1, 16)]
    for slot in paid_slots:
        assert slot.linked_payment.due_date == slot.pay_date
        assert slot.linked_payment.status is PaymentStatus.PAID
    # a pending payment is linked but does not mark the slot paid
    pending = next(s for s in slots if s.pay_date == date(2026, 1, 30))
    assert pending.linked_payment.raw_status == "pending"
    assert pending.state is SlotState.OVERDUE


def test_no_windows_means_nothing_selectable():
    slots = generate_slots(12, date(2026, 5, 5), [])
    assert len(slots) == 12
    assert all(not s.in_schedule for s in slots)
    assert all(s.state is SlotState.OUT_OF_SCHEDULE for s in slots)
    assert all(s.day_name == "Friday" for s in slots)
    for slot in slots:
        with pytest.raises(SlotSelectionError):
            select_slot(slots, slot.pay_date)


def test_window_change_realigns_each_slot(two_windows):
    index = ScheduleWindowIndex(two_windows)
    dates = generate_pay_dates(TODAY, 4, index)
    # base 2026-01-20 falls in the Tuesday window
    assert dates == [date(2026, 1, 9), date(2026, 1, 16), date(2026, 1, 20), date(2026, 1, 27)]


def test_realignment_can_move_backwards(two_windows):
    index = ScheduleWindowIndex(two_windows)
    dates = generate_pay_dates(date(2026, 1, 14), 4, index)
    # base 2026-01-16 resolves to the Tuesday window and moves back to the 13th
    assert dates == [date(2026, 1, 2), date(2026, 1, 9), date(2026, 1, 13), date(2026, 1, 20)]


@pytest.mark.parametrize("count", [1, 2, 5, 12, 13, 52])
def test_count_and_strict_ordering(two_windows, count):
    for offset in (0, 3, 10, 40):
        today = date(2025, 12, 20) + timedelta(days=offset)
        dates = generate_pay_dates(today, count, ScheduleWindowIndex(two_windows))
        assert len(dates) == count
        assert all(a < b for a, b in zip(dates, dates[1:]))


@pytest.mark.parametrize("count", [0, -3])
def test_non_positive_count_is_rejected(friday_window, count):
    with pytest.raises(ValueError):
        generate_slots(count, TODAY, [friday_window])


def test_generation_is_idempotent(two_windows):
    payments = [paid(date(2026, 1, 9))]
    assert generate_slots(12, TODAY, two_windows, payments) == generate_slots(12, TODAY, two_windows, payments)


def test_single_slot_is_this_week(friday_window):
    slots = generate_slots(1, TODAY, [friday_window])
    assert len(slots) == 1
    assert slots[0].label == "this week"
    assert slots[0].pay_date == date(2026, 1, 23)


def test_indonesian_labels(friday_window):
    slots = generate_slots(3, TODAY, [friday_window], locale="id")
    assert [s.label for s in slots] == ["Minggu -1", "Minggu ini", "Minggu +1"]
    assert slots[1].day_name == "Jumat"


class TestClassifySlot:
    window = ScheduleWindow(start_date=date(2026, 1, 1), pay_day_of_week=5)

    def test_missing_window_wins_over_payment(self):
        lookup = {date(2026, 1, 23): paid(date(2026, 1, 23))}
        assert classify_slot(date(2026, 1, 23), None, TODAY, lookup) is SlotState.OUT_OF_SCHEDULE

    @pytest.mark.parametrize("raw", ["approved", "Lunas", "lunas", "LUNAS"])
    def test_paid_aliases(self, raw):
        lookup = {date(2026, 1, 16): paid(date(2026, 1, 16), raw)}
        assert classify_slot(date(2026, 1, 16), self.window, TODAY, lookup) is SlotState.PAID

    def test_same_monday_week_is_due(self):
        assert classify_slot(date(2026, 1, 23), self.window, TODAY, {}) is SlotState.DUE_THIS_WEEK
        assert classify_slot(date(2026, 1, 25), self.window, TODAY, {}) is SlotState.DUE_THIS_WEEK
        assert classify_slot(date(2026, 1, 19), self.window, TODAY, {}) is SlotState.DUE_THIS_WEEK

    def test_future_and_past_unpaid_are_both_overdue(self):
        assert classify_slot(date(2026, 1, 26), self.window, TODAY, {}) is SlotState.OVERDUE
        assert classify_slot(date(2026, 1, 16), self.window, TODAY, {}) is SlotState.OVERDUE

    @pytest.mark.parametrize("raw", ["pending", "rejected", ""])
    def test_unpaid_statuses(self, raw):
        record = PaymentRecord(due_date=date(2026, 1, 16), status=PaymentStatus.from_raw(raw), raw_status=raw)
        lookup = {date(2026, 1, 16): record}
        assert classify_slot(date(2026, 1, 16), self.window, TODAY, lookup) is SlotState.OVERDUE


def test_select_returns_label_and_due_date(friday_window):
    slots = generate_slots(12, TODAY, [friday_window])
    assert select_slot(slots, date(2026, 1, 30)) == ("+1", date(2026, 1, 30))


def test_select_unknown_date_is_rejected(friday_window):
    slots = generate_slots(12, TODAY, [friday_window])
    with pytest.raises(SlotSelectionError):
        select_slot(slots, date(2026, 1, 21))
