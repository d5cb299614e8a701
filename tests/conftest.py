import os
from datetime import date

import pytest

# Must be set before kas_calendar.config is imported.
os.environ["KAS_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("FLASK_SECRET_KEY", "test-secret")

from kas_calendar.data_models import PaymentRecord, PaymentStatus, ScheduleWindow  # noqa: E402

TODAY = date(2026, 1, 20)  # Tuesday


class ListDirectory:
    def __init__(self, windows=None):
        self.windows = list(windows or [])
        self.calls = 0

    def list_schedules(self):
        self.calls += 1
        return list(self.windows)


class ListLedger:
    def __init__(self, payments=None):
        self.payments = list(payments or [])

    def list_payments(self):
        return list(self.payments)


def paid(due: date, raw: str = "approved", pid=1) -> PaymentRecord:
    return PaymentRecord(due_date=due, status=PaymentStatus.from_raw(raw), raw_status=raw, id=pid, amount=10000)


@pytest.fixture
def friday_window():
    return ScheduleWindow(start_date=date(2026, 1, 1), end_date=None, pay_day_of_week=5)


@pytest.fixture
def two_windows():
    return [
        ScheduleWindow(start_date=date(2026, 1, 1), end_date=date(2026, 1, 15), pay_day_of_week=5),
        ScheduleWindow(start_date=date(2026, 1, 16), end_date=None, pay_day_of_week=2),
    ]
