from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError

from kas_calendar.client import SnapshotFetchError, load_snapshot, static_token
from kas_calendar.data_models import PaymentStatus
from kas_calendar.store import SnapshotStore, StoreDirectory, StoreLedger


@pytest.fixture
def store():
    s = SnapshotStore("sqlite://")
    s.add_schedule(date(2026, 2, 1), None, 1, label="later")
    s.add_schedule(date(2026, 1, 1), date(2026, 1, 31), 5)
    s.add_payment("alice", date(2026, 1, 9), "Lunas", 10000)
    s.add_payment("bob", date(2026, 1, 9), "pending")
    return s


def test_schedules_come_back_in_insertion_order(store):
    windows = store.list_schedules()
    assert [w.start_date for w in windows] == [date(2026, 2, 1), date(2026, 1, 1)]
    assert windows[0].label == "later"
    assert windows[1].end_date == date(2026, 1, 31)


def test_payments_are_scoped_by_token(store):
    (record,) = store.list_payments("alice")
    assert record.status is PaymentStatus.PAID
    assert record.raw_status == "Lunas"
    assert record.amount == 10000
    assert store.list_payments(None) == []
    assert store.list_payments("carol") == []


def test_clear(store):
    store.clear()
    assert store.list_schedules() == []
    assert store.list_payments("alice") == []


def test_adapters_work_across_threads(store):
    snapshot = load_snapshot(StoreDirectory(store), StoreLedger(store, static_token("alice")))
    assert len(snapshot.windows) == 2
    assert len(snapshot.payments) == 1


def test_database_errors_become_fetch_errors():
    class BrokenStore:
        def list_schedules(self):
            raise SQLAlchemyError("no such table")

        def list_payments(self, token):
            raise SQLAlchemyError("no such table")

    with pytest.raises(SnapshotFetchError):
        StoreDirectory(BrokenStore()).list_schedules()
    with pytest.raises(SnapshotFetchError):
        StoreLedger(BrokenStore(), static_token("x")).list_payments()
