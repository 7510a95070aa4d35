import sqlite3
from datetime import datetime

import pytest

from interval_tracker import db
from interval_tracker.errors import RecordNotFoundError
from interval_tracker.models import CategoryRecord, TimerSession
from interval_tracker.schema import SCHEMA_VERSION


def test_schema_version_recorded(conn):
    assert db.schema_version(conn) == SCHEMA_VERSION


def test_reopening_keeps_data(db_path, make_interval):
    with db.database_connection(db_path) as first:
        stored = db.upsert_interval(first, make_interval())
    with db.database_connection(db_path) as second:
        assert db.get_interval(second, stored.id) == stored


class TestIntervals:
    def test_insert_assigns_id(self, conn, make_interval):
        stored = db.upsert_interval(conn, make_interval())
        assert stored.id is not None
        assert db.get_interval(conn, stored.id) == stored

    def test_update_existing(self, conn, make_interval):
        stored = db.upsert_interval(conn, make_interval())
        stored.name = "Renamed"
        db.upsert_interval(conn, stored)
        assert db.get_interval(conn, stored.id).name == "Renamed"

    def test_update_missing_raises(self, conn, make_interval):
        with pytest.raises(RecordNotFoundError):
            db.upsert_interval(conn, make_interval(id=42))

    def test_rollover_flag_round_trips(self, conn, make_interval):
        stored = db.upsert_interval(conn, make_interval(crosses_midnight=True))
        assert db.get_interval(conn, stored.id).crosses_midnight is True

    def test_list_orders_by_date_and_start(self, conn, make_interval):
        db.upsert_interval(conn, make_interval(name="c", date="2024-01-02", start_time="08:00:00"))
        db.upsert_interval(conn, make_interval(name="b", date="2024-01-01", start_time="12:00:00"))
        db.upsert_interval(conn, make_interval(name="a", date="2024-01-01", start_time="07:00:00"))
        assert [record.name for record in db.list_intervals(conn)] == ["a", "b", "c"]

    def test_delete(self, conn, make_interval):
        stored = db.upsert_interval(conn, make_interval())
        assert db.delete_interval(conn, stored.id) is True
        assert db.get_interval(conn, stored.id) is None
        assert db.delete_interval(conn, stored.id) is False

    def test_ids_are_not_reused(self, conn, make_interval):
        first = db.upsert_interval(conn, make_interval())
        db.delete_interval(conn, first.id)
        second = db.upsert_interval(conn, make_interval())
        assert second.id > first.id

    def test_rename_category(self, conn, make_interval):
        db.upsert_interval(conn, make_interval(category="Wrk"))
        db.upsert_interval(conn, make_interval(category="Sport"))
        assert db.rename_interval_category(conn, "Wrk", "Work") == 1
        assert sorted(record.category for record in db.list_intervals(conn)) == ["Sport", "Work"]


class TestCategories:
    def test_crud(self, conn):
        stored = db.upsert_category(conn, CategoryRecord(name="Work"))
        assert db.list_categories(conn) == [stored]
        db.upsert_category(conn, CategoryRecord(id=stored.id, name="Job"))
        assert db.get_category(conn, stored.id).name == "Job"
        assert db.delete_category(conn, stored.id) is True
        assert db.get_category(conn, stored.id) is None

    def test_unique_ignoring_case(self, conn):
        db.upsert_category(conn, CategoryRecord(name="Work"))
        with pytest.raises(sqlite3.IntegrityError):
            db.upsert_category(conn, CategoryRecord(name="WORK"))

    def test_update_missing_raises(self, conn):
        with pytest.raises(RecordNotFoundError):
            db.upsert_category(conn, CategoryRecord(id=5, name="x"))


class TestTimerSession:
    def test_save_get_clear(self, conn, make_interval):
        stored = db.upsert_interval(conn, make_interval())
        session = TimerSession(interval_id=stored.id, started_at=datetime(2024, 1, 1, 9, 30))
        assert db.get_timer_session(conn) is None
        db.save_timer_session(conn, session)
        assert db.get_timer_session(conn) == session
        assert db.clear_timer_session(conn) is True
        assert db.get_timer_session(conn) is None
        assert db.clear_timer_session(conn) is False

    def test_only_one_session(self, conn, make_interval):
        first = db.upsert_interval(conn, make_interval())
        second = db.upsert_interval(conn, make_interval())
        db.save_timer_session(conn, TimerSession(first.id, datetime(2024, 1, 1, 9)))
        db.save_timer_session(conn, TimerSession(second.id, datetime(2024, 1, 1, 10)))
        assert db.get_timer_session(conn).interval_id == second.id

    def test_deleting_interval_clears_session(self, conn, make_interval):
        stored = db.upsert_interval(conn, make_interval())
        db.save_timer_session(conn, TimerSession(stored.id, datetime(2024, 1, 1, 9)))
        db.delete_interval(conn, stored.id)
        assert db.get_timer_session(conn) is None


def test_transaction_rolls_back(conn, make_interval):
    with pytest.raises(RuntimeError):
        with db.transaction(conn):
            db.upsert_interval(conn, make_interval())
            raise RuntimeError("boom")
    assert db.list_intervals(conn) == []
