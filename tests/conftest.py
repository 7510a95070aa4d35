from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from interval_tracker.db import open_database
from interval_tracker.models import IntervalRecord
from interval_tracker.tracker import IntervalTracker


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, moment: datetime) -> None:
        self.now = moment

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "intervals.sqlite3"


@pytest.fixture
def conn(db_path):
    connection = open_database(db_path)
    yield connection
    connection.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 9, 0, 0))


@pytest.fixture
def tracker(conn, clock):
    return IntervalTracker(conn, clock=clock)


@pytest.fixture
def make_interval():
    def factory(**overrides) -> IntervalRecord:
        values = {
            "name": "Reading",
            "date": "2024-01-01",
            "start_time": "09:00:00",
            "end_time": "10:00:00",
            "category": "",
            "duration": "01:00:00",
            "crosses_midnight": False,
        }
        values.update(overrides)
        return IntervalRecord(**values)

    return factory
