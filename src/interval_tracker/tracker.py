"""Interval and category bookkeeping on top of the SQLite store."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional

from . import db
from .errors import RecordNotFoundError, ValidationError, ValidationFailed
from .models import UNCATEGORIZED, CategoryRecord, IntervalRecord, TimerSession
from .records import (
    ValidationResult,
    apply_update,
    derive_fields,
    prepare_interval,
    validate_category,
)
from .schema import build_document, read_document
from .timemath import SECONDS_PER_DAY, clock_time_of, date_to_string, elapsed_seconds
from .timer import live_duration

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@contextmanager
def open_tracker(db_path: Path, *, clock: Clock = datetime.now) -> Iterator["IntervalTracker"]:
    with db.database_connection(Path(db_path)) as conn:
        yield IntervalTracker(conn, clock=clock)


class IntervalTracker:
    """Validates every change before it reaches storage.

    Owns the single running timer: starting a timer stops whichever one is
    already running.
    """

    def __init__(self, conn: sqlite3.Connection, *, clock: Clock = datetime.now) -> None:
        self._conn = conn
        self._clock = clock

    # Intervals

    def intervals(self) -> list[IntervalRecord]:
        return db.list_intervals(self._conn)

    def get_interval(self, interval_id: int) -> IntervalRecord:
        record = db.get_interval(self._conn, interval_id)
        if record is None:
            raise RecordNotFoundError(f"No interval found for id={interval_id}")
        return record

    def add_interval(
        self,
        name: str,
        date: str,
        start_time: str,
        end_time: str,
        category: str = UNCATEGORIZED,
    ) -> ValidationResult[IntervalRecord]:
        result = prepare_interval(
            IntervalRecord(
                name=name,
                date=date,
                start_time=start_time,
                end_time=end_time,
                category=category,
            )
        )
        if result.ok:
            result.record = db.upsert_interval(self._conn, result.record)
            logger.info("Added interval %s (%s).", result.record.id, result.record.duration)
        return result

    def update_interval(
        self, interval_id: int, changes: Mapping[str, Any]
    ) -> ValidationResult[IntervalRecord]:
        result = apply_update(self.get_interval(interval_id), changes)
        if result.ok:
            result.record = db.upsert_interval(self._conn, result.record)
            logger.debug("Updated interval %s: %s", interval_id, sorted(changes))
        return result

    def delete_interval(self, interval_id: int) -> None:
        if not db.delete_interval(self._conn, interval_id):
            raise RecordNotFoundError(f"No interval found for id={interval_id}")
        logger.info("Deleted interval %s.", interval_id)

    def display_duration(self, record: IntervalRecord) -> str:
        return live_duration(self.current_timer(), record, self._clock())

    # Categories

    def categories(self) -> list[CategoryRecord]:
        return db.list_categories(self._conn)

    def add_category(self, name: str) -> ValidationResult[CategoryRecord]:
        result = validate_category(CategoryRecord(name=name), self.categories())
        if result.ok:
            result.record = db.upsert_category(self._conn, result.record)
        return result

    def rename_category(self, category_id: int, name: str) -> ValidationResult[CategoryRecord]:
        """Rename a category and refile its intervals under the new name."""
        with db.transaction(self._conn):
            current = db.get_category(self._conn, category_id)
            if current is None:
                raise RecordNotFoundError(f"No category found for id={category_id}")
            result = validate_category(replace(current, name=name), self.categories())
            if result.ok:
                result.record = db.upsert_category(self._conn, result.record)
                moved = db.rename_interval_category(self._conn, current.name, name)
                logger.info("Renamed category %r to %r (%d intervals).", current.name, name, moved)
        return result

    def delete_category(self, category_id: int) -> None:
        if not db.delete_category(self._conn, category_id):
            raise RecordNotFoundError(f"No category found for id={category_id}")

    # Timer

    def current_timer(self) -> Optional[TimerSession]:
        return db.get_timer_session(self._conn)

    def start_timer(self, interval_id: int) -> IntervalRecord:
        """Restart ``interval_id`` from the current time."""
        now = self._clock()
        with db.transaction(self._conn):
            interval = self.get_interval(interval_id)
            running = db.get_timer_session(self._conn)
            if running is not None and running.interval_id == interval_id:
                return interval
            if running is not None:
                self._finish(running, now)
            clock = clock_time_of(now)
            started = derive_fields(
                replace(interval, date=date_to_string(now), start_time=clock, end_time=clock)
            )
            started = db.upsert_interval(self._conn, started)
            db.save_timer_session(self._conn, TimerSession(interval_id=interval_id, started_at=now))
        logger.info("Timer started for interval %s at %s.", interval_id, clock)
        return started

    def stop_timer(self) -> Optional[IntervalRecord]:
        """Close the running interval at the current time, if any."""
        now = self._clock()
        with db.transaction(self._conn):
            running = db.get_timer_session(self._conn)
            if running is None:
                return None
            stopped = self._finish(running, now)
        return stopped

    def _finish(self, session: TimerSession, now: datetime) -> Optional[IntervalRecord]:
        db.clear_timer_session(self._conn)
        interval = db.get_interval(self._conn, session.interval_id)
        if interval is None:
            return None
        if elapsed_seconds(session.started_at, now) >= SECONDS_PER_DAY:
            logger.warning(
                "Timer for interval %s ran for more than a day; duration wraps.",
                session.interval_id,
            )
        stopped = db.upsert_interval(
            self._conn, derive_fields(replace(interval, end_time=clock_time_of(now)))
        )
        logger.info("Timer stopped for interval %s (%s).", stopped.id, stopped.duration)
        return stopped

    # Export / import

    def export_document(self) -> dict[str, Any]:
        return build_document(self.intervals(), self.categories())

    def import_document(self, document: Any) -> tuple[int, int]:
        """Add every interval and new category from an exported document.

        Nothing is stored unless all intervals are valid. Categories whose name
        already exists are skipped. Returns the numbers of intervals and
        categories added.
        """
        intervals, categories = read_document(document)
        errors: list[ValidationError] = []
        prepared: list[IntervalRecord] = []
        for index, interval in enumerate(intervals):
            result = prepare_interval(replace(interval, id=None))
            errors.extend(
                ValidationError(f"intervals[{index}].{error.field}", error.message)
                for error in result.errors
            )
            prepared.append(result.record)
        if errors:
            raise ValidationFailed(errors)

        added_categories = 0
        with db.transaction(self._conn):
            known = db.list_categories(self._conn)
            for category in categories:
                result = validate_category(category, known)
                if not result.ok:
                    logger.debug("Skipping category %r: %s", category.name, result.errors[0])
                    continue
                known.append(db.upsert_category(self._conn, result.record))
                added_categories += 1
            for interval in prepared:
                db.upsert_interval(self._conn, interval)
        logger.info("Imported %d intervals and %d categories.", len(prepared), added_categories)
        return len(prepared), added_categories
