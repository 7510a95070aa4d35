"""SQLite storage for intervals, categories and the running timer."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from .errors import RecordNotFoundError
from .models import CategoryRecord, IntervalRecord, TimerSession
from .schema import SCHEMA_VERSION


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    enable_foreign_keys(conn)
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a read-modify-write sequence atomically."""
    conn.execute("BEGIN IMMEDIATE;")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK;")
        raise
    conn.execute("COMMIT;")


def enable_foreign_keys(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA foreign_keys = ON;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS intervals (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            duration TEXT NOT NULL,
            crosses_midnight INTEGER NOT NULL DEFAULT 0,
            category TEXT NOT NULL DEFAULT ''
        );

        CREATE INDEX IF NOT EXISTS idx_intervals_date
            ON intervals(date);

        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_categories_name
            ON categories(name COLLATE NOCASE);

        CREATE TABLE IF NOT EXISTS timer_session (
            slot INTEGER PRIMARY KEY CHECK (slot = 1),
            interval_id INTEGER NOT NULL
                REFERENCES intervals(id) ON DELETE CASCADE,
            started_at TEXT NOT NULL
        );
        """
    )
    conn.execute(f"PRAGMA user_version = {int(SCHEMA_VERSION)};")


def schema_version(conn: sqlite3.Connection) -> int:
    return int(conn.execute("PRAGMA user_version;").fetchone()[0])


def list_intervals(conn: sqlite3.Connection) -> list[IntervalRecord]:
    rows = conn.execute(
        """
        SELECT id, name, date, start_time, end_time, duration, crosses_midnight, category
        FROM intervals
        ORDER BY date, start_time, id;
        """
    )
    return [_row_to_interval(row) for row in rows]


def get_interval(conn: sqlite3.Connection, interval_id: int) -> Optional[IntervalRecord]:
    row = conn.execute(
        """
        SELECT id, name, date, start_time, end_time, duration, crosses_midnight, category
        FROM intervals
        WHERE id = ?;
        """,
        (interval_id,),
    ).fetchone()
    return _row_to_interval(row) if row is not None else None


def upsert_interval(conn: sqlite3.Connection, record: IntervalRecord) -> IntervalRecord:
    """Insert a new interval or overwrite an existing one.

    Records are stored as given; derive and validate them first.
    """
    params = (
        record.name,
        record.date,
        record.start_time,
        record.end_time,
        record.duration,
        1 if record.crosses_midnight else 0,
        record.category,
    )
    if record.id is None:
        cur = conn.execute(
            """
            INSERT INTO intervals (
                name,
                date,
                start_time,
                end_time,
                duration,
                crosses_midnight,
                category
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            params,
        )
        return replace(record, id=cur.lastrowid)

    cur = conn.execute(
        """
        UPDATE intervals
        SET name = ?, date = ?, start_time = ?, end_time = ?,
            duration = ?, crosses_midnight = ?, category = ?
        WHERE id = ?
        """,
        (*params, record.id),
    )
    if cur.rowcount == 0:
        raise RecordNotFoundError(f"No interval found for id={record.id}")
    return record


def delete_interval(conn: sqlite3.Connection, interval_id: int) -> bool:
    cur = conn.execute("DELETE FROM intervals WHERE id = ?", (interval_id,))
    return cur.rowcount > 0


def rename_interval_category(conn: sqlite3.Connection, old_name: str, new_name: str) -> int:
    """Move every interval filed under ``old_name`` to ``new_name``."""
    cur = conn.execute(
        "UPDATE intervals SET category = ? WHERE category = ?",
        (new_name, old_name),
    )
    return cur.rowcount


def list_categories(conn: sqlite3.Connection) -> list[CategoryRecord]:
    rows = conn.execute("SELECT id, name FROM categories ORDER BY id;")
    return [CategoryRecord(id=row["id"], name=row["name"]) for row in rows]


def get_category(conn: sqlite3.Connection, category_id: int) -> Optional[CategoryRecord]:
    row = conn.execute(
        "SELECT id, name FROM categories WHERE id = ?", (category_id,)
    ).fetchone()
    return CategoryRecord(id=row["id"], name=row["name"]) if row is not None else None


def upsert_category(conn: sqlite3.Connection, record: CategoryRecord) -> CategoryRecord:
    if record.id is None:
        cur = conn.execute("INSERT INTO categories (name) VALUES (?)", (record.name,))
        return replace(record, id=cur.lastrowid)
    cur = conn.execute(
        "UPDATE categories SET name = ? WHERE id = ?", (record.name, record.id)
    )
    if cur.rowcount == 0:
        raise RecordNotFoundError(f"No category found for id={record.id}")
    return record


def delete_category(conn: sqlite3.Connection, category_id: int) -> bool:
    cur = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
    return cur.rowcount > 0


def get_timer_session(conn: sqlite3.Connection) -> Optional[TimerSession]:
    row = conn.execute(
        "SELECT interval_id, started_at FROM timer_session WHERE slot = 1"
    ).fetchone()
    if row is None:
        return None
    return TimerSession(
        interval_id=row["interval_id"],
        started_at=datetime.fromisoformat(row["started_at"]),
    )


def save_timer_session(conn: sqlite3.Connection, session: TimerSession) -> None:
    conn.execute(
        """
        INSERT INTO timer_session (slot, interval_id, started_at)
        VALUES (1, ?, ?)
        ON CONFLICT(slot) DO UPDATE SET
            interval_id = excluded.interval_id,
            started_at = excluded.started_at
        """,
        (session.interval_id, session.start_time_iso),
    )


def clear_timer_session(conn: sqlite3.Connection) -> bool:
    cur = conn.execute("DELETE FROM timer_session WHERE slot = 1")
    return cur.rowcount > 0


def _row_to_interval(row: sqlite3.Row) -> IntervalRecord:
    return IntervalRecord(
        id=row["id"],
        name=row["name"],
        date=row["date"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        duration=row["duration"],
        crosses_midnight=bool(row["crosses_midnight"]),
        category=row["category"],
    )
