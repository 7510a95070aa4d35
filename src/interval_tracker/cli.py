"""Command-line interface for the interval tracker."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional

import typer

from .aggregation import filter_by_date_range, last_days_period, today_period
from .config import TrackerSettings
from .errors import (
    FormatError,
    RecordNotFoundError,
    SchemaError,
    ValidationError,
    ValidationFailed,
)
from .paths import get_export_path
from .reporting import ReportPrinter
from .timemath import string_to_date
from .tracker import IntervalTracker, open_tracker

app = typer.Typer(help="Personal interval tracker with per-category statistics.")
category_app = typer.Typer(help="Manage categories.")
timer_app = typer.Typer(help="Run the live timer for an interval.")
app.add_typer(category_app, name="category")
app.add_typer(timer_app, name="timer")

logger = logging.getLogger(__name__)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def add(
    name: str = typer.Argument(..., help="What the interval was spent on."),
    start: str = typer.Option(..., "--start", help="Start time (HH:MM:SS)."),
    end: str = typer.Option(..., "--end", help="End time (HH:MM:SS); earlier than start means the next day."),
    date: Optional[str] = typer.Option(
        None, "--date", help="Date (YYYY-MM-DD) of the interval. Defaults to today."
    ),
    category: str = typer.Option("", "--category", "-c", help="Category name."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Record a finished interval."""
    day = date or today_period(datetime.now().date())[0]
    with _tracker(db_path) as tracker:
        result = tracker.add_interval(name, day, start, end, category)
    if not result.ok:
        _fail(result.errors)
    typer.echo(f"Added interval {result.record.id} ({result.record.duration}).")


@app.command()
def edit(
    interval_id: int = typer.Argument(..., help="Id of the interval to change."),
    name: Optional[str] = typer.Option(None, "--name", help="New name."),
    date: Optional[str] = typer.Option(None, "--date", help="New date (YYYY-MM-DD)."),
    start: Optional[str] = typer.Option(None, "--start", help="New start time (HH:MM:SS)."),
    end: Optional[str] = typer.Option(None, "--end", help="New end time (HH:MM:SS)."),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="New category."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Change fields of an interval; the duration is recomputed."""
    changes = {
        key: value
        for key, value in (
            ("name", name),
            ("date", date),
            ("start_time", start),
            ("end_time", end),
            ("category", category),
        )
        if value is not None
    }
    if not changes:
        typer.echo("Nothing to change.")
        return
    with _tracker(db_path) as tracker:
        result = tracker.update_interval(interval_id, changes)
    if not result.ok:
        _fail(result.errors)
    typer.echo(f"Updated interval {interval_id} ({result.record.duration}).")


@app.command()
def delete(
    interval_id: int = typer.Argument(..., help="Id of the interval to delete."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Delete an interval permanently."""
    with _tracker(db_path) as tracker:
        tracker.delete_interval(interval_id)
    typer.echo(f"Deleted interval {interval_id}.")


@app.command("list")
def list_intervals(
    start: Optional[str] = typer.Option(None, "--start", help="First date (YYYY-MM-DD) to list."),
    end: Optional[str] = typer.Option(None, "--end", help="Last date (YYYY-MM-DD) to list."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """List recorded intervals, optionally limited to a date range."""
    settings = TrackerSettings.from_options(db_path=db_path)
    with _tracker(db_path) as tracker:
        records = tracker.intervals()
        if start or end:
            records = filter_by_date_range(records, start or "0001-01-01", end or "9999-12-31")
        ReportPrinter(settings).print_intervals(records, tracker.current_timer())


@app.command()
def report(
    start: Optional[str] = typer.Option(None, "--start", help="First date (YYYY-MM-DD), inclusive."),
    end: Optional[str] = typer.Option(None, "--end", help="Last date (YYYY-MM-DD), inclusive."),
    today: bool = typer.Option(False, "--today", help="Report on today only."),
    days: int = typer.Option(7, "--days", min=1, help="Length of the default period in days."),
    categories: Optional[List[str]] = typer.Option(
        None, "--category", "-c", help="Only include these categories (repeatable)."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Print time spent per category over a period (default: the last week)."""
    settings = TrackerSettings.from_options(db_path=db_path, period_days=days)
    first, last = _resolve_period(start, end, today, settings.period_days)
    with _tracker(db_path) as tracker:
        records = tracker.intervals()
    with _errors_reported():
        ReportPrinter(settings).print_category_report(records, first, last, categories or ())


@app.command()
def trend(
    category: str = typer.Argument(..., help="Category to chart; use the uncategorized label for intervals without one."),
    start: Optional[str] = typer.Option(None, "--start", help="First date (YYYY-MM-DD), inclusive."),
    end: Optional[str] = typer.Option(None, "--end", help="Last date (YYYY-MM-DD), inclusive."),
    days: int = typer.Option(7, "--days", min=1, help="Length of the default period in days."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Print one category's daily totals over a period."""
    settings = TrackerSettings.from_options(db_path=db_path, period_days=days)
    first, last = _resolve_period(start, end, False, settings.period_days)
    with _tracker(db_path) as tracker:
        records = tracker.intervals()
    with _errors_reported():
        ReportPrinter(settings).print_trend(records, category, first, last)


@app.command("export")
def export_data(
    path: Optional[Path] = typer.Argument(None, help="Output JSON file. Defaults to the data directory."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Write all intervals and categories to a JSON file."""
    target = path or get_export_path()
    with _tracker(db_path) as tracker:
        document = tracker.export_document()
    target.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    typer.echo(
        f"Exported {len(document['intervals'])} intervals and "
        f"{len(document['categories'])} categories to {target}"
    )


@app.command("import")
def import_data(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file written by export."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Add intervals and categories from an exported JSON file."""
    try:
        document: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"Error: invalid JSON in {path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    with _tracker(db_path) as tracker:
        intervals, categories = tracker.import_document(document)
    typer.echo(f"Imported {intervals} intervals and {categories} categories.")


@category_app.command("add")
def category_add(
    name: str = typer.Argument(..., help="Category name."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Create a category."""
    with _tracker(db_path) as tracker:
        result = tracker.add_category(name)
    if not result.ok:
        _fail(result.errors)
    typer.echo(f"Added category {result.record.id}: {result.record.name}")


@category_app.command("list")
def category_list(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """List categories."""
    with _tracker(db_path) as tracker:
        categories = tracker.categories()
    if not categories:
        typer.echo("No categories defined.")
    for category in categories:
        typer.echo(f"{category.id:>5}  {category.name}")


@category_app.command("rename")
def category_rename(
    category_id: int = typer.Argument(..., help="Id of the category to rename."),
    name: str = typer.Argument(..., help="New name."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Rename a category and the intervals filed under it."""
    with _tracker(db_path) as tracker:
        result = tracker.rename_category(category_id, name)
    if not result.ok:
        _fail(result.errors)
    typer.echo(f"Renamed category {category_id} to {result.record.name}")


@category_app.command("delete")
def category_delete(
    category_id: int = typer.Argument(..., help="Id of the category to delete."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Delete a category; intervals keep their category text."""
    with _tracker(db_path) as tracker:
        tracker.delete_category(category_id)
    typer.echo(f"Deleted category {category_id}.")


@timer_app.command("start")
def timer_start(
    interval_id: int = typer.Argument(..., help="Interval to time from now on."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Start timing an interval, stopping any other running timer."""
    with _tracker(db_path) as tracker:
        record = tracker.start_timer(interval_id)
    typer.echo(f"Timer running for interval {record.id} since {record.start_time}.")


@timer_app.command("stop")
def timer_stop(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Stop the running timer and store the interval's end time."""
    with _tracker(db_path) as tracker:
        record = tracker.stop_timer()
    if record is None:
        typer.echo("No timer is running.")
        return
    typer.echo(f"Stopped interval {record.id} at {record.end_time} ({record.duration}).")


@timer_app.command("status")
def timer_status(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the interval SQLite database."
    ),
) -> None:
    """Show the running timer, if any."""
    with _tracker(db_path) as tracker:
        session = tracker.current_timer()
        if session is None:
            typer.echo("No timer is running.")
            return
        record = tracker.get_interval(session.interval_id)
        elapsed = tracker.display_duration(record)
    typer.echo(f"Interval {record.id} ({record.name}) running for {elapsed}.")


@contextmanager
def _tracker(db_path: Optional[Path]) -> Iterator[IntervalTracker]:
    settings = TrackerSettings.from_options(db_path=db_path)
    with _errors_reported():
        with open_tracker(settings.db_path) as tracker:
            yield tracker


@contextmanager
def _errors_reported() -> Iterator[None]:
    try:
        yield
    except ValidationFailed as exc:
        _fail(exc.errors)
    except (RecordNotFoundError, FormatError, SchemaError) as exc:
        logger.debug("Command failed", exc_info=True)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _resolve_period(
    start: Optional[str], end: Optional[str], today: bool, days: int
) -> tuple[str, str]:
    current = datetime.now().date()
    if today:
        return today_period(current)
    default_start, default_end = last_days_period(current, days)
    first, last = start or default_start, end or default_end
    with _errors_reported():
        string_to_date(first)
        string_to_date(last)
    return first, last


def _fail(errors: Iterable[ValidationError]) -> None:
    for error in errors:
        typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)
