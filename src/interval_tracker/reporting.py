"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from typing import Collection, Iterable, Optional

from .aggregation import (
    analyze,
    aggregate_by_category_and_date,
    display_label,
    filter_by_date_range,
)
from .colors import color_for
from .config import TrackerSettings
from .errors import AggregationWarning
from .models import IntervalRecord, TimerSession
from .timemath import format_duration
from .timer import live_duration


class ReportPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, settings: TrackerSettings) -> None:
        self.settings = settings

    def print_category_report(
        self,
        records: Iterable[IntervalRecord],
        start: str,
        end: str,
        selected: Collection[str] = (),
    ) -> None:
        label = self.settings.uncategorized_label
        analysis = analyze(records, start, end, selected, uncategorized_label=label)
        if not analysis.selected:
            print("No intervals recorded for the selected period and categories.")
            _print_warnings(analysis.warnings)
            return

        print(f"Time by category {analysis.start} .. {analysis.end}")
        print("-" * 52)
        for bucket in analysis.selected:
            name = display_label(bucket.key, label)
            color = color_for(analysis.colors, bucket.key)
            print(f"  {color}  {name[:30]:<30} {bucket.formatted_time:>10}")
        print()
        print(f"Intervals:  {analysis.interval_count}")
        print(f"Total time: {analysis.total_time}")
        _print_warnings(analysis.warnings)

    def print_trend(
        self,
        records: Iterable[IntervalRecord],
        category: str,
        start: str,
        end: str,
    ) -> None:
        warnings: list[AggregationWarning] = []
        per_day = aggregate_by_category_and_date(
            filter_by_date_range(records, start, end),
            category,
            uncategorized_label=self.settings.uncategorized_label,
            warnings=warnings,
        )
        if not per_day:
            print(f'No data for category "{category}" between {start} and {end}.')
            _print_warnings(warnings)
            return

        peak = max(per_day.values()) or 1
        print(f"{category} by day")
        print("-" * 52)
        for day, seconds in per_day.items():
            bar = "#" * max(1, round(24 * seconds / peak)) if seconds else ""
            print(f"  {day}  {format_duration(seconds):>10}  {bar}")
        _print_warnings(warnings)

    def print_intervals(
        self,
        records: Iterable[IntervalRecord],
        session: Optional[TimerSession] = None,
        now: Optional[datetime] = None,
    ) -> None:
        rows = list(records)
        if not rows:
            print("No intervals recorded.")
            return
        moment = now or datetime.now()
        for record in rows:
            running = " [running]" if session and session.interval_id == record.id else ""
            rollover = " (+1 day)" if record.crosses_midnight else ""
            category = display_label(record.category, self.settings.uncategorized_label)
            print(
                f"{record.id:>5}  {record.date}  {record.start_time}-{record.end_time}{rollover:<9}"
                f"  {live_duration(session, record, moment)}  {category[:20]:<20}  {record.name}{running}"
            )


def _print_warnings(warnings: Iterable[AggregationWarning]) -> None:
    skipped = list(warnings)
    if not skipped:
        return
    print()
    print(f"Warning: skipped {len(skipped)} interval(s) with an unreadable duration:")
    for warning in skipped:
        print(f"  - interval {warning.record_id}: {warning.message}")
