"""Statistics over collections of interval records."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Collection, Iterable, Optional, Union

from .colors import assign_colors
from .errors import AggregationWarning, FormatError
from .models import AggregationBucket, IntervalRecord, UNCATEGORIZED_LABEL
from .timemath import date_to_string, format_duration, parse_duration, string_to_date

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


@dataclass(slots=True)
class CategoryAnalysis:
    """Per-category totals for a date range and category selection."""

    start: str
    end: str
    buckets: list[AggregationBucket]
    selected: list[AggregationBucket]
    colors: dict[str, str]
    interval_count: int
    warnings: list[AggregationWarning] = field(default_factory=list)

    @property
    def total_seconds(self) -> int:
        return sum(bucket.total_seconds for bucket in self.selected)

    @property
    def total_time(self) -> str:
        return total_duration(self.selected)


def filter_by_date_range(
    records: Iterable[IntervalRecord], start: DateLike, end: DateLike
) -> list[IntervalRecord]:
    """Records dated within ``start``..``end`` inclusive."""
    start_key = _date_key(start)
    end_key = _date_key(end)
    if start_key > end_key:
        return []
    return [record for record in records if start_key <= record.date <= end_key]


def aggregate_by_category(
    records: Iterable[IntervalRecord],
    warnings: Optional[list[AggregationWarning]] = None,
) -> list[AggregationBucket]:
    """Sum stored durations per category, in order of first appearance.

    The empty category is kept as its own ``""`` key. Records whose duration
    cannot be parsed are skipped and reported through ``warnings``.
    """
    totals: defaultdict[str, int] = defaultdict(int)
    for record in records:
        seconds = _stored_seconds(record, warnings)
        if seconds is None:
            continue
        totals[record.category] += seconds
    return [AggregationBucket(key=key, total_seconds=total) for key, total in totals.items()]


def aggregate_by_category_and_date(
    records: Iterable[IntervalRecord],
    category: str,
    *,
    uncategorized_label: str = UNCATEGORIZED_LABEL,
    warnings: Optional[list[AggregationWarning]] = None,
) -> dict[str, int]:
    """Seconds per date for one category, sorted by date."""
    totals: defaultdict[str, int] = defaultdict(int)
    for record in records:
        if not _matches_category(record.category, category, uncategorized_label):
            continue
        seconds = _stored_seconds(record, warnings)
        if seconds is None:
            continue
        totals[record.date] += seconds
    return {day: totals[day] for day in sorted(totals)}


def total_duration(buckets: Iterable[AggregationBucket]) -> str:
    return format_duration(sum(bucket.total_seconds for bucket in buckets))


def display_label(key: str, uncategorized_label: str = UNCATEGORIZED_LABEL) -> str:
    return key or uncategorized_label


def select_categories(
    buckets: Iterable[AggregationBucket],
    selected: Collection[str],
    uncategorized_label: str = UNCATEGORIZED_LABEL,
) -> list[AggregationBucket]:
    """Buckets in the selection; an empty selection keeps every bucket."""
    if not selected:
        return list(buckets)
    return [
        bucket
        for bucket in buckets
        if bucket.key in selected or display_label(bucket.key, uncategorized_label) in selected
    ]


def count_intervals(
    records: Iterable[IntervalRecord],
    selected: Collection[str] = (),
    uncategorized_label: str = UNCATEGORIZED_LABEL,
) -> int:
    return sum(
        1
        for record in records
        if not selected
        or record.category in selected
        or display_label(record.category, uncategorized_label) in selected
    )


def today_period(today: date) -> tuple[str, str]:
    day = date_to_string(today)
    return day, day


def last_days_period(today: date, days: int = 7) -> tuple[str, str]:
    """The ``days`` calendar days ending with ``today``."""
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    return date_to_string(today - timedelta(days=days - 1)), date_to_string(today)


def analyze(
    records: Iterable[IntervalRecord],
    start: DateLike,
    end: DateLike,
    selected: Collection[str] = (),
    *,
    uncategorized_label: str = UNCATEGORIZED_LABEL,
) -> CategoryAnalysis:
    """Category breakdown of the records dated within a range."""
    in_range = filter_by_date_range(records, start, end)
    warnings: list[AggregationWarning] = []
    buckets = aggregate_by_category(in_range, warnings)
    chosen = select_categories(buckets, selected, uncategorized_label)
    counted = [record for record in in_range if _has_readable_duration(record)]
    return CategoryAnalysis(
        start=_date_key(start),
        end=_date_key(end),
        buckets=buckets,
        selected=chosen,
        colors=assign_colors(bucket.key for bucket in buckets),
        interval_count=count_intervals(counted, selected, uncategorized_label) if chosen else 0,
        warnings=warnings,
    )


def _date_key(value: DateLike) -> str:
    if isinstance(value, date):
        return date_to_string(value)
    string_to_date(value)
    return value


def _matches_category(record_category: str, category: str, uncategorized_label: str) -> bool:
    if record_category == category:
        return True
    return not record_category and category == uncategorized_label


def _has_readable_duration(record: IntervalRecord) -> bool:
    try:
        parse_duration(record.duration)
    except FormatError:
        return False
    return True


def _stored_seconds(
    record: IntervalRecord, warnings: Optional[list[AggregationWarning]]
) -> Optional[int]:
    try:
        return parse_duration(record.duration)
    except FormatError as exc:
        logger.warning("Skipping interval %s in aggregation: %s", record.id, exc)
        if warnings is not None:
            warnings.append(
                AggregationWarning(record_id=record.id, value=str(record.duration), message=str(exc))
            )
        return None
