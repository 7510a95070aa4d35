"""Domain models for tracked intervals and categories."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .timemath import format_duration

UNCATEGORIZED = ""
UNCATEGORIZED_LABEL = "Uncategorized"


@dataclass(slots=True)
class IntervalRecord:
    """One tracked activity occurrence anchored to a calendar date.

    ``duration`` and ``crosses_midnight`` are derived from the start and end
    times; see :func:`interval_tracker.records.derive_fields`.
    """

    name: str
    date: str
    start_time: str
    end_time: str
    category: str = UNCATEGORIZED
    duration: str = "00:00:00"
    crosses_midnight: bool = False
    id: Optional[int] = None


@dataclass(slots=True)
class CategoryRecord:
    name: str
    id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class AggregationBucket:
    """Summed duration of one aggregation group."""

    key: str
    total_seconds: int

    @property
    def formatted_time(self) -> str:
        return format_duration(self.total_seconds)


@dataclass(frozen=True, slots=True)
class TimerSession:
    """The interval whose end time is currently running."""

    interval_id: int
    started_at: datetime

    @property
    def start_time_iso(self) -> str:
        return self.started_at.isoformat()
