"""Clock-time and duration arithmetic for tracked intervals."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from .errors import FormatError

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
DATE_FMT = "%Y-%m-%d"

_CLOCK_TIME_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2}):([0-9]{2})$")
_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


@dataclass(frozen=True, slots=True)
class ClockTime:
    """A time of day with seconds resolution."""

    hours: int
    minutes: int
    seconds: int

    def __post_init__(self) -> None:
        if not 0 <= self.hours <= 23:
            raise FormatError(f"hours out of range: {self.hours}")
        if not 0 <= self.minutes <= 59:
            raise FormatError(f"minutes out of range: {self.minutes}")
        if not 0 <= self.seconds <= 59:
            raise FormatError(f"seconds out of range: {self.seconds}")

    @classmethod
    def from_seconds(cls, value: int) -> "ClockTime":
        if not 0 <= value < SECONDS_PER_DAY:
            raise FormatError(f"seconds of day out of range: {value}")
        hours, remainder = divmod(value, 3600)
        minutes, secs = divmod(remainder, 60)
        return cls(hours, minutes, secs)

    @property
    def seconds_of_day(self) -> int:
        return self.hours * 3600 + self.minutes * 60 + self.seconds

    def __str__(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"


ClockTimeLike = Union[ClockTime, str]


def parse_clock_time(value: str) -> ClockTime:
    """Parse ``HH:MM:SS`` (a single-digit hour is accepted)."""
    if not isinstance(value, str):
        raise FormatError(f"expected a time string, got {type(value).__name__}")
    match = _CLOCK_TIME_PATTERN.fullmatch(value)
    if not match:
        raise FormatError(f"invalid time {value!r}; expected HH:MM:SS")
    hours, minutes, seconds = (int(part) for part in match.groups())
    try:
        return ClockTime(hours, minutes, seconds)
    except FormatError as exc:
        raise FormatError(f"invalid time {value!r}: {exc}") from exc


def to_seconds_of_day(value: ClockTimeLike) -> int:
    clock = value if isinstance(value, ClockTime) else parse_clock_time(value)
    return clock.seconds_of_day


def compute_duration(start: ClockTimeLike, end: ClockTimeLike) -> tuple[str, bool]:
    """Return the elapsed time between two clock times and whether it crosses midnight.

    An end time earlier than the start time is read as belonging to the next
    calendar day. Equal times give a zero-length interval.
    """
    start_seconds = to_seconds_of_day(start)
    end_seconds = to_seconds_of_day(end)
    if end_seconds < start_seconds:
        elapsed = (SECONDS_PER_DAY - start_seconds) + end_seconds
        return format_duration(elapsed), True
    return format_duration(end_seconds - start_seconds), False


def format_duration(total_seconds: int) -> str:
    """Render seconds as ``HH:MM:SS``; hours may exceed 23."""
    total = int(total_seconds)
    if total < 0:
        logger.warning("Negative duration %d clamped to zero.", total)
        total = 0
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_duration(value: str) -> int:
    """Seconds held in a ClockTime-shaped duration string."""
    return to_seconds_of_day(value)


def date_to_string(value: Union[date, datetime]) -> str:
    """``YYYY-MM-DD`` with the year always four digits wide."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def string_to_date(value: str) -> date:
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        raise FormatError(f"invalid date {value!r}; expected YYYY-MM-DD")
    try:
        return datetime.strptime(value, DATE_FMT).date()
    except ValueError as exc:
        raise FormatError(f"invalid date {value!r}: {exc}") from exc


def clock_time_of(moment: datetime) -> str:
    """The ``HH:MM:SS`` wall-clock reading of a timestamp."""
    return str(ClockTime(moment.hour, moment.minute, moment.second))


def elapsed_seconds(start: datetime, now: datetime) -> int:
    """Whole seconds from ``start`` to ``now``, never negative."""
    if start.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    elif start.tzinfo is None and now.tzinfo is not None:
        start = start.astimezone(now.tzinfo)
    elapsed = int((now - start).total_seconds())
    if elapsed < 0:
        logger.warning("Timer start %s is after %s; reporting zero.", start, now)
        return 0
    return elapsed
