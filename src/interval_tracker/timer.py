"""Live duration display for the running interval timer."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import IntervalRecord, TimerSession
from .timemath import elapsed_seconds, format_duration


def is_running(session: Optional[TimerSession], interval: IntervalRecord) -> bool:
    return session is not None and interval.id is not None and session.interval_id == interval.id


def live_duration(
    session: Optional[TimerSession], interval: IntervalRecord, now: datetime
) -> str:
    """Duration to display for ``interval``.

    A running interval shows the time elapsed since its timer started instead
    of the stored duration.
    """
    if is_running(session, interval):
        return format_duration(elapsed_seconds(session.started_at, now))
    return interval.duration
