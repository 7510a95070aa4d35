"""Configuration models and helpers for the interval tracker."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .models import UNCATEGORIZED_LABEL
from .paths import get_db_path


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration shared by the CLI and reports."""

    db_path: Path
    uncategorized_label: str = UNCATEGORIZED_LABEL
    period_days: int = 7

    @classmethod
    def from_options(
        cls,
        db_path: Optional[Path] = None,
        uncategorized_label: Optional[str] = None,
        period_days: Optional[int] = None,
    ) -> "TrackerSettings":
        label = (uncategorized_label or "").strip() or UNCATEGORIZED_LABEL
        days = period_days if period_days is not None else 7
        if days < 1:
            raise ValueError(f"period_days must be at least 1, got {days}")
        return cls(
            db_path=Path(db_path) if db_path is not None else get_db_path(),
            uncategorized_label=label,
            period_days=days,
        )
