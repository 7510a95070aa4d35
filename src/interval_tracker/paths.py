"""Where the tracker keeps its database and exports."""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

APP_NAME = "IntervalTracker"
APP_AUTHOR = "IntervalTracker"

# Overrides the per-user data directory, e.g. for a portable install.
HOME_ENV_VAR = "INTERVAL_TRACKER_HOME"


def get_data_dir() -> Path:
    override = os.environ.get(HOME_ENV_VAR, "").strip()
    if override:
        path = Path(override).expanduser()
    else:
        dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
        path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    return get_data_dir() / "intervals.sqlite3"


def get_export_path(day: Optional[date] = None) -> Path:
    """Default export file, one per day so earlier exports are kept."""
    stamp = (day or date.today()).isoformat()
    return get_data_dir() / f"intervals-{stamp}.json"
