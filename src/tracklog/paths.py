"""Default location of the interval store."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "tracklog"
DB_FILENAME = "intervals.json"


def get_db_path() -> Path:
    """Store file inside the user's data directory, which is created on demand."""
    data_dir = Path(PlatformDirs(appname=APP_NAME, appauthor=False, roaming=True).user_data_path)
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DB_FILENAME
