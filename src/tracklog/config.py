"""Runtime settings for the tracker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .filters import KEY_TODAY
from .paths import get_db_path

DB_ENV_VAR = "TRACKLOG_DB"
DEFAULT_EDITOR = "vi"


@dataclass(slots=True)
class TrackerSettings:
    """Where the store lives and how bulk edits are opened."""

    db_path: Path
    editor: str = DEFAULT_EDITOR
    default_filter: str = KEY_TODAY

    @classmethod
    def from_environment(
        cls,
        db_path: Optional[Path] = None,
        editor: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "TrackerSettings":
        env = os.environ if environ is None else environ
        if db_path is None:
            configured = env.get(DB_ENV_VAR)
            db_path = Path(configured).expanduser() if configured else get_db_path()
        editor = editor or env.get("VISUAL") or env.get("EDITOR") or DEFAULT_EDITOR
        return cls(db_path=Path(db_path), editor=editor)
