"""Launch the read-only dashboard under uvicorn."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    open_browser: bool = True,
    log_level: str = "info",
) -> None:
    """Serve the dashboard until interrupted; the store is only ever read."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    store_path = Path(db_path) if db_path else get_db_path()
    if not store_path.exists():
        logger.warning("No interval store at %s yet; serving an empty store.", store_path)
    app = create_app(db_path=store_path)

    if open_browser:
        status_url = f"http://{host}:{port}/api/status"
        threading.Thread(
            target=_open_when_ready, args=(status_url,), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _open_when_ready(url: str) -> None:
    time.sleep(1.0)
    try:
        webbrowser.open(url)
    except Exception:
        logger.exception("Failed to launch browser for %s", url)
