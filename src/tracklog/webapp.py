"""FastAPI application exposing a read-only JSON view of the tracked intervals."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request

from .db import IntervalStore
from .errors import CorruptStoreError, InvalidFilterArgument
from .filters import KEY_TODAY, KEYS
from .models import Interval
from .paths import get_db_path
from .timeparse import DATE_FMT, format_duration

FILTER_DESCRIPTION = f"One of {', '.join(KEYS)} or a date in YYYY-MM-DD format."


def create_app(*, db_path: Optional[Path] = None) -> FastAPI:
    """Instantiate the FastAPI application."""
    app = FastAPI(title="tracklog dashboard")
    app.state.db_path = Path(db_path) if db_path else get_db_path()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        store = _read_store(request)
        now = datetime.now()
        current = store.get_current()
        today = store.filter([KEY_TODAY], now=now)
        return {
            "database_path": str(request.app.state.db_path),
            "interval_count": store.count(),
            "tracking": current is not None,
            "current": _interval_payload(current, now) if current else None,
            "today_seconds": store.total_duration(today, now=now).total_seconds(),
        }

    @app.get("/api/intervals")
    def intervals(
        request: Request,
        filter_arg: str = Query(
            default=KEY_TODAY, alias="filter", description=FILTER_DESCRIPTION
        ),
    ) -> Dict[str, Any]:
        store = _read_store(request)
        now = datetime.now()
        matches = _filter(store, filter_arg, now)
        return {
            "filter": filter_arg,
            "intervals": [_interval_payload(interval, now) for interval in matches],
        }

    @app.get("/api/summary")
    def summary(
        request: Request,
        filter_arg: str = Query(
            default=KEY_TODAY, alias="filter", description=FILTER_DESCRIPTION
        ),
    ) -> Dict[str, Any]:
        store = _read_store(request)
        now = datetime.now()
        matches = _filter(store, filter_arg, now)

        day_totals: dict[str, float] = defaultdict(float)
        project_totals: dict[str, float] = defaultdict(float)
        tag_totals: dict[str, float] = defaultdict(float)
        for interval in matches:
            seconds = interval.get_duration(now).total_seconds()
            day_totals[interval.begin.strftime(DATE_FMT)] += seconds
            if interval.project:
                project_totals[interval.project] += seconds
            for tag in interval.tags:
                tag_totals[tag] += seconds

        return {
            "filter": filter_arg,
            "total_seconds": sum(day_totals.values()),
            "days": [
                {"date": day, "seconds": seconds} for day, seconds in sorted(day_totals.items())
            ],
            "projects": _ranked(project_totals, "project"),
            "tags": _ranked(tag_totals, "tag"),
        }

    return app


def _read_store(request: Request) -> IntervalStore:
    try:
        return IntervalStore.read(request.app.state.db_path)
    except CorruptStoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _filter(store: IntervalStore, token: str, now: datetime) -> list[Interval]:
    try:
        return store.filter([token], now=now)
    except InvalidFilterArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _ranked(totals: dict[str, float], key: str) -> list[Dict[str, Any]]:
    return [
        {key: name, "seconds": seconds}
        for name, seconds in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]


def _interval_payload(interval: Interval, now: datetime) -> Dict[str, Any]:
    return {
        "id": interval.id,
        "begin": interval.begin.isoformat() if interval.begin else None,
        "end": interval.end.isoformat() if interval.end else None,
        "duration": format_duration(interval.duration),
        "duration_seconds": interval.get_duration(now).total_seconds(),
        "project": interval.project,
        "tags": list(interval.tags),
        "ref": interval.ref,
        "annotation": interval.annotation,
    }
