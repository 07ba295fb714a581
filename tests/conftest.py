"""Shared fixtures for the tracklog tests."""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tracklog.db import IntervalStore  # noqa: E402
from tracklog.models import Interval  # noqa: E402

# Wednesday of ISO week 2; the week runs from 2024-01-08 to 2024-01-14.
NOW = datetime(2024, 1, 10, 15, 30)


def make_interval(tokens="", begin=None, end=None, duration=None, interval_id=""):
    interval = Interval.from_tokens(tokens.split())
    interval.id = interval_id
    interval.begin = begin
    interval.end = end
    if duration is not None:
        interval.duration = duration
    return interval


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "intervals.json"


@pytest.fixture
def store(db_path):
    """An empty store backed by a temporary file."""
    return IntervalStore(db_path)


@pytest.fixture
def filled_store(store):
    """Three closed intervals on consecutive days around NOW."""
    store.append(make_interval("write report +work", datetime(2024, 1, 8, 9, 0), datetime(2024, 1, 8, 11, 0)))
    store.append(make_interval("review proj:gott", datetime(2024, 1, 9, 13, 0), datetime(2024, 1, 9, 14, 30)))
    store.append(
        make_interval(
            "reading",
            datetime(2024, 1, 10),
            datetime(2024, 1, 10),
            duration=timedelta(minutes=45),
        )
    )
    return store
