"""Personal interval tracking with a JSON store and text-editor bulk edits."""

from .db import IntervalStore, open_store
from .models import Interval

__all__ = ["Interval", "IntervalStore", "open_store"]

__version__ = "0.1.0"
