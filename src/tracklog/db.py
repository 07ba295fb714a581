"""JSON-file storage for tracked intervals."""

from __future__ import annotations

import dataclasses
import logging
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterator, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import (
    AlreadyTrackingError,
    CorruptStoreError,
    EmptyStoreError,
    InvalidIntervalError,
    NotFoundError,
)
from .filters import apply_filters, resolve_filter
from .models import Interval

logger = logging.getLogger(__name__)

ID_LENGTH = 8


class IntervalRecord(BaseModel):
    """On-disk shape of a single interval."""

    id: str
    begin: datetime
    end: Optional[datetime] = None
    duration: timedelta = timedelta(0)
    project: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    ref: Optional[str] = None
    annotation: str = ""
    raw: str = ""

    model_config = ConfigDict(extra="forbid")


_RECORDS = TypeAdapter(list[IntervalRecord])


class IntervalStore:
    """Ordered interval collection backed by one JSON array on disk.

    At most one stored interval may be open (``end is None``); every mutator
    checks the collection itself rather than tracking the open slot apart.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._intervals: list[Interval] = []

    @classmethod
    def read(cls, path: Path) -> "IntervalStore":
        store = cls(path)
        store.load()
        return store

    def load(self) -> None:
        if not self.path.exists():
            logger.debug("No store at %s; starting empty.", self.path)
            self._intervals = []
            return
        try:
            records = _RECORDS.validate_json(self.path.read_bytes())
        except ValidationError as exc:
            raise CorruptStoreError(
                f"Store file {self.path} is malformed: {exc.error_count()} error(s), "
                f"first: {exc.errors()[0]['msg']}"
            ) from exc
        except OSError as exc:
            raise CorruptStoreError(f"Store file {self.path} cannot be read: {exc}") from exc

        intervals = [Interval(**record.model_dump()) for record in records]
        _check_invariants(intervals, self.path)
        self._intervals = intervals
        logger.info("Loaded %d intervals from %s", len(intervals), self.path)

    def save(self) -> None:
        records = [IntervalRecord(**dataclasses.asdict(i)) for i in self._intervals]
        payload = _RECORDS.dump_json(records, indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_bytes(payload)
        os.replace(tmp_path, self.path)
        logger.debug("Saved %d intervals to %s", len(records), self.path)

    @property
    def intervals(self) -> list[Interval]:
        return list(self._intervals)

    def count(self) -> int:
        return len(self._intervals)

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(list(self._intervals))

    def get(self, interval_id: str) -> Optional[Interval]:
        index = self._index_of(interval_id)
        return None if index is None else self._intervals[index]

    def filter(
        self,
        args: Sequence[str],
        now: Optional[datetime] = None,
        default: Optional[str] = None,
    ) -> list[Interval]:
        predicates = resolve_filter(args, now=now, default=default)
        return [i for i in self._intervals if apply_filters(i, predicates)]

    def get_current(self) -> Optional[Interval]:
        for interval in self._intervals:
            if interval.end is None:
                return interval
        return None

    def start(self, interval: Interval, now: Optional[datetime] = None) -> Interval:
        current = self.get_current()
        if current is not None:
            raise AlreadyTrackingError(
                f"Interval {current.id} is still being tracked; stop it first."
            )
        interval.id = self._new_id()
        if interval.begin is None:
            interval.begin = now or datetime.now()
        interval.end = None
        self._intervals.append(interval)
        logger.debug("Started interval %s at %s", interval.id, interval.begin)
        return interval

    def stop(self, now: Optional[datetime] = None) -> Optional[Interval]:
        current = self.get_current()
        if current is None:
            return None
        current.end = now or datetime.now()
        logger.debug("Stopped interval %s at %s", current.id, current.end)
        return current

    def cancel(self) -> Optional[Interval]:
        current = self.get_current()
        if current is None:
            return None
        self._intervals.remove(current)
        logger.debug("Cancelled interval %s", current.id)
        return current

    def append(self, interval: Interval, now: Optional[datetime] = None) -> Interval:
        if not interval.id:
            interval.id = self._new_id()
        elif self._index_of(interval.id) is not None:
            raise InvalidIntervalError(f"Interval id {interval.id!r} is already stored")
        if interval.begin is None:
            interval.begin = now or datetime.now()
        if interval.end is None:
            interval.end = interval.begin
        self._intervals.append(interval)
        logger.debug("Appended interval %s", interval.id)
        return interval

    def apply(self, interval: Interval) -> Interval:
        index = self._index_of(interval.id)
        if index is None:
            raise NotFoundError(f"No interval found for id={interval.id!r}")
        if interval.begin is None:
            raise InvalidIntervalError(f"Interval {interval.id} has no begin time")
        if interval.end is None:
            current = self.get_current()
            if current is not None and current.id != interval.id:
                raise AlreadyTrackingError(
                    f"Interval {current.id} is already open; {interval.id} must have an end."
                )
        updated = dataclasses.replace(interval, tags=list(interval.tags))
        self._intervals[index] = updated
        logger.debug("Applied update to interval %s", interval.id)
        return updated

    def remove_by_id(self, interval_id: str) -> bool:
        index = self._index_of(interval_id)
        if index is None:
            return False
        del self._intervals[index]
        logger.debug("Removed interval %s", interval_id)
        return True

    def latest(self) -> Interval:
        if not self._intervals:
            raise EmptyStoreError("No intervals have been tracked yet.")
        return max(self._intervals, key=lambda interval: interval.begin)

    def total_duration(
        self, intervals: Sequence[Interval], now: Optional[datetime] = None
    ) -> timedelta:
        now = now or datetime.now()
        return sum((i.get_duration(now) for i in intervals), timedelta(0))

    def _index_of(self, interval_id: str) -> Optional[int]:
        if not interval_id:
            return None
        for index, interval in enumerate(self._intervals):
            if interval.id == interval_id:
                return index
        return None

    def _new_id(self) -> str:
        existing = {interval.id for interval in self._intervals}
        while True:
            candidate = uuid.uuid4().hex[:ID_LENGTH]
            if candidate not in existing:
                return candidate


def _check_invariants(intervals: Sequence[Interval], path: Path) -> None:
    seen: set[str] = set()
    open_ids: list[str] = []
    for interval in intervals:
        if not interval.id:
            raise CorruptStoreError(f"Store file {path} holds an interval without id")
        if interval.id in seen:
            raise CorruptStoreError(f"Store file {path} holds duplicate id {interval.id!r}")
        seen.add(interval.id)
        if interval.end is None:
            open_ids.append(interval.id)
    if len(open_ids) > 1:
        raise CorruptStoreError(
            f"Store file {path} holds {len(open_ids)} open intervals: {', '.join(open_ids)}"
        )


@contextmanager
def open_store(path: Path) -> Iterator[IntervalStore]:
    """Load the store for the duration of a command and save it on normal exit."""
    store = IntervalStore.read(path)
    yield store
    store.save()
