"""Bulk editing of intervals through a plain-text document and an external editor.

A filtered slice of the store is written as one bracketed row per interval::

    [ID]  [DATE]  [BEGIN]  [END]  [DURATION]  [ANNOTATION TOKENS]

The user edits, deletes or adds rows; the document is then parsed back as a
whole and reconciled against the store. Rows with an empty ID are new
intervals, rows with an ID replace the stored interval, and IDs that vanished
from the document are removed.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .db import IntervalStore
from .errors import (
    DateParseError,
    DurationParseError,
    EditorError,
    EditParseError,
    MissingDateError,
    NotFoundError,
)
from .models import Interval
from .timeparse import (
    DATE_FMT,
    format_clock,
    format_duration,
    parse_clock,
    parse_date,
    parse_duration,
)

logger = logging.getLogger(__name__)

FIELD_COUNT = 6

_FIELD_RE = re.compile(r"\[([^\[\]]*)\]")
_MIDNIGHT = time(0, 0)

_HEADER = (
    "# Edit below values to change tracking data",
    "# - delete rows to delete",
    "# - set time values 00:00 or leave them empty to just set a duration",
    "# - the duration is ignored when begin and end are both set",
)


@dataclass(slots=True)
class ReconcileResult:
    added: list[Interval] = field(default_factory=list)
    updated: list[Interval] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)


def serialize(
    intervals: Iterable[Interval],
    filter_args: Sequence[str],
    now: Optional[datetime] = None,
) -> str:
    """Render ``intervals`` as an editable document."""
    rows = [_row_cells(interval) for interval in intervals]
    widths = [0] * (FIELD_COUNT - 1)
    for cells in rows:
        for index, cell in enumerate(cells[:-1]):
            widths[index] = max(widths[index], len(cell))

    lines = list(_HEADER)
    lines.append("")
    for cells in rows:
        padded = [cell.ljust(widths[index]) for index, cell in enumerate(cells[:-1])]
        lines.append("  ".join(padded + [cells[-1]]))

    today = (now or datetime.now()).strftime(DATE_FMT)
    lines.extend(
        [
            "",
            "",
            "# NEW ENTRIES HERE " + "#" * 45,
            "# [ID (empty)] [DATE] [BEGIN] [END] [DURATION] [ANNOTATION]",
            "",
            f"# [] [{today}] [] [] [] []",
            "",
            "",
            "# meta " + "#" * 57,
            f"# ;; filter == {' '.join(filter_args)}",
        ]
    )
    return "\n".join(lines) + "\n"


def _row_cells(interval: Interval) -> list[str]:
    begin = interval.begin
    end = interval.end
    values = [
        interval.id,
        begin.strftime(DATE_FMT) if begin else "",
        format_clock(begin) if begin else "",
        format_clock(end) if end else "",
        format_duration(interval.duration),
        " ".join(interval.tokens()),
    ]
    return [f"[{value}]" for value in values]


def parse(text: str) -> list[Interval]:
    """Parse an edited document; the first malformed row aborts the whole parse."""
    result: list[Interval] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            result.append(parse_line(line))
        except EditParseError as exc:
            raise type(exc)(exc.detail, line_number) from exc
    return result


def parse_line(line: str) -> Interval:
    fields = [value.strip() for value in _FIELD_RE.findall(line)]
    if len(fields) > FIELD_COUNT:
        raise EditParseError(
            f"expected at most {FIELD_COUNT} bracketed fields, found {len(fields)}"
        )
    fields.extend([""] * (FIELD_COUNT - len(fields)))
    interval_id, day, begin, end, duration, annotation = fields

    interval = Interval.from_tokens(annotation.split())

    if not day:
        raise MissingDateError("date is empty but should be filled with format YYYY-MM-DD")
    try:
        date_value = parse_date(day)
    except ValueError as exc:
        raise DateParseError(f"cannot parse date {day!r}, expected YYYY-MM-DD") from exc

    begin_time = _parse_time(begin, "begin")
    end_time = _parse_time(end, "end")

    # A 00:00 (or empty) begin or end means "no clock times": the row is a
    # bare duration booked on the date.
    if begin_time not in (None, _MIDNIGHT) and end_time not in (None, _MIDNIGHT):
        interval.begin = datetime.combine(date_value.date(), begin_time)
        interval.end = datetime.combine(date_value.date(), end_time)
        # END before BEGIN: the interval ran past midnight into the next day.
        if interval.end < interval.begin:
            interval.end += timedelta(days=1)
    else:
        try:
            interval.duration = parse_duration(duration)
        except ValueError as exc:
            raise DurationParseError(f"cannot parse duration {duration!r}") from exc
        interval.begin = date_value
        interval.end = date_value

    interval.id = interval_id
    return interval


def _parse_time(value: str, label: str) -> Optional[time]:
    try:
        return parse_clock(value)
    except ValueError as exc:
        raise DateParseError(f"cannot parse {label} time {value!r}, expected HH:MM[:SS]") from exc


def reconcile(
    store: IntervalStore,
    before_ids: Sequence[str],
    parsed: Sequence[Interval],
) -> ReconcileResult:
    """Write parsed rows back into ``store``.

    ``after_ids`` holds every ID in the document once written, including the
    ones just assigned to new rows. Deletions are only inferred when its size
    differs from ``before_ids``, so a document that drops one row and adds
    another keeps the dropped interval.
    """
    unknown = [i.id for i in parsed if i.id and store.get(i.id) is None]
    if unknown:
        raise NotFoundError(f"Unknown interval id(s) in edit document: {', '.join(unknown)}")

    result = ReconcileResult()
    after_ids: list[str] = []
    for interval in parsed:
        if not interval.id:
            added = store.append(interval)
            result.added.append(added)
            after_ids.append(added.id)
        else:
            result.updated.append(store.apply(interval))
            after_ids.append(interval.id)

    if len(before_ids) != len(after_ids):
        for before_id in before_ids:
            if before_id not in after_ids:
                store.remove_by_id(before_id)
                result.removed.append(before_id)

    logger.info(
        "Reconciled edit: %d added, %d updated, %d removed",
        len(result.added),
        len(result.updated),
        len(result.removed),
    )
    return result


def run_editor(editor: str, path: Path) -> None:
    """Block until ``editor`` exits after editing ``path``."""
    command = shlex.split(editor) + [str(path)]
    logger.info("Launching editor: %s", " ".join(command))
    try:
        subprocess.run(command, check=True)
    except subprocess.CalledProcessError as exc:
        raise EditorError(f"Editor exited with status {exc.returncode}; nothing changed.") from exc
    except OSError as exc:
        raise EditorError(f"Cannot launch editor {editor!r}: {exc}") from exc


def edit_intervals(
    store: IntervalStore,
    filter_args: Sequence[str],
    editor: str,
    now: Optional[datetime] = None,
) -> ReconcileResult:
    """Run the full serialize, edit, parse and reconcile cycle.

    The running interval never enters the document, so editing cannot close it.
    """
    intervals = [i for i in store.filter(filter_args, now=now) if not i.is_open]
    before_ids = [interval.id for interval in intervals]
    document = serialize(intervals, filter_args, now=now)

    handle, abs_path = tempfile.mkstemp(prefix="tracklog-", suffix=".md")
    path = Path(abs_path)
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
            temp_file.write(document)
        run_editor(editor, path)
        edited = path.read_text(encoding="utf-8")
    finally:
        path.unlink(missing_ok=True)

    if edited == document:
        logger.info("Edit document unchanged; nothing to reconcile.")
        return ReconcileResult()
    return reconcile(store, before_ids, parse(edited))
