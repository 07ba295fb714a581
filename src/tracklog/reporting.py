"""Console rendering of interval summaries and tracking status."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from .db import IntervalStore
from .filters import KEY_TODAY
from .models import Interval
from .timeparse import DATETIME_SHORT_FMT, TIME_FMT

SUMMARY_HEADER = ("CWEEK", "DAY", "BEGIN", "END", "DURATION", "PROJECT", "TAG", "ANNOTATION")
NO_TRACKING = "<< no tracking in progress >>"
RUNNING_END = "tracking..."


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, store: IntervalStore) -> None:
        self.store = store

    def print_summary(self, args: Sequence[str], now: Optional[datetime] = None) -> None:
        intervals = self.store.filter(args, now=now, default=KEY_TODAY)
        if not intervals:
            print("No intervals recorded for the selected period.")
            return
        for line in render_table(SUMMARY_HEADER, summary_rows(intervals, now=now)):
            print(line)

    def print_status(self, interval: Optional[Interval], now: Optional[datetime] = None) -> None:
        if interval is None:
            print(NO_TRACKING)
            return
        for line in status_lines(interval, self.store, now=now):
            print(line)

    def print_running_status(self, now: Optional[datetime] = None) -> None:
        self.print_status(self.store.get_current(), now=now)


def summary_rows(
    intervals: Iterable[Interval], now: Optional[datetime] = None
) -> list[tuple[str, ...]]:
    """Table rows with ``day =`` and ``wk =`` subtotal lines between groups."""
    now = now or datetime.now()
    rows: list[tuple[str, ...]] = []
    day_key = None
    week_key = None
    day_total = timedelta(0)
    week_total = timedelta(0)

    for interval in intervals:
        begin = interval.begin or now
        new_day = begin.date() != day_key
        iso_year, iso_week, _ = begin.isocalendar()
        new_week = (iso_year, iso_week) != week_key

        if new_day and day_key is not None:
            rows.extend(_day_sum_rows(day_total))
            day_total = timedelta(0)
        if new_week and week_key is not None:
            rows.extend(_week_sum_rows(week_total))
            week_total = timedelta(0)
        day_key = begin.date()
        week_key = (iso_year, iso_week)

        duration = interval.get_duration(now)
        day_total += duration
        week_total += duration
        rows.append(
            (
                str(iso_week) if new_week else "",
                begin.strftime("%m-%d") if new_day else "",
                begin.strftime(TIME_FMT),
                interval.end.strftime(TIME_FMT) if interval.end else RUNNING_END,
                format_hours_minutes(duration),
                interval.project or "",
                ", ".join(interval.tags),
                interval.annotation,
            )
        )

    rows.extend(_day_sum_rows(day_total))
    rows.extend(_week_sum_rows(week_total))
    return rows


def _day_sum_rows(total: timedelta) -> list[tuple[str, ...]]:
    if total <= timedelta(0):
        return []
    return [("", "", "", "day =", format_hours_minutes(total), "", "", "")]


def _week_sum_rows(total: timedelta) -> list[tuple[str, ...]]:
    if total <= timedelta(0):
        return []
    return [("", "", "wk =", "", format_hours_minutes(total), "", "", "")]


def status_lines(
    interval: Interval, store: IntervalStore, now: Optional[datetime] = None
) -> list[str]:
    now = now or datetime.now()
    headline = f"tracking {interval.annotation}"
    if interval.project:
        headline += f" -- proj:{interval.project}"
    if interval.tags:
        headline += f" -- {', '.join(interval.tags)}"
    if interval.ref:
        headline += f" -- ref:{interval.ref}"

    today_total = store.total_duration(store.filter([KEY_TODAY], now=now), now=now)
    details: list[tuple[str, str]] = []
    if interval.begin is not None:
        details.append(("Started", interval.begin.strftime(DATETIME_SHORT_FMT)))
    if interval.end is not None:
        details.append(("Stopped", interval.end.strftime(DATETIME_SHORT_FMT)))
    details.append(("Current (mins)", format_hours_minutes(interval.get_duration(now))))
    details.append(("Total   (today)", format_hours_minutes(today_total)))

    label_width = max(len(label) for label, _ in details)
    return [headline] + [f"    {label:<{label_width}}  {value}" for label, value in details]


def render_table(header: Sequence[str], rows: Sequence[Sequence[str]]) -> list[str]:
    widths = [len(title) for title in header]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = []
    for row in [tuple(header), *rows]:
        cells = [cell.ljust(widths[index]) for index, cell in enumerate(row)]
        lines.append("  ".join(cells).rstrip())
    return lines


def format_hours_minutes(value: timedelta) -> str:
    total_minutes = int(round(value.total_seconds() / 60))
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
