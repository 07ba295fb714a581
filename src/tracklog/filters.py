"""Temporal and metadata predicates over intervals, plus the filter keywords."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence

from .errors import InvalidFilterArgument
from .models import Interval
from .timeparse import parse_date, start_of_day

Predicate = Callable[[Interval], bool]

KEY_TODAY = ":today"
KEY_YESTERDAY = ":yesterday"
KEY_WEEK = ":week"
KEY_MONTH = ":month"
KEY_ALL = ":all"

KEYS: tuple[str, ...] = (KEY_TODAY, KEY_YESTERDAY, KEY_WEEK, KEY_MONTH, KEY_ALL)

_USAGE = (
    f"Choose one of the keys {', '.join(KEYS)} or provide a date in the format YYYY-MM-DD"
)


def project_filter(project: str) -> Predicate:
    return lambda interval: interval.project == project


def tag_filter(tag: str) -> Predicate:
    return lambda interval: tag in interval.tags


def date_filter(day: datetime) -> Predicate:
    """Match intervals that begin on the calendar day of ``day``."""
    target = day.date()

    def _matches(interval: Interval) -> bool:
        return interval.begin is not None and interval.begin.date() == target

    return _matches


def date_range_filter(start: datetime, end: datetime) -> Predicate:
    """Match intervals beginning after ``start``'s midnight and within ``end``'s day."""
    lower = start_of_day(start)
    upper = start_of_day(end) + timedelta(days=1)

    def _matches(interval: Interval) -> bool:
        return interval.begin is not None and lower < interval.begin < upper

    return _matches


def apply_filters(interval: Interval, predicates: Iterable[Predicate]) -> bool:
    return all(predicate(interval) for predicate in predicates)


def resolve_filter(
    args: Sequence[str],
    now: Optional[datetime] = None,
    default: Optional[str] = None,
) -> list[Predicate]:
    """Translate command arguments into predicates.

    Accepts no argument (everything, or ``default`` when given) or exactly one
    keyword or ``YYYY-MM-DD`` date.
    """
    args = list(args)
    if not args:
        if default is None:
            return []
        args = [default]
    if len(args) > 1:
        raise InvalidFilterArgument(f"Only one filter argument is allowed. {_USAGE}")

    now = now or datetime.now()
    token = args[0]
    today = start_of_day(now)
    if token == KEY_TODAY:
        return [date_filter(today)]
    if token == KEY_YESTERDAY:
        return [date_filter(today - timedelta(days=1))]
    if token == KEY_WEEK:
        monday = today - timedelta(days=today.isocalendar()[2] - 1)
        return [date_range_filter(monday, monday + timedelta(days=6))]
    if token == KEY_MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return [date_range_filter(today.replace(day=1), today.replace(day=last_day))]
    if token == KEY_ALL:
        return []
    try:
        return [date_filter(parse_date(token))]
    except ValueError as exc:
        raise InvalidFilterArgument(f"Invalid filter {token!r}. {_USAGE}") from exc


def resolve_day(token: str, now: Optional[datetime] = None) -> datetime:
    """Resolve ``:today``, ``:yesterday`` or ``YYYY-MM-DD`` to a midnight datetime."""
    today = start_of_day(now or datetime.now())
    if token == KEY_TODAY:
        return today
    if token == KEY_YESTERDAY:
        return today - timedelta(days=1)
    try:
        return parse_date(token)
    except ValueError as exc:
        raise InvalidFilterArgument(
            f"Invalid date {token!r}. Use {KEY_TODAY}, {KEY_YESTERDAY} or YYYY-MM-DD"
        ) from exc
