"""Parsing and formatting of dates, clock times and durations."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

DATE_FMT = "%Y-%m-%d"
TIME_FMT = "%H:%M"
DATETIME_SHORT_FMT = "%m-%d %H:%M"

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,6}))?)?$")

# Durations use the "1h30m0s" notation: signed sequence of decimal numbers,
# each with a unit suffix.
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_MICROSECONDS: dict[str, Decimal] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}


def start_of_day(value: Union[date, datetime]) -> datetime:
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def parse_date(value: str) -> datetime:
    """Parse ``YYYY-MM-DD`` into a datetime at midnight."""
    return datetime.strptime(value.strip(), DATE_FMT)


def parse_clock(value: str) -> Optional[time]:
    """Parse ``HH:MM[:SS[.ffffff]]``; an empty value means unset and yields ``None``."""
    stripped = value.strip()
    if not stripped:
        return None
    match = _CLOCK_RE.match(stripped)
    if not match:
        raise ValueError(f"Invalid HH:MM: {value!r}")
    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    micros = int((match.group(4) or "").ljust(6, "0"))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59 and 0 <= seconds <= 59):
        raise ValueError(f"Invalid HH:MM: {value!r}")
    return time(hours, minutes, seconds, micros)


def format_clock(value: Union[datetime, time]) -> str:
    """``HH:MM``, widened to seconds and microseconds only when they are set."""
    if value.microsecond:
        return value.strftime("%H:%M:%S.%f")
    if value.second:
        return value.strftime("%H:%M:%S")
    return value.strftime(TIME_FMT)


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``1h30m``, ``90m``, ``1.5h`` or ``0s``."""
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)

    total = Decimal(0)
    position = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != position:
            break
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation as exc:
            raise ValueError(f"invalid duration {value!r}") from exc
        total += amount * _UNIT_MICROSECONDS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(microseconds=sign * int(total.to_integral_value()))


def format_duration(value: timedelta) -> str:
    """Inverse of :func:`parse_duration`; zero renders as ``0s``."""
    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_decimal_units(micros, 1_000)}ms"

    hours, remainder = divmod(micros, 3_600_000_000)
    minutes, remainder = divmod(remainder, 60_000_000)
    seconds = _decimal_units(remainder, 1_000_000)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _decimal_units(value: int, unit: int) -> str:
    whole, fraction = divmod(value, unit)
    if not fraction:
        return str(whole)
    width = len(str(unit)) - 1
    digits = str(fraction).rjust(width, "0").rstrip("0")
    return f"{whole}.{digits}"
