"""Date and clock helpers.

Stored timestamps are treated as wall-clock strings: the calendar date and
the HH:MM part are sliced out of the stored text, never re-derived through a
timezone conversion. A recurring holiday saved as ``2023-12-25T00:00:00Z``
must stay on the 25th whatever the host timezone is.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any

from .errors import DateRangeError

_YMD_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_SLASH_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_CLOCK_PATTERN = re.compile(r"(?:^|[T\s])(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?")
_BARE_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?$")


def _valid_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    match = _YMD_PATTERN.match(text[:10])
    if match:
        return _valid_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = _SLASH_PATTERN.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        return _valid_date(year, month, day)
    return None


def stored_month_day(value: Any) -> tuple[int, int] | None:
    """Month and day read from the first ten characters of a stored value."""
    if isinstance(value, datetime):
        return value.month, value.day
    if isinstance(value, date):
        return value.month, value.day
    parsed = extract_date(value)
    if parsed is None:
        return None
    return parsed.month, parsed.day


def _clock(hours: int, minutes: int) -> time | None:
    if hours > 23 or minutes > 59:
        return None
    return time(hours, minutes)


def extract_clock(value: Any) -> time | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if isinstance(value, timedelta):
        # Some drivers hand TIME columns back as a timedelta since midnight.
        total = int(value.total_seconds()) // 60
        return _clock(total // 60, total % 60)

    text = str(value).strip()
    if not text or text == "-":
        return None

    match = _BARE_CLOCK_PATTERN.match(text)
    if match is None:
        match = _CLOCK_PATTERN.search(text)
    if match is None:
        return None
    return _clock(int(match.group(1)), int(match.group(2)))


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def clock_to_minutes(value: Any) -> int | None:
    clock = extract_clock(value)
    if clock is None:
        return None
    return time_to_minutes(clock)


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def parse_date(value: Any, *, field_name: str = "date") -> date:
    parsed = extract_date(value)
    if parsed is None:
        raise DateRangeError(f"{field_name} must be in YYYY-MM-DD format, got {value!r}")
    return parsed


def date_range(start: date, end: date, *, max_days: int) -> list[date]:
    if end < start:
        raise DateRangeError(f"date_to {end.isoformat()} is before date_from {start.isoformat()}")
    total_days = (end - start).days + 1
    if total_days > max_days:
        raise DateRangeError(
            f"date range spans {total_days} days; at most {max_days} are accepted"
        )

    return [start + timedelta(days=offset) for offset in range(total_days)]
