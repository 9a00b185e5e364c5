from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from dtr_reconciler.errors import DateRangeError
from dtr_reconciler.timeutils import (
    clock_to_minutes,
    date_range,
    extract_clock,
    extract_date,
    is_weekend,
    minutes_to_time,
    parse_date,
    stored_month_day,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2023-12-25", date(2023, 12, 25)),
        ("2023-12-25T00:00:00Z", date(2023, 12, 25)),
        ("2023-12-24T16:00:00.000Z", date(2023, 12, 24)),
        ("2025-03-03 08:10:00", date(2025, 3, 3)),
        ("3/7/2025", date(2025, 3, 7)),
        (datetime(2025, 1, 2, 23, 59), date(2025, 1, 2)),
        (date(2025, 1, 2), date(2025, 1, 2)),
    ],
)
def test_extract_date_reads_stored_calendar_components(value, expected):
    assert extract_date(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", "2025-02-30", "2025-13-01"])
def test_extract_date_rejects_unreadable_values(value):
    assert extract_date(value) is None


def test_stored_month_day_ignores_timezone_suffix():
    assert stored_month_day("2023-12-25T00:00:00+08:00") == (12, 25)
    assert stored_month_day(datetime(2023, 12, 25, 23, 30)) == (12, 25)
    assert stored_month_day("garbage") is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("08:10", time(8, 10)),
        ("8:05:33", time(8, 5)),
        ("2025-03-03 17:45:00", time(17, 45)),
        ("2025-03-03T07:59:59.123Z", time(7, 59)),
        (datetime(2025, 3, 3, 12, 1, 50), time(12, 1)),
        (timedelta(hours=13, minutes=5), time(13, 5)),
        (time(6, 30, 15), time(6, 30)),
    ],
)
def test_extract_clock(value, expected):
    assert extract_clock(value) == expected


@pytest.mark.parametrize("value", [None, "", "-", "25:00", "2025-03-03", "noon"])
def test_extract_clock_rejects_unreadable_values(value):
    assert extract_clock(value) is None


def test_minute_conversions():
    assert clock_to_minutes("08:10") == 490
    assert clock_to_minutes(None) is None
    assert minutes_to_time(490) == time(8, 10)


def test_is_weekend():
    assert is_weekend(date(2025, 3, 8))
    assert is_weekend(date(2025, 3, 9))
    assert not is_weekend(date(2025, 3, 7))


def test_parse_date_rejects_malformed_input():
    with pytest.raises(DateRangeError):
        parse_date("2025/03/01", field_name="date_from")


def test_date_range_is_inclusive_and_ordered():
    days = date_range(date(2025, 2, 27), date(2025, 3, 2), max_days=366)
    assert days == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1), date(2025, 3, 2)]


def test_date_range_single_day():
    assert date_range(date(2025, 3, 3), date(2025, 3, 3), max_days=1) == [date(2025, 3, 3)]


def test_date_range_rejects_inverted_bounds():
    with pytest.raises(DateRangeError):
        date_range(date(2025, 3, 5), date(2025, 3, 1), max_days=366)


def test_date_range_rejects_absurd_span():
    with pytest.raises(DateRangeError):
        date_range(date(2000, 1, 1), date(2025, 1, 1), max_days=366)
