from datetime import date, datetime

import pytest

from stockbook.domain.dates import day_range, month_bounds, parse_datetime, resolve_window
from stockbook.domain.errors import InvalidDateRangeError, ValidationError
from stockbook.domain.validation import parse_id


def test_window_spans_full_days():
    start, end = resolve_window("2026-01-05T15:30:00", "2026-01-06")

    assert start == datetime(2026, 1, 5, 0, 0, 0)
    assert end == datetime(2026, 1, 6, 23, 59, 59, 999999)
    assert day_range(start, end) == ["2026-01-05", "2026-01-06"]


def test_month_bounds_for_december():
    start, end = month_bounds(date(2025, 12, 9))
    assert start == datetime(2025, 12, 1)
    assert end.date() == date(2025, 12, 31)


def test_one_missing_bound_uses_current_month():
    start, end = resolve_window(None, "2026-02-03", today=date(2026, 2, 15))
    assert start == datetime(2026, 2, 1)
    assert end.date() == date(2026, 2, 3)


def test_reversed_window_rejected():
    with pytest.raises(InvalidDateRangeError):
        resolve_window("2026-02-02", "2026-02-01")


def test_parse_accepts_dates_and_strings():
    assert parse_datetime(date(2026, 1, 1)) == datetime(2026, 1, 1)
    assert parse_datetime("2026-01-01 10:11:12") == datetime(2026, 1, 1, 10, 11, 12)
    assert parse_datetime("2026-01-01T10:00:00Z").tzinfo is None
    with pytest.raises(InvalidDateRangeError):
        parse_datetime(20260101)


@pytest.mark.parametrize("value, expected", [(7, 7), ("42", 42), (" 9 ", 9)])
def test_parse_id_accepts_positive_integers(value, expected):
    assert parse_id(value) == expected


@pytest.mark.parametrize("value", ["4.2", "", "abc", 0, -1, False, 3.0, None])
def test_parse_id_rejects_malformed(value):
    with pytest.raises(ValidationError):
        parse_id(value)
