"""Tests for date parser and calendar helpers."""

import pytest
from datetime import date, datetime, timedelta
from dateutil.relativedelta import relativedelta
from spacefin.utils.date_parser import (
    add_months,
    as_date,
    get_date_range,
    month_bounds,
    month_start,
    parse_date,
    parse_datetime,
    trailing_months,
)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    result = parse_date("today")
    assert result == date.today()


def test_parse_relative_against_reference():
    today = date(2024, 3, 1)
    assert parse_date("yesterday", today=today) == date(2024, 2, 29)
    assert parse_date("tomorrow", today=today) == date(2024, 3, 2)


def test_parse_last_month():
    """Test parsing 'last month'."""
    result = parse_date("last month")
    # Should be first day of last month
    today = date.today()
    if today.month == 1:
        expected = date(today.year - 1, 12, 1)
    else:
        expected = date(today.year, today.month - 1, 1)
    assert result == expected


def test_parse_this_and_next_month():
    today = date(2024, 12, 15)
    assert parse_date("this month", today=today) == date(2024, 12, 1)
    assert parse_date("next month", today=today) == date(2025, 1, 1)


def test_parse_this_year():
    """Test parsing 'this year'."""
    result = parse_date("this year")
    assert result == date(date.today().year, 1, 1)


def test_parse_last_year():
    """Test parsing 'last year'."""
    result = parse_date("last year")
    assert result == date(date.today().year, 1, 1) - relativedelta(years=1)


def test_parse_invalid():
    """Test that invalid dates raise ValueError."""
    with pytest.raises(ValueError):
        parse_date("invalid date string")


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15 Jan 2024") == date(2024, 1, 15)


def test_parse_datetime():
    assert parse_datetime("2024-06-03T09:30:00Z").date() == date(2024, 6, 3)
    with pytest.raises(ValueError):
        parse_datetime("soon")


def test_as_date():
    assert as_date(datetime(2024, 6, 3, 23, 0)) == date(2024, 6, 3)
    assert as_date(date(2024, 6, 3)) == date(2024, 6, 3)


def test_month_helpers():
    assert month_start(date(2024, 2, 29)) == date(2024, 2, 1)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert month_bounds(date(2024, 12, 31)) == (date(2024, 12, 1), date(2025, 1, 1))


def test_trailing_months_oldest_first():
    assert trailing_months(date(2024, 2, 10), 4) == [
        date(2023, 11, 1),
        date(2023, 12, 1),
        date(2024, 1, 1),
        date(2024, 2, 1),
    ]


def test_trailing_months_requires_positive_count():
    with pytest.raises(ValueError):
        trailing_months(date(2024, 2, 10), 0)


def test_get_date_range_this_month():
    """Test getting date range for this month."""
    today = date(2024, 6, 20)
    start, end = get_date_range("this-month", today=today)
    assert start == date(2024, 6, 1)
    assert end == today


def test_get_date_range_last_month():
    """Test getting date range for last month."""
    start, end = get_date_range("last-month", today=date(2024, 3, 15))
    assert start == date(2024, 2, 1)
    assert end == date(2024, 2, 29)


def test_get_date_range_year_boundary():
    start, end = get_date_range("last-month", today=date(2024, 1, 5))
    assert start == date(2023, 12, 1)
    assert end == date(2023, 12, 31)


def test_get_date_range_last_year():
    """Test getting date range for last year."""
    start, end = get_date_range("last-year", today=date(2024, 6, 20))
    assert start == date(2023, 1, 1)
    assert end == date(2023, 12, 31)


def test_get_date_range_this_year():
    today = date(2024, 6, 20)
    assert get_date_range("this-year", today=today) == (date(2024, 1, 1), today)


def test_get_date_range_invalid_period():
    """Test that invalid period raises ValueError."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("invalid-period")


def test_get_date_range_defaults_to_today():
    start, end = get_date_range("this-month")
    assert end == date.today()
    assert end - start < timedelta(days=31)
