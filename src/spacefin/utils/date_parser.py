"""Date parsing and calendar-month utilities."""

from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    dates: "today", "yesterday", "tomorrow", and "last/this/next month|year".
    Relative month and year expressions resolve to the first day of that
    period.

    Args:
        date_str: Date string in various formats
        today: Reference date for relative expressions (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    offsets = {"last ": -1, "this ": 0, "next ": 1}
    for prefix, offset in offsets.items():
        if date_str.startswith(prefix):
            period = date_str[len(prefix):]
            if period == "month":
                return add_months(month_start(today), offset)
            if period == "year":
                return today.replace(month=1, day=1) + relativedelta(years=offset)

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(value: str) -> datetime:
    """Parse an ISO or free-form timestamp string.

    Raises:
        ValueError: If the string cannot be parsed
    """
    try:
        return date_parser.parse(value)
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse timestamp '{value}': {e}")


def as_date(value: date) -> date:
    """Drop the time component of a datetime; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def month_start(day: date) -> date:
    """Return the first day of the month containing day."""
    return as_date(day).replace(day=1)


def add_months(day: date, months: int) -> date:
    """Shift a date by a number of calendar months."""
    return day + relativedelta(months=months)


def month_bounds(day: date) -> tuple[date, date]:
    """Return the half-open [start, end) bounds of the month containing day."""
    start = month_start(day)
    return start, add_months(start, 1)


def trailing_months(as_of: date, count: int) -> list[date]:
    """Return the first days of the count months ending with as_of's month.

    Months are ordered oldest to newest.
    """
    if count < 1:
        raise ValueError(f"Month count must be at least 1, got {count}")
    last = month_start(as_of)
    return [add_months(last, -offset) for offset in range(count - 1, -1, -1)]


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get inclusive start and end dates for a named period.

    Args:
        period: One of this-month, last-month, this-year, last-year
        today: Reference date (defaults to date.today())

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return month_start(today), today

    elif period == "last-month":
        start = add_months(month_start(today), -1)
        return start, month_start(today) - timedelta(days=1)

    elif period == "this-year":
        return today.replace(month=1, day=1), today

    elif period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, today.replace(month=1, day=1) - timedelta(days=1)

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: "
            "this-month, last-month, this-year, last-year"
        )
