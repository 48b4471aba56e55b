"""Date and datetime parsing utilities.

All results are naive local values, matching the timestamps stored by
rentdesk.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_OFFSET_RE = re.compile(r"^(?:in\s+|\+)(\d+)\s*(minute|min|m|hour|h|day|d|week|w)s?$")
_OFFSET_UNITS = {
    "minute": "minutes",
    "min": "minutes",
    "m": "minutes",
    "hour": "hours",
    "h": "hours",
    "day": "days",
    "d": "days",
    "week": "weeks",
    "w": "weeks",
}


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this week", etc.

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates (defaults to today)

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

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            return today - timedelta(days=today.weekday() + 7)
        elif period in WEEKDAYS:
            days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7
            return today - timedelta(days=days_ago or 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def parse_datetime(value: str, now: Optional[datetime] = None) -> datetime:
    """Parse a datetime string.

    Accepts:
    - "now"
    - Offsets from now: "+2h", "in 3 days", "+90 minutes"
    - A relative day word with an optional time: "tomorrow 18:00"
    - Absolute values: "2024-01-01 10:00", "2024-01-01T10:00:00"

    A bare date resolves to midnight.

    Args:
        value: Datetime string
        now: Reference instant (defaults to the current local time)

    Returns:
        Naive datetime without microseconds

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = value.strip().lower()
    now = now or datetime.now().replace(microsecond=0)

    if text == "now":
        return now

    match = _OFFSET_RE.match(text)
    if match:
        amount, unit = match.groups()
        return now + timedelta(**{_OFFSET_UNITS[unit]: int(amount)})

    word, _, rest = text.partition(" ")
    if word in ("today", "yesterday", "tomorrow"):
        day = parse_date(word, today=now.date())
        if not rest:
            return datetime.combine(day, datetime.min.time())
        try:
            clock_time = date_parser.parse(rest).time()
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Could not parse time '{rest}': {e}") from e
        return datetime.combine(day, clock_time)

    try:
        return date_parser.parse(value.strip()).replace(microsecond=0, tzinfo=None)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse datetime '{value}': {e}") from e


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a specified period.

    Args:
        period: Period string (today, this-month, this-year, this-week,
            last-month, last-year, last-week)
        today: Reference day (defaults to today)

    Returns:
        Tuple of (start_date, end_date) for the specified period, both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "today":
        return (today, today)

    elif period == "this-month":
        return (today.replace(day=1), today)

    elif period == "this-year":
        return (today.replace(month=1, day=1), today)

    elif period == "this-week":
        return (today - timedelta(days=today.weekday()), today)

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        # Day before the first of the current month
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        end_date = today.replace(month=1, day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-week":
        start_date = today - timedelta(days=today.weekday() + 7)
        return (start_date, start_date + timedelta(days=6))

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: today, this-month, this-year, "
            "this-week, last-month, last-year, last-week"
        )
