"""Calendar-day arithmetic shared by the habit and medication core.

No I/O: every function takes the instants it compares. Datetimes are naive
local wall-clock values; a calendar day is the date part of such a value.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta


def as_day(value: date | datetime) -> date:
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day(value: date | datetime) -> datetime:
    """Return midnight at the start of the value's calendar day."""
    return datetime.combine(as_day(value), time.min)


def day_difference(earlier: date | datetime, later: date | datetime) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if reversed)."""
    return (as_day(later) - as_day(earlier)).days


def is_same_day(a: date | datetime, b: date | datetime) -> bool:
    return as_day(a) == as_day(b)


def at_time(day: date | datetime, time_of_day: time) -> datetime:
    """Combine a calendar day with an hour/minute (seconds dropped)."""
    return datetime.combine(
        as_day(day), time(hour=time_of_day.hour, minute=time_of_day.minute),
    )


def add_days(day: date | datetime, days: int) -> date:
    return as_day(day) + timedelta(days=days)


def add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))
