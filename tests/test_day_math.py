"""Tests for src.core.day_math."""

from datetime import date, datetime, time

from src.core.day_math import (
    add_days,
    add_months,
    as_day,
    at_time,
    day_difference,
    is_same_day,
    start_of_day,
)


class TestDayMath:
    def test_as_day(self):
        assert as_day(datetime(2026, 3, 10, 23, 59)) == date(2026, 3, 10)
        assert as_day(date(2026, 3, 10)) == date(2026, 3, 10)

    def test_start_of_day(self):
        assert start_of_day(datetime(2026, 3, 10, 17, 4)) == datetime(2026, 3, 10)

    def test_day_difference_ignores_time(self):
        assert day_difference(datetime(2026, 3, 9, 23, 59), datetime(2026, 3, 10, 0, 1)) == 1
        assert day_difference(date(2026, 3, 10), date(2026, 3, 8)) == -2

    def test_is_same_day(self):
        assert is_same_day(datetime(2026, 3, 10, 0, 0), date(2026, 3, 10)) is True
        assert is_same_day(datetime(2026, 3, 10), datetime(2026, 3, 11)) is False

    def test_at_time_drops_seconds(self):
        assert at_time(date(2026, 3, 10), time(7, 30, 59)) == datetime(2026, 3, 10, 7, 30)

    def test_add_days_crosses_month(self):
        assert add_days(datetime(2026, 3, 30, 12, 0), 3) == date(2026, 4, 2)


class TestAddMonths:
    def test_plain(self):
        assert add_months(date(2026, 3, 10), 1) == date(2026, 4, 10)

    def test_clamps_to_month_end(self):
        assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)

    def test_year_rollover(self):
        assert add_months(date(2026, 12, 15), 1) == date(2027, 1, 15)
