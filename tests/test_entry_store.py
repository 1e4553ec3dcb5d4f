"""Tests for src.core.entry_store — per-day entries and history."""

from datetime import date, datetime

from src.core.entry_store import (
    complete_entry,
    ensure_entry,
    entry_for_day,
    expired_history,
    is_expired,
)
from src.data.models import Habit, HabitEntry, HabitFrequency

NOW = datetime(2026, 3, 10, 9, 30)


def _habit(habit_id=1, title="Read", frequency=HabitFrequency.DAILY, days=()) -> Habit:
    habit = Habit(id=habit_id, title=title, frequency=frequency)
    habit.entries = [HabitEntry(habit_id=habit_id, day=d) for d in days]
    return habit


class TestEnsureEntry:
    def test_creates_missing_entry(self):
        habit = _habit()
        entry, created = ensure_entry(habit, NOW)
        assert created is True
        assert entry.day == date(2026, 3, 10)
        assert entry.id is None
        assert habit.entries == [entry]

    def test_returns_existing_entry(self):
        habit = _habit(days=[date(2026, 3, 10)])
        entry, created = ensure_entry(habit, NOW)
        assert created is False
        assert len(habit.entries) == 1
        assert entry_for_day(habit, date(2026, 3, 10)) is entry

    def test_entry_for_missing_day(self):
        assert entry_for_day(_habit(), NOW) is None


class TestCompleteEntry:
    def test_keeps_first_completion_instant(self):
        entry = HabitEntry(habit_id=1, day=date(2026, 3, 10))
        complete_entry(entry, datetime(2026, 3, 10, 8, 0))
        complete_entry(entry, datetime(2026, 3, 10, 9, 0))
        assert entry.is_completed is True
        assert entry.completed_at == datetime(2026, 3, 10, 8, 0)


class TestIsExpired:
    def test_daily(self):
        assert is_expired(HabitEntry(1, date(2026, 3, 9)), HabitFrequency.DAILY, NOW) is True
        assert is_expired(HabitEntry(1, date(2026, 3, 10)), HabitFrequency.DAILY, NOW) is False

    def test_weekly(self):
        assert is_expired(HabitEntry(1, date(2026, 3, 3)), HabitFrequency.WEEKLY, NOW) is True
        assert is_expired(HabitEntry(1, date(2026, 3, 4)), HabitFrequency.WEEKLY, NOW) is False

    def test_monthly(self):
        assert is_expired(HabitEntry(1, date(2026, 2, 10)), HabitFrequency.MONTHLY, NOW) is True
        assert is_expired(HabitEntry(1, date(2026, 2, 11)), HabitFrequency.MONTHLY, NOW) is False


class TestExpiredHistory:
    def test_grouped_newest_first_sorted_by_title(self):
        walk = _habit(1, "Walk", days=[date(2026, 3, 8), date(2026, 3, 9), date(2026, 3, 10)])
        read = _habit(2, "Read", days=[date(2026, 3, 9)])

        history = expired_history([walk, read], NOW)

        assert [day for day, _ in history] == [date(2026, 3, 9), date(2026, 3, 8)]
        assert [h.title for h, _ in history[0][1]] == ["Read", "Walk"]
        assert [h.title for h, _ in history[1][1]] == ["Walk"]

    def test_open_periods_excluded(self):
        weekly = _habit(1, "Clean", HabitFrequency.WEEKLY, days=[date(2026, 3, 8)])
        assert expired_history([weekly], NOW) == []
