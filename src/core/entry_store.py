"""Per-day habit entries — lookup, lazy creation and history grouping.

A habit holds at most one entry per calendar day. Entries created here have
``id=None`` until the storage layer persists them.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterable

from src.core.day_math import add_months, as_day
from src.data.models import HabitEntry, HabitFrequency

if TYPE_CHECKING:
    from src.data.models import Habit


def entry_for_day(habit: Habit, day: date | datetime) -> HabitEntry | None:
    """Return the habit's entry for ``day``, or None."""
    day = as_day(day)
    for entry in habit.entries:
        if entry.day == day:
            return entry
    return None


def ensure_entry(habit: Habit, day: date | datetime) -> tuple[HabitEntry, bool]:
    """Return the entry for ``day``, creating an open one if missing.

    Returns (entry, created).
    """
    existing = entry_for_day(habit, day)
    if existing is not None:
        return existing, False
    entry = HabitEntry(habit_id=habit.id, day=as_day(day))
    habit.entries.append(entry)
    return entry, True


def complete_entry(entry: HabitEntry, at: datetime) -> None:
    """Mark an entry completed, keeping the first completion instant."""
    entry.is_completed = True
    if entry.completed_at is None:
        entry.completed_at = at


def is_expired(entry: HabitEntry, frequency: HabitFrequency, now: datetime) -> bool:
    """Check whether the period an entry belongs to is over.

    Daily entries expire at the next day; weekly entries one week after the
    entry day; monthly entries one calendar month after it.
    """
    if frequency is HabitFrequency.DAILY:
        return entry.day < now.date()
    if frequency is HabitFrequency.WEEKLY:
        return entry.day + timedelta(weeks=1) <= now.date()
    return add_months(entry.day, 1) <= now.date()


def expired_history(
    habits: Iterable[Habit], now: datetime,
) -> list[tuple[date, list[tuple[Habit, HabitEntry]]]]:
    """Group expired entries by day, newest day first, titles ascending."""
    grouped: dict[date, list[tuple[Habit, HabitEntry]]] = {}
    for habit in habits:
        for entry in habit.entries:
            if is_expired(entry, habit.frequency, now):
                grouped.setdefault(entry.day, []).append((habit, entry))

    return [
        (day, sorted(grouped[day], key=lambda pair: pair[0].title))
        for day in sorted(grouped, reverse=True)
    ]
