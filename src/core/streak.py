"""Habit streak calculator — pure business logic.

``update_streak`` runs on completion events only; ``reset_streak_if_needed``
runs on the daily reset sweep and is what zeroes a streak nobody completed.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterable

from src.core.day_math import as_day, day_difference

if TYPE_CHECKING:
    from src.data.models import Habit, HabitEntry

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (3, 7, 14, 21, 30, 50, 100)


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    longest_streak: int
    last_completed_date: date | None


def update_streak(habit: Habit, today: date | datetime) -> StreakState:
    """Return the habit's streak state after a completion on ``today``.

    Completing twice on the same day, or on a day before the last recorded
    completion (clock moved backward), leaves the state unchanged.
    """
    today = as_day(today)
    unchanged = StreakState(
        habit.current_streak, habit.longest_streak, habit.last_completed_date,
    )

    if habit.last_completed_date is None:
        current = 1
    else:
        days_since = day_difference(habit.last_completed_date, today)
        if days_since == 0:
            return unchanged
        if days_since < 0:
            logger.warning(
                "Habit #%d completed on %s, before last completion %s; streak kept",
                habit.id, today, habit.last_completed_date,
            )
            return unchanged
        if days_since == 1:
            current = habit.current_streak + 1
        else:
            current = 1

    return StreakState(
        current_streak=current,
        longest_streak=max(habit.longest_streak, current),
        last_completed_date=today,
    )


def apply_streak(habit: Habit, state: StreakState) -> None:
    habit.current_streak = state.current_streak
    habit.longest_streak = state.longest_streak
    habit.last_completed_date = state.last_completed_date


def reset_streak_if_needed(habit: Habit, now: date | datetime) -> bool:
    """Zero the current streak when a whole day passed without completion.

    Returns True if the streak was broken by this call.
    """
    if habit.last_completed_date is None or habit.current_streak == 0:
        return False
    if day_difference(habit.last_completed_date, now) > 1:
        logger.info(
            "Habit #%d streak of %d broken (last completed %s)",
            habit.id, habit.current_streak, habit.last_completed_date,
        )
        habit.current_streak = 0
        return True
    return False


def streaks_from_entries(
    entries: Iterable[HabitEntry], today: date | datetime,
) -> tuple[int, int]:
    """Return (current_streak, longest_streak) derived from completed entries.

    The current run ends today, or yesterday when today is still open.
    """
    today = as_day(today)
    days = {e.day for e in entries if e.is_completed and e.day <= today}

    current = 0
    cursor = today if today in days else today - timedelta(days=1)
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    longest = 0
    run = 0
    last_day: date | None = None
    for d in sorted(days):
        if last_day is not None and d == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = d

    return current, longest


def is_streak_milestone(streak: int, celebration_enabled: bool = True) -> bool:
    """Check whether a streak value deserves a celebration."""
    return celebration_enabled and streak in STREAK_MILESTONES
