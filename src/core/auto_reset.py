"""Daily auto-reset — pure business logic.

Once per day, at a user-configured time-of-day, every habit's period progress
is zeroed and today's entry is made to exist. The check is pull-based: callers
invoke ``maybe_reset`` opportunistically and it decides whether a reset is due,
so calling it repeatedly for the same moment is harmless.

No I/O: persistence and reminder rescheduling belong to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import TYPE_CHECKING, Iterable

from src.core.day_math import at_time, is_same_day
from src.core.entry_store import ensure_entry
from src.core.streak import reset_streak_if_needed

if TYPE_CHECKING:
    from src.data.models import Habit, HabitEntry

logger = logging.getLogger(__name__)


@dataclass
class ResetOutcome:
    """Result of one reset check."""

    did_reset: bool
    last_reset: datetime | None
    created_entries: list[HabitEntry] = field(default_factory=list)
    broken_streaks: list[int] = field(default_factory=list)   # habit ids


def is_reset_due(
    now: datetime,
    reset_time: time,
    last_reset: datetime | None,
) -> bool:
    """Decide whether the daily reset should run at ``now``.

    On a new calendar day the reset fires once ``now`` reaches today's reset
    moment. On the same day it fires again only if the previous reset happened
    before today's reset moment (the reset time was moved later after an
    earlier reset). A missing ``last_reset`` counts as a new day.
    """
    today_reset = at_time(now, reset_time)
    is_past_reset_time = now >= today_reset

    if last_reset is None or not is_same_day(last_reset, now):
        return is_past_reset_time
    return is_past_reset_time and last_reset < today_reset


def maybe_reset(
    habits: Iterable[Habit],
    now: datetime,
    reset_time: time,
    last_reset: datetime | None,
) -> ResetOutcome:
    """Reset every habit's period progress if a reset is due.

    Mutates the habits in place. Re-zeroing counters that are already zero
    is safe, so a sweep interrupted before it was saved can simply run again.
    """
    if not is_reset_due(now, reset_time, last_reset):
        return ResetOutcome(did_reset=False, last_reset=last_reset)

    outcome = ResetOutcome(did_reset=True, last_reset=now)
    count = 0
    for habit in habits:
        entry, created = ensure_entry(habit, now)
        if created:
            outcome.created_entries.append(entry)
        if reset_streak_if_needed(habit, now):
            outcome.broken_streaks.append(habit.id)
        habit.current_count = 0
        habit.is_completed = False
        count += 1

    logger.info(
        "Auto-reset at %s: %d habits, %d new entries, %d streaks broken",
        now.isoformat(timespec="minutes"), count,
        len(outcome.created_entries), len(outcome.broken_streaks),
    )
    return outcome
