"""
Life Companion — Habit Service.

Stateless orchestration for habits: load from storage -> run the streak,
entry and reset logic -> persist in one transaction -> (re)schedule reminders.

Any UI (a bot, a web page, a desktop app) calls this service and renders the
returned records. Storage failures are logged and reported back (``saved``
or ``did_reset`` flags) rather than raised; the in-memory result stays the
authoritative source for the next attempt.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from src.core.auto_reset import ResetOutcome, is_reset_due, maybe_reset
from src.core.entry_store import complete_entry, ensure_entry, entry_for_day, expired_history
from src.core.reminders import habit_occurrence_ids, habit_reminders
from src.core.streak import (
    apply_streak,
    is_streak_milestone,
    streaks_from_entries,
    update_streak,
)
from src.data.models import Habit, HabitFrequency

if TYPE_CHECKING:
    from src.config import Settings
    from src.data.db import HabitDB
    from src.data.models import HabitEntry
    from src.ports.clock_port import ClockPort
    from src.ports.reminder_port import ReminderPort

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {"title", "notes", "frequency", "target_count", "reminder_time", "reminder_dates"}
)


@dataclass
class IncrementResult:
    habit: Habit
    newly_completed: bool      # target reached by this increment
    celebrate: bool            # streak hit a milestone and celebrations are on
    saved: bool = True


@dataclass
class HabitResult:
    habit: Habit
    saved: bool = True


@dataclass
class EntryResult:
    entry: HabitEntry
    saved: bool = True


class HabitService:
    """View-model style operations on habits."""

    def __init__(
        self,
        db: HabitDB,
        reminders: ReminderPort | None = None,
        clock: ClockPort | None = None,
        settings: Settings | None = None,
    ) -> None:
        if settings is None:
            from src.config import settings
        if clock is None:
            from src.adapters.system_clock import SystemClock
            clock = SystemClock(settings.TIMEZONE)

        self._db = db
        self._reminders = reminders
        self._clock = clock
        self._settings = settings

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def _sync_reminders(
        self, habit: Habit, now: datetime, previous: Habit | None = None,
    ) -> None:
        """Cancel every id the habit may hold, then schedule a fresh window."""
        if self._reminders is None:
            return
        horizon = self._settings.HABIT_REMINDER_HORIZON_DAYS
        self._reminders.cancel(habit_occurrence_ids(previous or habit, horizon))
        if not self._settings.NOTIFICATIONS_ENABLED:
            return
        for reminder in habit_reminders(
            habit, now, horizon, self._settings.default_reminder_time,
        ):
            self._reminders.schedule(reminder)

    def _cancel_reminders(self, habit: Habit) -> None:
        if self._reminders is None:
            return
        self._reminders.cancel(
            habit_occurrence_ids(habit, self._settings.HABIT_REMINDER_HORIZON_DAYS)
        )

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def _require(self, habit_id: int) -> Habit:
        habit = self._db.get_habit(habit_id)
        if habit is None:
            raise ValueError(f"Habit {habit_id} not found")
        return habit

    def add_habit(
        self,
        title: str,
        frequency: HabitFrequency = HabitFrequency.DAILY,
        target_count: int = 1,
        notes: str | None = None,
        reminder_time: time | None = None,
        reminder_dates: list[date] | None = None,
    ) -> Habit | None:
        """Create a habit with an open entry for today and schedule its reminders.

        Returns None if the habit could not be stored.
        """
        now = self._clock.now()
        try:
            habit = self._db.add_habit(
                title=title,
                frequency=frequency,
                target_count=max(1, target_count),
                notes=notes,
                reminder_time=reminder_time,
                reminder_dates=reminder_dates,
                created_at=now,
                first_entry_day=now.date(),
            )
        except sqlite3.Error as exc:
            logger.error("Failed to add habit '%s': %s", title, exc)
            return None

        self._sync_reminders(habit, now)
        return habit

    def update_habit(self, habit_id: int, **changes: Any) -> HabitResult:
        """Edit a habit's definition and reschedule its reminders.

        Accepts title, notes, frequency, target_count, reminder_time and
        reminder_dates. Lowering the target to the count already reached
        completes the period as an increment would; otherwise progress and
        streak counters are left alone.
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit habit fields: {', '.join(sorted(unknown))}")

        habit = self._require(habit_id)
        previous = Habit(
            id=habit.id, title=habit.title, frequency=habit.frequency,
            reminder_dates=list(habit.reminder_dates),
        )
        for name, value in changes.items():
            setattr(habit, name, value)
        if "reminder_dates" in changes:
            habit.reminder_dates = sorted(set(habit.reminder_dates or []))
        habit.target_count = max(1, habit.target_count)

        now = self._clock.now()
        entries = []
        if habit.current_count >= habit.target_count and not habit.is_completed:
            entry, _ = ensure_entry(habit, now)
            self._complete_period(habit, entry, now)
            entries.append(entry)

        try:
            self._db.save_progress(habit, entries)
        except sqlite3.Error as exc:
            logger.error("Failed to update habit #%d: %s", habit_id, exc)
            return HabitResult(habit, saved=False)

        self._sync_reminders(habit, now, previous=previous)
        logger.info("Habit #%d edited: %s", habit_id, ", ".join(sorted(changes)))
        return HabitResult(habit)

    def delete_habit(self, habit_id: int) -> bool:
        """Cancel a habit's reminders and delete it with its entries."""
        habit = self._db.get_habit(habit_id)
        if habit is None:
            return False
        self._cancel_reminders(habit)
        try:
            return self._db.delete_habit(habit_id)
        except sqlite3.Error as exc:
            logger.error("Failed to delete habit #%d: %s", habit_id, exc)
            return False

    def list_habits(self) -> list[Habit]:
        return self._db.list_habits()

    def todays_habits(self) -> list[Habit]:
        """Habits that have an entry for today."""
        today = self._clock.now().date()
        return [h for h in self._db.list_habits() if entry_for_day(h, today) is not None]

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def _complete_period(self, habit: Habit, entry: HabitEntry, now: datetime) -> bool:
        """Complete the habit and today's entry, update the streak.

        Returns True when the new streak is a milestone worth celebrating.
        """
        habit.is_completed = True
        complete_entry(entry, now)
        old_streak = habit.current_streak
        apply_streak(habit, update_streak(habit, now))
        logger.info(
            "Habit #%d '%s' completed, streak %d (longest %d)",
            habit.id, habit.title, habit.current_streak, habit.longest_streak,
        )
        return habit.current_streak > old_streak and is_streak_milestone(
            habit.current_streak, self._settings.STREAK_CELEBRATION_ENABLED,
        )

    def increment(self, habit_id: int) -> IncrementResult:
        """Count one more repetition of a habit for today.

        The first time the target is reached in the current period the habit
        and today's entry are completed and the streak is updated. Further
        increments only raise the count.
        """
        now = self._clock.now()
        habit = self._require(habit_id)
        entry, _ = ensure_entry(habit, now)

        habit.current_count += 1
        newly_completed = False
        celebrate = False
        if habit.current_count >= habit.target_count and not habit.is_completed:
            celebrate = self._complete_period(habit, entry, now)
            newly_completed = True

        try:
            self._db.save_progress(habit, [entry])
        except sqlite3.Error as exc:
            logger.error("Failed to save progress for habit #%d: %s", habit.id, exc)
            return IncrementResult(habit, newly_completed, celebrate, saved=False)
        return IncrementResult(habit, newly_completed, celebrate)

    def set_entry_completed(
        self, habit_id: int, day: date, completed: bool,
    ) -> EntryResult:
        """Manually mark a past or current day as done or not done.

        Streak counters are untouched; use ``recalculate_streaks`` to rebuild
        them from the edited history.
        """
        now = self._clock.now()
        if day > now.date():
            raise ValueError(f"Cannot edit future day {day.isoformat()}")

        habit = self._require(habit_id)
        entry, _ = ensure_entry(habit, day)
        if completed:
            complete_entry(entry, now)
        else:
            entry.is_completed = False
            entry.completed_at = None

        try:
            self._db.save_entry(entry)
        except sqlite3.Error as exc:
            logger.error("Failed to save entry for habit #%d on %s: %s", habit_id, day, exc)
            return EntryResult(entry, saved=False)
        return EntryResult(entry)

    def recalculate_streaks(self, habit_id: int) -> HabitResult:
        """Rebuild streak counters from the habit's completed entries.

        The longest streak is never lowered.
        """
        now = self._clock.now()
        habit = self._require(habit_id)
        current, longest = streaks_from_entries(habit.entries, now)
        completed_days = [e.day for e in habit.entries if e.is_completed and e.day <= now.date()]

        habit.current_streak = current
        habit.longest_streak = max(habit.longest_streak, longest, current)
        if completed_days:
            habit.last_completed_date = max(completed_days)

        try:
            self._db.update_habit(habit)
        except sqlite3.Error as exc:
            logger.error("Failed to save recalculated streaks for #%d: %s", habit_id, exc)
            return HabitResult(habit, saved=False)
        return HabitResult(habit)

    def history(self) -> list[tuple[date, list[tuple[Habit, HabitEntry]]]]:
        """Entries whose period is over, grouped by day, newest first."""
        return expired_history(self._db.list_habits(), self._clock.now())

    # ------------------------------------------------------------------
    # Daily auto-reset
    # ------------------------------------------------------------------

    def check_auto_reset(self) -> ResetOutcome:
        """Run the daily reset if it is due, persisting the sweep atomically.

        Safe to call as often as the caller likes. If the sweep cannot be
        stored, nothing is recorded and the next call tries again.
        """
        now = self._clock.now()
        reset_time = self._settings.auto_reset_time
        try:
            last_reset = self._db.get_last_reset()
            if not is_reset_due(now, reset_time, last_reset):
                return ResetOutcome(did_reset=False, last_reset=last_reset)
            habits = self._db.list_habits()
        except sqlite3.Error as exc:
            logger.error("Auto-reset check could not read habits: %s", exc)
            return ResetOutcome(did_reset=False, last_reset=None)

        outcome = maybe_reset(habits, now, reset_time, last_reset)
        if not outcome.did_reset:
            return outcome

        try:
            self._db.save_reset_sweep(habits, now)
        except sqlite3.Error as exc:
            logger.error("Auto-reset sweep not saved, will retry next check: %s", exc)
            return ResetOutcome(did_reset=False, last_reset=last_reset)

        for habit in habits:
            self._sync_reminders(habit, now)
        return outcome
