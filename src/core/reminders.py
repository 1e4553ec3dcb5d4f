"""Reminder payloads — occurrences turned into deliverable reminders.

Also enumerates the occurrence ids a habit or medication may have scheduled,
so callers can cancel them before re-expanding.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import TYPE_CHECKING

from src.core.recurrence import (
    DEFAULT_REMINDER_TIME,
    HABIT_HORIZON_DAYS,
    expand_habit,
    medication_occurrence_id,
)
from src.ports.reminder_port import HABIT_CATEGORY, MEDICATION_CATEGORY, Reminder

if TYPE_CHECKING:
    from src.data.models import Habit, MedicationEntry

_HABIT_BODY = "Time to work on your habit"


def habit_reminders(
    habit: Habit,
    now: datetime,
    horizon_days: int = HABIT_HORIZON_DAYS,
    default_time: time = DEFAULT_REMINDER_TIME,
) -> list[Reminder]:
    body = habit.notes if habit.notes else _HABIT_BODY
    return [
        Reminder(
            occurrence_id=occ.occurrence_id,
            trigger_at=occ.trigger_at,
            title=f"🔔 {habit.title}",
            body=body,
            category=HABIT_CATEGORY,
        )
        for occ in expand_habit(habit, now, horizon_days, default_time)
    ]


def habit_occurrence_ids(habit: Habit, horizon_days: int = HABIT_HORIZON_DAYS) -> list[str]:
    """Every id a habit's reminders could be using, regardless of shape."""
    ids = [f"{habit.id}_daily_{day}" for day in range(horizon_days)]
    ids.extend(f"{habit.id}_date_{i}" for i in range(len(set(habit.reminder_dates))))
    return ids


def medication_reminders(
    medication: MedicationEntry,
    after: datetime | None = None,
) -> list[Reminder]:
    """Reminders for the medication's scheduled times (optionally only future ones)."""
    return [
        Reminder(
            occurrence_id=medication_occurrence_id(medication.id, scheduled),
            trigger_at=scheduled,
            title=f"💊 {medication.name}",
            body=f"Take {medication.dosage}",
            category=MEDICATION_CATEGORY,
        )
        for scheduled in sorted(medication.scheduled_times)
        if after is None or scheduled > after
    ]


def medication_occurrence_ids(
    medication: MedicationEntry, since: datetime | None = None,
) -> list[str]:
    """Ids of the scheduled doses, optionally only those at or after ``since``."""
    return [
        medication_occurrence_id(medication.id, scheduled)
        for scheduled in medication.scheduled_times
        if since is None or scheduled >= since
    ]
