"""Medication dose ledger — pure business logic.

Compares taken timestamps with scheduled timestamps for the current calendar
day. A ratio above 1.0 means more doses were taken than scheduled and is
returned as-is.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from src.core.day_math import at_time, is_same_day

if TYPE_CHECKING:
    from src.data.models import MedicationEntry


def doses_scheduled_today(medication: MedicationEntry, now: datetime) -> list[datetime]:
    return sorted(t for t in medication.scheduled_times if is_same_day(t, now))


def doses_taken_today(medication: MedicationEntry, now: datetime) -> list[datetime]:
    return sorted(t for t in medication.taken_times if is_same_day(t, now))


def completion_percentage(medication: MedicationEntry, now: datetime) -> float:
    """Taken-today divided by scheduled-today; 0.0 when nothing is due today."""
    scheduled = doses_scheduled_today(medication, now)
    if not scheduled:
        return 0.0
    return len(doses_taken_today(medication, now)) / len(scheduled)


def next_dose_time(medication: MedicationEntry, now: datetime) -> datetime | None:
    """Next dose today, else the earliest scheduled time carried to tomorrow.

    The fallback keeps only the hour and minute of the earliest scheduled
    instant on record, so for weekly frequencies it can name a day with no
    dose actually scheduled.
    """
    for scheduled in doses_scheduled_today(medication, now):
        if scheduled > now:
            return scheduled
    if not medication.scheduled_times:
        return None
    earliest = min(medication.scheduled_times)
    return at_time(now + timedelta(days=1), earliest.time())


def mark_taken(medication: MedicationEntry, at: datetime) -> None:
    """Append a taken timestamp. The taken log is append-only."""
    medication.taken_times.append(at)
