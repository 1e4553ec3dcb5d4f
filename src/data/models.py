"""
Life Companion — Data Models.

Habits, their per-day entries, and medications. Entries point back to their
habit through a plain ``habit_id`` foreign key; a habit owns its entries via
the ``entries`` list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum


class HabitFrequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MedicationFrequency(Enum):
    ONCE = "once"
    TWICE = "twice"
    THRICE = "thrice"
    TWICE_WEEKLY = "twice_weekly"
    THRICE_WEEKLY = "thrice_weekly"
    AS_NEEDED = "as_needed"

    @property
    def is_weekly(self) -> bool:
        return self in (MedicationFrequency.TWICE_WEEKLY, MedicationFrequency.THRICE_WEEKLY)


@dataclass
class HabitEntry:
    """Completion record for one habit on one calendar day."""

    habit_id: int
    day: date
    is_completed: bool = False
    completed_at: datetime | None = None
    id: int | None = None              # None until persisted


@dataclass
class Habit:
    """A user-defined habit with period progress and streak counters.

    ``current_count`` may exceed ``target_count`` (over-completion).
    ``longest_streak`` never drops below ``current_streak``.
    """

    id: int
    title: str
    frequency: HabitFrequency
    target_count: int = 1
    notes: str | None = None
    current_count: int = 0
    is_completed: bool = False
    reminder_time: time | None = None                        # daily reminder
    reminder_dates: list[date] = field(default_factory=list)  # explicit dates
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: date | None = None
    created_at: datetime | None = None
    entries: list[HabitEntry] = field(default_factory=list)


@dataclass
class MedicationEntry:
    """A medication with a pre-expanded rolling schedule and a taken log."""

    id: int
    name: str
    dosage: str                                  # e.g. "500 mg"
    frequency: MedicationFrequency
    reminder_time: time | None = None
    scheduled_times: list[datetime] = field(default_factory=list)
    taken_times: list[datetime] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime | None = None
