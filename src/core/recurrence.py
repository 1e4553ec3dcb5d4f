"""Reminder recurrence expansion — pure business logic.

Turns a reminder configuration into an ordered list of concrete occurrences,
each with a stable identifier the delivery provider uses to replace or
cancel it.

Three configuration shapes:
- daily time-of-day (habits): one trigger per day over a rolling horizon,
  ids indexed by day offset from today;
- explicit date set (habits): one trigger per future date, ids indexed by
  position in the sorted date set;
- medication frequency: fixed slot hours over a 7-day window, ids keyed by
  wall-clock timestamp because medication schedules are regenerated wholesale.

Recurring expansions keep today's slot even when it has already passed (the
consumer de-duplicates by id); explicit dates never yield a past trigger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Iterable, Union

from src.core.day_math import add_days, at_time
from src.data.models import MedicationFrequency

if TYPE_CHECKING:
    from src.data.models import Habit

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_TIME = time(9, 0)
HABIT_HORIZON_DAYS = 30
MEDICATION_HORIZON_DAYS = 7

# Slot hours per frequency; the minute always comes from the base time.
_DAILY_SLOT_HOURS = {
    MedicationFrequency.TWICE: (8, 20),
    MedicationFrequency.THRICE: (8, 14, 20),
}
# Weekdays in Python numbering (Monday=0).
_WEEKLY_SLOT_DAYS = {
    MedicationFrequency.TWICE_WEEKLY: (0, 3),        # Monday, Thursday
    MedicationFrequency.THRICE_WEEKLY: (0, 2, 4),    # Monday, Wednesday, Friday
}
_WEEKLY_SLOT_HOUR = 8
_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class Occurrence:
    occurrence_id: str
    trigger_at: datetime


@dataclass(frozen=True)
class DailyReminder:
    habit_id: int
    time_of_day: time | None


@dataclass(frozen=True)
class DateSetReminder:
    habit_id: int
    dates: tuple[date, ...]
    time_of_day: time | None = None


@dataclass(frozen=True)
class MedicationReminder:
    medication_id: int
    frequency: MedicationFrequency
    base_time: time | None


ReminderConfig = Union[DailyReminder, DateSetReminder, MedicationReminder]


def _time_or_default(time_of_day: time | None, what: str) -> time:
    if time_of_day is None:
        logger.warning("No reminder time for %s, using %s", what, DEFAULT_REMINDER_TIME)
        return DEFAULT_REMINDER_TIME
    return time_of_day


def expand_daily(
    habit_id: int,
    time_of_day: time | None,
    now: datetime,
    horizon_days: int = HABIT_HORIZON_DAYS,
) -> list[Occurrence]:
    """One trigger per day for ``horizon_days`` days starting today."""
    time_of_day = _time_or_default(time_of_day, f"daily habit #{habit_id}")
    return [
        Occurrence(
            occurrence_id=f"{habit_id}_daily_{day}",
            trigger_at=at_time(add_days(now, day), time_of_day),
        )
        for day in range(horizon_days)
    ]


def expand_dates(
    habit_id: int,
    dates: Iterable[date],
    time_of_day: time | None,
    now: datetime,
) -> list[Occurrence]:
    """One trigger per selected date whose trigger instant is after ``now``."""
    time_of_day = time_of_day or DEFAULT_REMINDER_TIME
    occurrences = []
    for index, day in enumerate(sorted(set(dates))):
        trigger_at = at_time(day, time_of_day)
        if trigger_at <= now:
            continue
        occurrences.append(
            Occurrence(occurrence_id=f"{habit_id}_date_{index}", trigger_at=trigger_at)
        )
    return occurrences


def medication_slots(
    frequency: MedicationFrequency,
    base_time: time | None,
    now: datetime,
    horizon_days: int = MEDICATION_HORIZON_DAYS,
) -> list[datetime]:
    """Scheduled dose instants for the window starting today, ascending."""
    if frequency is MedicationFrequency.AS_NEEDED:
        return []

    base_time = _time_or_default(base_time, f"medication ({frequency.value})")
    minute = base_time.minute
    slots: list[datetime] = []

    for day_offset in range(horizon_days):
        day = add_days(now, day_offset)
        if frequency is MedicationFrequency.ONCE:
            slots.append(at_time(day, base_time))
        elif frequency in _DAILY_SLOT_HOURS:
            for hour in _DAILY_SLOT_HOURS[frequency]:
                slots.append(at_time(day, time(hour, minute)))
        elif day.weekday() in _WEEKLY_SLOT_DAYS[frequency]:
            slots.append(at_time(day, time(_WEEKLY_SLOT_HOUR, minute)))

    return sorted(slots)


def medication_occurrence_id(medication_id: int, trigger_at: datetime) -> str:
    """Id keyed by wall-clock seconds since 1970-01-01, independent of host zone."""
    seconds = (trigger_at.replace(tzinfo=None) - _EPOCH) // timedelta(seconds=1)
    return f"{medication_id}_{seconds}"


def expand_medication(
    medication_id: int,
    frequency: MedicationFrequency,
    base_time: time | None,
    now: datetime,
    horizon_days: int = MEDICATION_HORIZON_DAYS,
) -> list[Occurrence]:
    return [
        Occurrence(medication_occurrence_id(medication_id, slot), slot)
        for slot in medication_slots(frequency, base_time, now, horizon_days)
    ]


def expand(
    config: ReminderConfig,
    now: datetime,
    horizon_days: int | None = None,
) -> list[Occurrence]:
    """Expand any reminder configuration into ordered occurrences."""
    if isinstance(config, DailyReminder):
        return expand_daily(
            config.habit_id, config.time_of_day, now,
            horizon_days or HABIT_HORIZON_DAYS,
        )
    if isinstance(config, DateSetReminder):
        return expand_dates(config.habit_id, config.dates, config.time_of_day, now)
    if isinstance(config, MedicationReminder):
        return expand_medication(
            config.medication_id, config.frequency, config.base_time, now,
            horizon_days or MEDICATION_HORIZON_DAYS,
        )
    raise TypeError(f"Unsupported reminder config: {config!r}")


def habit_reminder_config(
    habit: Habit, default_time: time = DEFAULT_REMINDER_TIME,
) -> ReminderConfig | None:
    """Pick the reminder configuration a habit uses, if any.

    Explicit dates win over a daily time; the daily time then only sets the
    hour of each dated reminder, and ``default_time`` when there is none.
    """
    if habit.reminder_dates:
        return DateSetReminder(
            habit.id, tuple(habit.reminder_dates), habit.reminder_time or default_time,
        )
    if habit.reminder_time is not None:
        return DailyReminder(habit.id, habit.reminder_time)
    return None


def expand_habit(
    habit: Habit,
    now: datetime,
    horizon_days: int = HABIT_HORIZON_DAYS,
    default_time: time = DEFAULT_REMINDER_TIME,
) -> list[Occurrence]:
    config = habit_reminder_config(habit, default_time)
    if config is None:
        return []
    return expand(config, now, horizon_days)
