"""
Life Companion — Medication Service.

Keeps each active medication's rolling 7-day dose schedule, logs taken doses
and reports today's completion. Schedules are regenerated wholesale, so dose
reminder ids are keyed by timestamp rather than by position.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, time
from typing import TYPE_CHECKING

from src.core.day_math import start_of_day
from src.core.dose_ledger import completion_percentage, mark_taken, next_dose_time
from src.core.recurrence import medication_slots
from src.core.reminders import medication_occurrence_ids, medication_reminders

if TYPE_CHECKING:
    from src.config import Settings
    from src.data.db import MedicationDB
    from src.data.models import MedicationEntry, MedicationFrequency
    from src.ports.clock_port import ClockPort
    from src.ports.reminder_port import ReminderPort

logger = logging.getLogger(__name__)


@dataclass
class MedicationStatus:
    medication: MedicationEntry
    completion: float              # may exceed 1.0 (more doses than scheduled)
    next_dose: datetime | None


@dataclass
class DoseResult:
    medication: MedicationEntry
    completion: float
    saved: bool = True


class MedicationService:
    """View-model style operations on medications."""

    def __init__(
        self,
        db: MedicationDB,
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

    def _require(self, medication_id: int) -> MedicationEntry:
        medication = self._db.get_medication(medication_id)
        if medication is None:
            raise ValueError(f"Medication {medication_id} not found")
        return medication

    def _schedule(self, medication: MedicationEntry, now: datetime) -> None:
        if self._reminders is None or not self._settings.NOTIFICATIONS_ENABLED:
            return
        for reminder in medication_reminders(medication, after=now):
            self._reminders.schedule(reminder)

    def add_medication(
        self,
        name: str,
        dosage: str,
        frequency: MedicationFrequency,
        reminder_time: time | None = None,
    ) -> MedicationEntry | None:
        """Create an active medication with its first 7-day schedule.

        Returns None if the medication could not be stored.
        """
        now = self._clock.now()
        reminder_time = reminder_time or self._settings.default_reminder_time
        slots = medication_slots(
            frequency, reminder_time, now, self._settings.MEDICATION_HORIZON_DAYS,
        )
        try:
            medication = self._db.add_medication(
                name=name,
                dosage=dosage,
                frequency=frequency,
                scheduled_times=slots,
                reminder_time=reminder_time,
                created_at=now,
            )
        except sqlite3.Error as exc:
            logger.error("Failed to add medication '%s': %s", name, exc)
            return None

        self._schedule(medication, now)
        return medication

    def mark_taken(self, medication_id: int, at: datetime | None = None) -> DoseResult:
        """Log a dose and report today's completion ratio.

        If the dose cannot be stored the stored log is unchanged and the
        result carries ``saved=False``; the ratio is then the in-memory one.
        """
        now = self._clock.now()
        medication = self._require(medication_id)
        mark_taken(medication, at or now)
        ratio = completion_percentage(medication, now)
        try:
            self._db.update_medication(medication)
        except sqlite3.Error as exc:
            logger.error("Failed to save dose for medication #%d: %s", medication_id, exc)
            return DoseResult(medication, ratio, saved=False)
        logger.info(
            "Medication #%d '%s' taken, today %.0f%%",
            medication.id, medication.name, ratio * 100,
        )
        return DoseResult(medication, ratio)

    def deactivate(self, medication_id: int) -> bool:
        """Stop a medication: cancel its reminders and stop expanding it."""
        medication = self._db.get_medication(medication_id)
        if medication is None:
            return False
        if self._reminders is not None:
            self._reminders.cancel(
                medication_occurrence_ids(medication, since=start_of_day(self._clock.now()))
            )
        try:
            return self._db.deactivate(medication_id)
        except sqlite3.Error as exc:
            logger.error("Failed to deactivate medication #%d: %s", medication_id, exc)
            return False

    def refresh_schedules(self) -> int:
        """Regenerate every active medication's window starting today.

        The schedule is replaced wholesale, so earlier days drop out and the
        list never holds more than one window. Only reminders from today on
        are cancelled; earlier ones have already fired. Returns the number
        of medications refreshed.
        """
        now = self._clock.now()
        today_start = start_of_day(now)
        refreshed = 0

        for medication in self._db.list_medications(active_only=True):
            if self._reminders is not None:
                self._reminders.cancel(medication_occurrence_ids(medication, since=today_start))
            medication.scheduled_times = medication_slots(
                medication.frequency, medication.reminder_time, now,
                self._settings.MEDICATION_HORIZON_DAYS,
            )
            try:
                self._db.update_medication(medication)
            except sqlite3.Error as exc:
                logger.error("Failed to refresh medication #%d: %s", medication.id, exc)
                continue
            self._schedule(medication, now)
            refreshed += 1

        logger.info("Refreshed %d medication schedules", refreshed)
        return refreshed

    def today_summary(self) -> list[MedicationStatus]:
        """Completion and next dose for every active medication."""
        now = self._clock.now()
        return [
            MedicationStatus(
                medication=m,
                completion=completion_percentage(m, now),
                next_dose=next_dose_time(m, now),
            )
            for m in self._db.list_medications(active_only=True)
        ]
