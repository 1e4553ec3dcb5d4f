"""
Life Companion — Habit and Medication Database.

Habits, their per-day entries, medications and the last auto-reset instant
persist in SQLite. Every public method runs in its own connection, and the
``with conn:`` block is the transaction: multi-row writes such as the daily
reset sweep either commit together or not at all.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable

from src.data.models import (
    Habit,
    HabitEntry,
    HabitFrequency,
    MedicationEntry,
    MedicationFrequency,
)

logger = logging.getLogger(__name__)

_LAST_RESET_KEY = "last_reset_instant"


def _time_to_str(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


def _str_to_time(value: str | None) -> time | None:
    return datetime.strptime(value, "%H:%M").time() if value else None


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str_to_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _str_to_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class HabitDB:
    """SQLite-backed storage for habits and their daily entries."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the habit tables if they don't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS habits (
                    id             INTEGER PRIMARY KEY AUTOINCREMENT,
                    title          TEXT    NOT NULL,
                    notes          TEXT,
                    frequency      TEXT    NOT NULL DEFAULT 'daily',
                    target_count   INTEGER NOT NULL DEFAULT 1,
                    current_count  INTEGER NOT NULL DEFAULT 0,
                    is_completed   INTEGER NOT NULL DEFAULT 0,
                    reminder_time  TEXT,
                    created_at     TEXT    NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS habit_entries (
                    id            INTEGER PRIMARY KEY AUTOINCREMENT,
                    habit_id      INTEGER NOT NULL,
                    day           TEXT    NOT NULL,
                    is_completed  INTEGER NOT NULL DEFAULT 0,
                    completed_at  TEXT,
                    UNIQUE (habit_id, day)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS app_state (
                    key    TEXT PRIMARY KEY,
                    value  TEXT NOT NULL
                )
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(habits)").fetchall()
            }
            if "reminder_dates" not in existing_cols:
                conn.execute(
                    "ALTER TABLE habits ADD COLUMN reminder_dates TEXT NOT NULL DEFAULT '[]'"
                )
            if "current_streak" not in existing_cols:
                conn.execute(
                    "ALTER TABLE habits ADD COLUMN current_streak INTEGER NOT NULL DEFAULT 0"
                )
            if "longest_streak" not in existing_cols:
                conn.execute(
                    "ALTER TABLE habits ADD COLUMN longest_streak INTEGER NOT NULL DEFAULT 0"
                )
            if "last_completed_date" not in existing_cols:
                conn.execute(
                    "ALTER TABLE habits ADD COLUMN last_completed_date TEXT"
                )
        logger.debug("Habit tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> HabitEntry:
        return HabitEntry(
            id=row["id"],
            habit_id=row["habit_id"],
            day=date.fromisoformat(row["day"]),
            is_completed=bool(row["is_completed"]),
            completed_at=_str_to_dt(row["completed_at"]),
        )

    @staticmethod
    def _row_to_habit(row: sqlite3.Row, entries: list[HabitEntry]) -> Habit:
        return Habit(
            id=row["id"],
            title=row["title"],
            notes=row["notes"],
            frequency=HabitFrequency(row["frequency"]),
            target_count=row["target_count"],
            current_count=row["current_count"],
            is_completed=bool(row["is_completed"]),
            reminder_time=_str_to_time(row["reminder_time"]),
            reminder_dates=[date.fromisoformat(d) for d in json.loads(row["reminder_dates"])],
            current_streak=row["current_streak"],
            longest_streak=row["longest_streak"],
            last_completed_date=_str_to_date(row["last_completed_date"]),
            created_at=_str_to_dt(row["created_at"]),
            entries=entries,
        )

    def _entries_by_habit(
        self, conn: sqlite3.Connection, habit_id: int | None = None,
    ) -> dict[int, list[HabitEntry]]:
        query = "SELECT * FROM habit_entries"
        params: list = []
        if habit_id is not None:
            query += " WHERE habit_id = ?"
            params.append(habit_id)
        query += " ORDER BY day"

        grouped: dict[int, list[HabitEntry]] = {}
        for row in conn.execute(query, params).fetchall():
            grouped.setdefault(row["habit_id"], []).append(self._row_to_entry(row))
        return grouped

    @staticmethod
    def _write_habit(conn: sqlite3.Connection, habit: Habit) -> None:
        conn.execute(
            """
            UPDATE habits SET
                title = ?, notes = ?, frequency = ?, target_count = ?,
                current_count = ?, is_completed = ?, reminder_time = ?,
                reminder_dates = ?, current_streak = ?, longest_streak = ?,
                last_completed_date = ?
            WHERE id = ?
            """,
            (
                habit.title, habit.notes, habit.frequency.value, habit.target_count,
                habit.current_count, int(habit.is_completed),
                _time_to_str(habit.reminder_time),
                json.dumps(sorted(d.isoformat() for d in set(habit.reminder_dates))),
                habit.current_streak, habit.longest_streak,
                habit.last_completed_date.isoformat() if habit.last_completed_date else None,
                habit.id,
            ),
        )

    @staticmethod
    def _write_entry(conn: sqlite3.Connection, entry: HabitEntry) -> None:
        """Insert or update an entry; one row per (habit_id, day)."""
        conn.execute(
            """
            INSERT INTO habit_entries (habit_id, day, is_completed, completed_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (habit_id, day) DO UPDATE SET
                is_completed = excluded.is_completed,
                completed_at = excluded.completed_at
            """,
            (
                entry.habit_id, entry.day.isoformat(),
                int(entry.is_completed), _dt_to_str(entry.completed_at),
            ),
        )
        if entry.id is None:
            row = conn.execute(
                "SELECT id FROM habit_entries WHERE habit_id = ? AND day = ?",
                (entry.habit_id, entry.day.isoformat()),
            ).fetchone()
            entry.id = row["id"]

    def add_habit(
        self,
        title: str,
        frequency: HabitFrequency = HabitFrequency.DAILY,
        target_count: int = 1,
        notes: str | None = None,
        reminder_time: time | None = None,
        reminder_dates: Iterable[date] | None = None,
        created_at: datetime | None = None,
        first_entry_day: date | None = None,
    ) -> Habit:
        """Insert a new habit with zeroed progress and streaks.

        With ``first_entry_day`` an open entry for that day is inserted in
        the same transaction, so the habit never exists without it.
        """
        if created_at is None:
            created_at = datetime.now()
        dates = sorted(set(reminder_dates or []))

        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO habits
                    (title, notes, frequency, target_count, current_count,
                     is_completed, reminder_time, reminder_dates, created_at)
                VALUES (?, ?, ?, ?, 0, 0, ?, ?, ?)
                """,
                (
                    title, notes, frequency.value, target_count,
                    _time_to_str(reminder_time),
                    json.dumps([d.isoformat() for d in dates]),
                    created_at.isoformat(),
                ),
            )
            habit_id = cursor.lastrowid
            entries = []
            if first_entry_day is not None:
                entry = HabitEntry(habit_id=habit_id, day=first_entry_day)
                self._write_entry(conn, entry)
                entries.append(entry)

        habit = Habit(
            id=habit_id,
            title=title,
            notes=notes,
            frequency=frequency,
            target_count=target_count,
            reminder_time=reminder_time,
            reminder_dates=dates,
            created_at=created_at,
            entries=entries,
        )
        logger.info("Habit added: #%d '%s' (%s x%d)", habit_id, title, frequency.value, target_count)
        return habit

    def get_habit(self, habit_id: int) -> Habit | None:
        """Fetch a single habit with its entries."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM habits WHERE id = ?", (habit_id,)).fetchone()
            if row is None:
                return None
            entries = self._entries_by_habit(conn, habit_id).get(habit_id, [])
        return self._row_to_habit(row, entries)

    def list_habits(self) -> list[Habit]:
        """Return all habits with their entries, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM habits ORDER BY created_at DESC, id DESC"
            ).fetchall()
            entries = self._entries_by_habit(conn)
        return [self._row_to_habit(r, entries.get(r["id"], [])) for r in rows]

    def update_habit(self, habit: Habit) -> None:
        """Persist a habit's definition, progress and streak fields."""
        with self._connect() as conn:
            self._write_habit(conn, habit)
        logger.debug("Habit #%d updated", habit.id)

    def save_entry(self, entry: HabitEntry) -> HabitEntry:
        """Insert or update a single entry."""
        with self._connect() as conn:
            self._write_entry(conn, entry)
        return entry

    def save_progress(self, habit: Habit, entries: Iterable[HabitEntry]) -> None:
        """Persist a habit and some of its entries in one transaction."""
        with self._connect() as conn:
            self._write_habit(conn, habit)
            for entry in entries:
                self._write_entry(conn, entry)

    def save_reset_sweep(self, habits: Iterable[Habit], reset_instant: datetime) -> None:
        """Persist a whole auto-reset sweep and its instant atomically."""
        with self._connect() as conn:
            for habit in habits:
                self._write_habit(conn, habit)
                for entry in habit.entries:
                    if entry.id is None:
                        self._write_entry(conn, entry)
            conn.execute(
                "INSERT OR REPLACE INTO app_state (key, value) VALUES (?, ?)",
                (_LAST_RESET_KEY, reset_instant.isoformat()),
            )
        logger.info("Reset sweep saved at %s", reset_instant.isoformat(timespec="minutes"))

    def get_last_reset(self) -> datetime | None:
        """Return the instant of the last committed reset sweep, if any."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM app_state WHERE key = ?", (_LAST_RESET_KEY,)
            ).fetchone()
        if row is None:
            return None
        return datetime.fromisoformat(row["value"])

    def delete_habit(self, habit_id: int) -> bool:
        """Permanently delete a habit together with all of its entries."""
        with self._connect() as conn:
            conn.execute("DELETE FROM habit_entries WHERE habit_id = ?", (habit_id,))
            cursor = conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Habit #%d deleted", habit_id)
        return deleted


class MedicationDB:
    """SQLite-backed storage for medications and their dose logs."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS medications (
                    id               INTEGER PRIMARY KEY AUTOINCREMENT,
                    name             TEXT    NOT NULL,
                    dosage           TEXT    NOT NULL,
                    frequency        TEXT    NOT NULL,
                    reminder_time    TEXT,
                    scheduled_times  TEXT    NOT NULL DEFAULT '[]',
                    taken_times      TEXT    NOT NULL DEFAULT '[]',
                    is_active        INTEGER NOT NULL DEFAULT 1,
                    created_at       TEXT    NOT NULL
                )
            """)
        logger.debug("Medications table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_medication(row: sqlite3.Row) -> MedicationEntry:
        return MedicationEntry(
            id=row["id"],
            name=row["name"],
            dosage=row["dosage"],
            frequency=MedicationFrequency(row["frequency"]),
            reminder_time=_str_to_time(row["reminder_time"]),
            scheduled_times=[datetime.fromisoformat(t) for t in json.loads(row["scheduled_times"])],
            taken_times=[datetime.fromisoformat(t) for t in json.loads(row["taken_times"])],
            is_active=bool(row["is_active"]),
            created_at=_str_to_dt(row["created_at"]),
        )

    def add_medication(
        self,
        name: str,
        dosage: str,
        frequency: MedicationFrequency,
        scheduled_times: Iterable[datetime] = (),
        reminder_time: time | None = None,
        created_at: datetime | None = None,
    ) -> MedicationEntry:
        """Insert a new active medication with its initial schedule."""
        if created_at is None:
            created_at = datetime.now()
        scheduled = sorted(scheduled_times)

        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO medications
                    (name, dosage, frequency, reminder_time,
                     scheduled_times, taken_times, is_active, created_at)
                VALUES (?, ?, ?, ?, ?, '[]', 1, ?)
                """,
                (
                    name, dosage, frequency.value, _time_to_str(reminder_time),
                    json.dumps([t.isoformat() for t in scheduled]),
                    created_at.isoformat(),
                ),
            )
            medication_id = cursor.lastrowid

        medication = MedicationEntry(
            id=medication_id,
            name=name,
            dosage=dosage,
            frequency=frequency,
            reminder_time=reminder_time,
            scheduled_times=scheduled,
            created_at=created_at,
        )
        logger.info(
            "Medication added: #%d '%s' %s (%s)",
            medication_id, name, dosage, frequency.value,
        )
        return medication

    def get_medication(self, medication_id: int) -> MedicationEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM medications WHERE id = ?", (medication_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_medication(row)

    def list_medications(self, active_only: bool = True) -> list[MedicationEntry]:
        """List medications, newest first, optionally active only."""
        query = "SELECT * FROM medications"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY created_at DESC, id DESC"

        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_medication(r) for r in rows]

    def update_medication(self, medication: MedicationEntry) -> None:
        """Persist schedule, taken log and active flag."""
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE medications SET
                    name = ?, dosage = ?, frequency = ?, reminder_time = ?,
                    scheduled_times = ?, taken_times = ?, is_active = ?
                WHERE id = ?
                """,
                (
                    medication.name, medication.dosage, medication.frequency.value,
                    _time_to_str(medication.reminder_time),
                    json.dumps([t.isoformat() for t in sorted(medication.scheduled_times)]),
                    json.dumps([t.isoformat() for t in medication.taken_times]),
                    int(medication.is_active),
                    medication.id,
                ),
            )

    def deactivate(self, medication_id: int) -> bool:
        """Soft-delete a medication (set is_active = False)."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE medications SET is_active = 0 WHERE id = ? AND is_active = 1",
                (medication_id,),
            )
        deactivated = cursor.rowcount > 0
        if deactivated:
            logger.info("Medication #%d deactivated", medication_id)
        return deactivated
