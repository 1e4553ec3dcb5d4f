"""Shared test fixtures and configuration.

Sets up environment variables before any src import so src.config loads
predictable values, and provides common fixtures: temp databases, a pinned
clock and a mock reminder port.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("AUTO_RESET_TIME", "00:00")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("TELEGRAM_CHAT_ID", "12345")

from datetime import datetime
from unittest.mock import MagicMock

import pytest

# Tuesday
NOW = datetime(2026, 3, 10, 9, 30)


class FixedClock:
    """ClockPort stand-in whose time only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def reminders():
    """A mock ReminderPort recording schedule/cancel calls."""
    return MagicMock()


@pytest.fixture
def test_settings(tmp_path):
    from src.config import Settings
    return Settings(DATABASE_PATH=str(tmp_path / "test.db"), TIMEZONE="UTC")


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_lifecompanion.db")


@pytest.fixture
def habit_db(tmp_db_path):
    """Return a HabitDB instance backed by a temp file."""
    from src.data.db import HabitDB
    return HabitDB(db_path=tmp_db_path)


@pytest.fixture
def medication_db(tmp_db_path):
    """Return a MedicationDB instance backed by a temp file."""
    from src.data.db import MedicationDB
    return MedicationDB(db_path=tmp_db_path)
