"""
Life Companion — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, time
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite
    DATABASE_PATH: str = "data/lifecompanion.db"

    # Wall-clock zone used for "now" and reminder delivery
    TIMEZONE: str = "Europe/Istanbul"

    # Reminders
    NOTIFICATIONS_ENABLED: bool = True
    DEFAULT_REMINDER_TIME: str = "09:00"
    HABIT_REMINDER_HORIZON_DAYS: int = 30
    MEDICATION_HORIZON_DAYS: int = 7

    # Daily auto-reset
    AUTO_RESET_TIME: str = "00:00"
    RESET_CHECK_INTERVAL_MINUTES: int = 15

    # Streaks
    STREAK_CELEBRATION_ENABLED: bool = True

    # Telegram (only needed by the reminder runner in main.py)
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: int = 0

    @field_validator("AUTO_RESET_TIME", "DEFAULT_REMINDER_TIME")
    @classmethod
    def parse_hhmm(cls, v: str) -> str:
        parsed = datetime.strptime(v.strip(), "%H:%M")
        return parsed.strftime("%H:%M")

    @field_validator("NOTIFICATIONS_ENABLED", "STREAK_CELEBRATION_ENABLED", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in _TRUE_VALUES

    @field_validator(
        "HABIT_REMINDER_HORIZON_DAYS",
        "MEDICATION_HORIZON_DAYS",
        "RESET_CHECK_INTERVAL_MINUTES",
    )
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("TELEGRAM_CHAT_ID", mode="before")
    @classmethod
    def parse_chat_id(cls, v: str | int) -> int:
        if isinstance(v, str) and not v.strip():
            return 0
        return int(v)

    @property
    def auto_reset_time(self) -> time:
        return datetime.strptime(self.AUTO_RESET_TIME, "%H:%M").time()

    @property
    def default_reminder_time(self) -> time:
        return datetime.strptime(self.DEFAULT_REMINDER_TIME, "%H:%M").time()


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            DATABASE_PATH=os.getenv("DATABASE_PATH", "data/lifecompanion.db"),
            TIMEZONE=os.getenv("TIMEZONE", "Europe/Istanbul"),
            NOTIFICATIONS_ENABLED=os.getenv("NOTIFICATIONS_ENABLED", "true"),
            DEFAULT_REMINDER_TIME=os.getenv("DEFAULT_REMINDER_TIME", "09:00"),
            HABIT_REMINDER_HORIZON_DAYS=os.getenv("HABIT_REMINDER_HORIZON_DAYS", "30"),
            MEDICATION_HORIZON_DAYS=os.getenv("MEDICATION_HORIZON_DAYS", "7"),
            AUTO_RESET_TIME=os.getenv("AUTO_RESET_TIME", "00:00"),
            RESET_CHECK_INTERVAL_MINUTES=os.getenv("RESET_CHECK_INTERVAL_MINUTES", "15"),
            STREAK_CELEBRATION_ENABLED=os.getenv("STREAK_CELEBRATION_ENABLED", "true"),
            TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            TELEGRAM_CHAT_ID=os.getenv("TELEGRAM_CHAT_ID", ""),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in .env:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton default — services and core calls receive settings explicitly:
#   from src.config import settings
settings = _load_settings()
