"""Reminder port — abstract interface for delivering scheduled reminders.

Core modules depend on this protocol, never on a specific delivery provider.
Delivery is fire-and-forget: the core never hears back about a reminder.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol

HABIT_CATEGORY = "HABIT_REMINDER"
MEDICATION_CATEGORY = "MEDICATION_REMINDER"


@dataclass(frozen=True)
class Reminder:
    """One concrete reminder occurrence handed to the delivery provider."""

    occurrence_id: str
    trigger_at: datetime
    title: str
    body: str
    category: str


class ReminderPort(Protocol):
    """Abstract reminder scheduler used by services."""

    def schedule(self, reminder: Reminder) -> None: ...

    def cancel(self, occurrence_ids: Iterable[str]) -> None: ...
