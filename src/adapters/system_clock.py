"""System clock adapter — implements ClockPort.

Returns naive wall-clock time in the configured timezone, so every
day-boundary comparison in the core happens in local calendar days.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall-clock implementation of ClockPort."""

    def __init__(self, timezone: str | None = None) -> None:
        if timezone is None:
            from src.config import settings
            timezone = settings.TIMEZONE
        self._tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._tz).replace(tzinfo=None)
