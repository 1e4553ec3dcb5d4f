"""Clock port — abstract source of "now".

Core modules take the current instant as a parameter; services obtain it
from this protocol so tests can pin the wall clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Abstract clock used by services."""

    def now(self) -> datetime: ...
