"""Telegram reminder adapter — implements ReminderPort.

Each reminder becomes a one-shot job on the bot's JobQueue, named by its
occurrence id. Scheduling an id that already has a job replaces that job,
and instants already in the past are skipped.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable
from zoneinfo import ZoneInfo

from telegram.ext import ContextTypes, JobQueue

from src.ports.reminder_port import Reminder

logger = logging.getLogger(__name__)


async def deliver_reminder(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Job callback: send the reminder stored in the job's data."""
    job = context.job
    reminder: Reminder = job.data
    await context.bot.send_message(
        chat_id=job.chat_id, text=f"{reminder.title}\n{reminder.body}",
    )
    logger.info("Reminder %s delivered", reminder.occurrence_id)


class TelegramReminderScheduler:
    """Telegram JobQueue implementation of ReminderPort."""

    def __init__(self, job_queue: JobQueue, chat_id: int, timezone: str) -> None:
        self._job_queue = job_queue
        self._chat_id = chat_id
        self._tz = ZoneInfo(timezone)

    def schedule(self, reminder: Reminder) -> None:
        self.cancel([reminder.occurrence_id])

        when = reminder.trigger_at.replace(tzinfo=self._tz)
        if when <= datetime.now(self._tz):
            logger.debug("Reminder %s is in the past, skipped", reminder.occurrence_id)
            return

        self._job_queue.run_once(
            deliver_reminder,
            when=when,
            data=reminder,
            name=reminder.occurrence_id,
            chat_id=self._chat_id,
        )

    def cancel(self, occurrence_ids: Iterable[str]) -> None:
        for occurrence_id in occurrence_ids:
            for job in self._job_queue.get_jobs_by_name(occurrence_id):
                job.schedule_removal()
