"""
Life Companion — Telegram reminder runner.

Builds a python-telegram-bot Application whose JobQueue delivers habit and
medication reminders to one chat, and which checks the daily auto-reset
every few minutes. The check is opportunistic: the first run happens at
startup, so a day on which the runner was down is caught up as soon as it
comes back.
"""

from __future__ import annotations

import logging
import sys
from datetime import timedelta

from telegram.ext import Application, ApplicationBuilder, ContextTypes

from src.config import settings

logger = logging.getLogger(__name__)


async def _auto_reset_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Repeating job: run the reset check, refresh medications after a reset."""
    habit_service = context.bot_data["habit_service"]
    medication_service = context.bot_data["medication_service"]

    outcome = habit_service.check_auto_reset()
    if outcome.did_reset:
        medication_service.refresh_schedules()


def build_app(
    habit_service: object | None = None,
    medication_service: object | None = None,
) -> Application:
    """Build the Telegram Application and wire the services to it.

    Args:
        habit_service: HabitService to use. Defaults to one backed by
                       HabitDB and the Telegram reminder adapter.
        medication_service: MedicationService to use, same defaults.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if habit_service is None or medication_service is None:
        from src.adapters.system_clock import SystemClock
        from src.adapters.telegram_reminders import TelegramReminderScheduler
        from src.data.db import HabitDB, MedicationDB

        reminders = TelegramReminderScheduler(
            app.job_queue, settings.TELEGRAM_CHAT_ID, settings.TIMEZONE,
        )
        clock = SystemClock(settings.TIMEZONE)

        if habit_service is None:
            from src.core.habit_service import HabitService
            habit_service = HabitService(HabitDB(), reminders, clock, settings)
        if medication_service is None:
            from src.core.medication_service import MedicationService
            medication_service = MedicationService(MedicationDB(), reminders, clock, settings)

    # Store services in bot_data for job access
    app.bot_data["habit_service"] = habit_service
    app.bot_data["medication_service"] = medication_service

    _setup_auto_reset(app)

    logger.info("Telegram reminder runner built for chat %d", settings.TELEGRAM_CHAT_ID)
    return app


def _setup_auto_reset(app: Application) -> None:
    """Register the repeating auto-reset check, first run immediately."""
    interval = timedelta(minutes=settings.RESET_CHECK_INTERVAL_MINUTES)
    app.job_queue.run_repeating(
        _auto_reset_job,
        interval=interval,
        first=0,
        name="auto_reset_check",
    )
    logger.info(
        "Auto-reset check every %d min (reset time %s %s)",
        settings.RESET_CHECK_INTERVAL_MINUTES,
        settings.AUTO_RESET_TIME,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    if not settings.TELEGRAM_BOT_TOKEN or settings.TELEGRAM_BOT_TOKEN.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)
    if not settings.TELEGRAM_CHAT_ID:
        print("ERROR: TELEGRAM_CHAT_ID is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting Life Companion reminder runner...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    main()
