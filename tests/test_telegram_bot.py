"""Tests for src.bot.telegram_bot — reminder runner wiring.

Services and the Telegram Application are mocked.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from src.bot.telegram_bot import _auto_reset_job, _setup_auto_reset, main
from src.core.auto_reset import ResetOutcome


def _make_context(did_reset: bool):
    habit_service = MagicMock()
    habit_service.check_auto_reset.return_value = ResetOutcome(did_reset=did_reset, last_reset=None)
    medication_service = MagicMock()

    context = MagicMock()
    context.bot_data = {
        "habit_service": habit_service,
        "medication_service": medication_service,
    }
    return context, habit_service, medication_service


class TestAutoResetJob:
    @pytest.mark.asyncio
    async def test_reset_refreshes_medications(self):
        context, habits, meds = _make_context(did_reset=True)
        await _auto_reset_job(context)
        habits.check_auto_reset.assert_called_once()
        meds.refresh_schedules.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_reset_leaves_medications(self):
        context, habits, meds = _make_context(did_reset=False)
        await _auto_reset_job(context)
        habits.check_auto_reset.assert_called_once()
        meds.refresh_schedules.assert_not_called()


class TestSetupAutoReset:
    def test_registers_repeating_check(self):
        app = MagicMock()
        with patch("src.bot.telegram_bot.settings") as mock_settings:
            mock_settings.RESET_CHECK_INTERVAL_MINUTES = 15
            _setup_auto_reset(app)

        app.job_queue.run_repeating.assert_called_once()
        kwargs = app.job_queue.run_repeating.call_args.kwargs
        assert kwargs["interval"] == timedelta(minutes=15)
        assert kwargs["first"] == 0
        assert kwargs["name"] == "auto_reset_check"


class TestMain:
    def test_missing_token_exits(self):
        with patch("src.bot.telegram_bot.settings") as mock_settings:
            mock_settings.TELEGRAM_BOT_TOKEN = ""
            with pytest.raises(SystemExit):
                main()

    def test_placeholder_token_exits(self):
        with patch("src.bot.telegram_bot.settings") as mock_settings:
            mock_settings.TELEGRAM_BOT_TOKEN = "your-token-here"
            with pytest.raises(SystemExit):
                main()

    def test_missing_chat_id_exits(self):
        with patch("src.bot.telegram_bot.settings") as mock_settings:
            mock_settings.TELEGRAM_BOT_TOKEN = "123:abc"
            mock_settings.TELEGRAM_CHAT_ID = 0
            with pytest.raises(SystemExit):
                main()

    def test_starts_polling(self):
        with patch("src.bot.telegram_bot.settings") as mock_settings, \
             patch("src.bot.telegram_bot.build_app") as mock_build:
            mock_settings.TELEGRAM_BOT_TOKEN = "123:abc"
            mock_settings.TELEGRAM_CHAT_ID = 12345
            main()
        mock_build.return_value.run_polling.assert_called_once()
