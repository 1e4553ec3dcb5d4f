"""Tests for src.core.recurrence — reminder expansion."""

import time as time_module
from datetime import date, datetime, time

import pytest

from src.core.recurrence import (
    DailyReminder,
    DateSetReminder,
    MedicationReminder,
    expand,
    expand_daily,
    expand_dates,
    expand_habit,
    habit_reminder_config,
    medication_occurrence_id,
    medication_slots,
)
from src.data.models import Habit, HabitFrequency, MedicationFrequency

# 2026-03-10 is a Tuesday
NOW = datetime(2026, 3, 10, 9, 30)


class TestExpandDaily:
    def test_produces_one_trigger_per_day(self):
        occurrences = expand_daily(4, time(7, 15), NOW)
        assert len(occurrences) == 30
        assert occurrences[0].trigger_at == datetime(2026, 3, 10, 7, 15)
        assert occurrences[-1].trigger_at == datetime(2026, 4, 8, 7, 15)

    def test_ids_indexed_by_day_offset(self):
        occurrences = expand_daily(4, time(7, 15), NOW, horizon_days=3)
        assert [o.occurrence_id for o in occurrences] == ["4_daily_0", "4_daily_1", "4_daily_2"]

    def test_ordered_and_unique(self):
        occurrences = expand_daily(4, time(21, 0), NOW)
        triggers = [o.trigger_at for o in occurrences]
        assert triggers == sorted(triggers)
        assert len({o.occurrence_id for o in occurrences}) == len(occurrences)

    def test_missing_time_falls_back_to_nine(self):
        occurrences = expand_daily(4, None, NOW, horizon_days=1)
        assert occurrences[0].trigger_at == datetime(2026, 3, 10, 9, 0)

    def test_seconds_dropped(self):
        occurrences = expand_daily(4, time(7, 15, 42), NOW, horizon_days=1)
        assert occurrences[0].trigger_at.second == 0


class TestExpandDates:
    def test_skips_past_dates_and_keeps_index(self):
        dates = [date(2026, 3, 12), date(2026, 3, 1), date(2026, 3, 20)]
        occurrences = expand_dates(2, dates, time(18, 0), NOW)

        assert [o.occurrence_id for o in occurrences] == ["2_date_1", "2_date_2"]
        assert [o.trigger_at for o in occurrences] == [
            datetime(2026, 3, 12, 18, 0),
            datetime(2026, 3, 20, 18, 0),
        ]

    def test_today_before_time_included(self):
        occurrences = expand_dates(2, [date(2026, 3, 10)], time(18, 0), NOW)
        assert len(occurrences) == 1

    def test_today_after_time_excluded(self):
        assert expand_dates(2, [date(2026, 3, 10)], time(8, 0), NOW) == []

    def test_exact_now_excluded(self):
        assert expand_dates(2, [date(2026, 3, 10)], time(9, 30), NOW) == []

    def test_duplicate_dates_collapse(self):
        dates = [date(2026, 3, 12), date(2026, 3, 12)]
        assert len(expand_dates(2, dates, time(8, 0), NOW)) == 1

    def test_missing_time_falls_back_to_nine(self):
        occurrences = expand_dates(2, [date(2026, 3, 11)], None, NOW)
        assert occurrences[0].trigger_at == datetime(2026, 3, 11, 9, 0)


class TestMedicationSlots:
    def test_twice_daily_uses_base_minute(self):
        """Scenario: twice daily, base 07:30, three days."""
        slots = medication_slots(MedicationFrequency.TWICE, time(7, 30), NOW, horizon_days=3)
        assert slots == [
            datetime(2026, 3, 10, 8, 30),
            datetime(2026, 3, 10, 20, 30),
            datetime(2026, 3, 11, 8, 30),
            datetime(2026, 3, 11, 20, 30),
            datetime(2026, 3, 12, 8, 30),
            datetime(2026, 3, 12, 20, 30),
        ]

    def test_twice_daily_full_window(self):
        slots = medication_slots(MedicationFrequency.TWICE, time(7, 30), NOW)
        assert len(slots) == 14

    def test_once_daily_uses_base_time(self):
        slots = medication_slots(MedicationFrequency.ONCE, time(22, 5), NOW)
        assert len(slots) == 7
        assert all(s.time() == time(22, 5) for s in slots)

    def test_thrice_daily(self):
        slots = medication_slots(MedicationFrequency.THRICE, time(10, 0), NOW, horizon_days=1)
        assert [s.hour for s in slots] == [8, 14, 20]

    def test_twice_weekly_monday_thursday(self):
        slots = medication_slots(MedicationFrequency.TWICE_WEEKLY, time(9, 45), NOW)
        assert slots == [
            datetime(2026, 3, 12, 8, 45),   # Thursday
            datetime(2026, 3, 16, 8, 45),   # Monday
        ]

    def test_thrice_weekly_monday_wednesday_friday(self):
        slots = medication_slots(MedicationFrequency.THRICE_WEEKLY, time(9, 0), NOW)
        assert slots == [
            datetime(2026, 3, 11, 8, 0),
            datetime(2026, 3, 13, 8, 0),
            datetime(2026, 3, 16, 8, 0),
        ]

    def test_as_needed_has_no_slots(self):
        assert medication_slots(MedicationFrequency.AS_NEEDED, time(9, 0), NOW) == []

    def test_today_slot_kept_even_if_passed(self):
        slots = medication_slots(MedicationFrequency.ONCE, time(6, 0), NOW, horizon_days=1)
        assert slots == [datetime(2026, 3, 10, 6, 0)]


class TestExpandDispatch:
    def test_daily_config(self):
        occurrences = expand(DailyReminder(1, time(8, 0)), NOW, horizon_days=2)
        assert [o.occurrence_id for o in occurrences] == ["1_daily_0", "1_daily_1"]

    def test_date_config(self):
        config = DateSetReminder(1, (date(2026, 3, 11),), time(8, 0))
        assert [o.occurrence_id for o in expand(config, NOW)] == ["1_date_0"]

    def test_medication_config_ids_keyed_by_timestamp(self):
        config = MedicationReminder(9, MedicationFrequency.ONCE, time(8, 0))
        occurrences = expand(config, NOW)
        assert len(occurrences) == 7
        for occ in occurrences:
            assert occ.occurrence_id == medication_occurrence_id(9, occ.trigger_at)
            assert occ.occurrence_id.startswith("9_")

    def test_medication_id_uses_wall_clock_seconds(self):
        assert medication_occurrence_id(9, datetime(2026, 3, 10, 8, 0)) == "9_1773129600"

    def test_medication_id_ignores_host_zone(self, monkeypatch):
        trigger = datetime(2026, 3, 10, 8, 0)
        monkeypatch.setenv("TZ", "Pacific/Auckland")
        if hasattr(time_module, "tzset"):
            time_module.tzset()
        try:
            assert medication_occurrence_id(9, trigger) == "9_1773129600"
        finally:
            monkeypatch.undo()
            if hasattr(time_module, "tzset"):
                time_module.tzset()

    def test_unknown_config_raises(self):
        with pytest.raises(TypeError):
            expand("not-a-config", NOW)


class TestHabitReminderConfig:
    def _habit(self, **kwargs) -> Habit:
        return Habit(id=3, title="Walk", frequency=HabitFrequency.DAILY, **kwargs)

    def test_dates_win_over_time(self):
        habit = self._habit(reminder_time=time(7, 0), reminder_dates=[date(2026, 3, 11)])
        config = habit_reminder_config(habit)
        assert isinstance(config, DateSetReminder)
        assert config.time_of_day == time(7, 0)

    def test_time_only_is_daily(self):
        config = habit_reminder_config(self._habit(reminder_time=time(7, 0)))
        assert config == DailyReminder(3, time(7, 0))

    def test_no_reminder(self):
        habit = self._habit()
        assert habit_reminder_config(habit) is None
        assert expand_habit(habit, NOW) == []
