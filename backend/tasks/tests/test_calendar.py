# tasks/tests/test_calendar.py
"""
Business Calendar Unit Tests
============================

Pure time arithmetic; every instant is injected. Dates fall in the week
of Sunday 2025-01-05, Asia/Jerusalem (UTC+2 in January).
"""

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfoNotFoundError

from django.test import SimpleTestCase, override_settings

from tasks.engine.business_calendar import BusinessCalendar, WeeklyWindow
from tasks.engine.orchestrator import load_calendar

from .helpers import local


class WorkingHoursTest(SimpleTestCase):

    def setUp(self):
        self.calendar = BusinessCalendar.from_settings()

    def test_full_work_day(self):
        self.assertEqual(self.calendar.working_hours_between(local(2025, 1, 6, 10), local(2025, 1, 6, 18)), 8.0)

    def test_overnight_span_counts_only_open_hours(self):
        # Monday 17:00 -> Tuesday 11:00
        self.assertEqual(self.calendar.working_hours_between(local(2025, 1, 6, 17), local(2025, 1, 7, 11)), 2.0)

    def test_weekend_is_skipped(self):
        # Thursday 17:00 -> Sunday 11:00: one hour each side of Fri/Sat
        self.assertEqual(self.calendar.working_hours_between(local(2025, 1, 9, 17), local(2025, 1, 12, 11)), 2.0)

    def test_fractional_hours(self):
        self.assertEqual(self.calendar.working_hours_between(local(2025, 1, 6, 10), local(2025, 1, 6, 10, 30)), 0.5)

    def test_outside_hours_is_zero(self):
        self.assertEqual(self.calendar.working_hours_between(local(2025, 1, 6, 7), local(2025, 1, 6, 9)), 0.0)

    def test_reversed_interval_is_zero(self):
        self.assertEqual(self.calendar.working_hours_between(local(2025, 1, 6, 15), local(2025, 1, 6, 11)), 0.0)

    def test_remaining_is_signed(self):
        now = local(2025, 1, 6, 12)
        self.assertEqual(self.calendar.remaining_working_hours(now, local(2025, 1, 6, 14)), 2.0)
        self.assertEqual(self.calendar.remaining_working_hours(now, local(2025, 1, 6, 10)), -2.0)

    def test_walk_is_capped_at_a_year(self):
        start = local(2025, 1, 6, 10)
        within_cap = self.calendar.working_hours_between(start, local(2026, 1, 5, 23))
        self.assertEqual(self.calendar.working_hours_between(start, local(2027, 6, 1, 12)), within_cap)
        self.assertEqual(self.calendar.working_hours_between(start, local(2030, 6, 1, 12)), within_cap)
        self.assertGreater(within_cap, 2000)

    def test_utc_input_is_converted(self):
        # 08:00 UTC is 10:00 in Jerusalem
        start = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)
        self.assertEqual(self.calendar.working_hours_between(start, local(2025, 1, 6, 12)), 2.0)

    def test_naive_input_is_read_as_local(self):
        self.assertEqual(
            self.calendar.working_hours_between(datetime(2025, 1, 6, 10), datetime(2025, 1, 6, 13)),
            3.0,
        )


class WindowTest(SimpleTestCase):

    def setUp(self):
        self.calendar = BusinessCalendar.from_settings()

    def test_business_hours(self):
        self.assertTrue(self.calendar.is_business_hours(local(2025, 1, 5, 10)))
        self.assertFalse(self.calendar.is_business_hours(local(2025, 1, 6, 18)))
        self.assertFalse(self.calendar.is_business_hours(local(2025, 1, 10, 12)))

    def test_freeze_window_edges(self):
        self.assertFalse(self.calendar.is_in_weekly_freeze_window(local(2025, 1, 9, 13, 59)))
        self.assertTrue(self.calendar.is_in_weekly_freeze_window(local(2025, 1, 9, 14)))
        self.assertTrue(self.calendar.is_in_weekly_freeze_window(local(2025, 1, 10, 23, 59)))
        self.assertFalse(self.calendar.is_in_weekly_freeze_window(local(2025, 1, 11, 0)))

    def test_freeze_window_from_utc_instant(self):
        # Thursday 12:00 UTC is 14:00 local
        self.assertTrue(self.calendar.is_in_weekly_freeze_window(datetime(2025, 1, 9, 12, 0, tzinfo=timezone.utc)))

    def test_boost_window_edges(self):
        self.assertTrue(self.calendar.is_in_boost_window(local(2025, 1, 5, 10)))
        self.assertTrue(self.calendar.is_in_boost_window(local(2025, 1, 5, 12, 59)))
        self.assertFalse(self.calendar.is_in_boost_window(local(2025, 1, 5, 13)))
        self.assertFalse(self.calendar.is_in_boost_window(local(2025, 1, 6, 10)))

    def test_window_wrapping_the_week(self):
        window = WeeklyWindow(start_day=5, start_time=time(22, 0), end_day=6, end_time=time(2, 0))
        self.assertTrue(window.contains(local(2025, 1, 11, 23)))
        self.assertTrue(window.contains(local(2025, 1, 12, 1)))
        self.assertFalse(window.contains(local(2025, 1, 12, 3)))


class CalendarConfigTest(SimpleTestCase):

    def test_overrides_apply(self):
        calendar = BusinessCalendar.from_settings({"WORK_START": "09:00"})
        self.assertEqual(calendar.work_start, time(9, 0))

    def test_unknown_weekday_rejected(self):
        with self.assertRaises(ValueError):
            BusinessCalendar.from_settings({"WORK_DAYS": ["funday"]})

    def test_unknown_timezone_raises(self):
        with self.assertRaises(ZoneInfoNotFoundError):
            BusinessCalendar.from_settings({"TIMEZONE": "Mars/Olympus"})

    @override_settings(BUSINESS_CALENDAR={"TIMEZONE": "Mars/Olympus"})
    def test_misconfigured_calendar_loads_as_none(self):
        with self.assertLogs("tasks.engine.orchestrator", level="ERROR"):
            self.assertIsNone(load_calendar())
