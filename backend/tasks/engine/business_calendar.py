# tasks/engine/business_calendar.py
"""
Business Calendar
=================

Pure time arithmetic over the studio's fixed work-week.

Every function takes the evaluation instant explicitly; nothing here reads
the wall clock, so boundary conditions (the exact first minute of the freeze
window, the exact deadline crossing) can be tested by injecting instants.

Defaults (overridable through settings.BUSINESS_CALENDAR):
    - timezone:      Asia/Jerusalem
    - work week:     Sunday to Thursday, 10:00-18:00
    - freeze window: Thursday 14:00 until Saturday 00:00
    - boost window:  Sunday 10:00-13:00
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple
from zoneinfo import ZoneInfo

from django.conf import settings

# Python weekday numbering (Monday=0 ... Sunday=6).
DAY_NAMES = {
    "mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6,
}

MINUTES_PER_DAY = 24 * 60
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY

# Longest span walked day by day; anything further out saturates.
MAX_WALK_DAYS = 365


def _parse_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    hours, minutes = str(value).split(":")
    return datetime.time(int(hours), int(minutes))


def _parse_day(value: Any) -> int:
    if isinstance(value, int):
        return value % 7
    try:
        return DAY_NAMES[str(value).strip().lower()[:3]]
    except KeyError:
        raise ValueError(f"Unknown weekday: {value!r}")


@dataclass(frozen=True)
class WeeklyWindow:
    """
    A recurring [start, end) interval on the weekly clock.

    The window may wrap past the end of the week (e.g. Saturday 22:00 to
    Sunday 02:00).
    """
    start_day: int
    start_time: datetime.time
    end_day: int
    end_time: datetime.time

    @classmethod
    def from_config(cls, config: Dict[str, Tuple[Any, Any]]) -> "WeeklyWindow":
        start_day, start_time = config["start"]
        end_day, end_time = config["end"]
        return cls(
            start_day=_parse_day(start_day),
            start_time=_parse_time(start_time),
            end_day=_parse_day(end_day),
            end_time=_parse_time(end_time),
        )

    @staticmethod
    def _minute_of_week(day: int, moment: datetime.time) -> float:
        return day * MINUTES_PER_DAY + moment.hour * 60 + moment.minute + moment.second / 60.0

    def contains(self, local_dt: datetime.datetime) -> bool:
        start = self._minute_of_week(self.start_day, self.start_time)
        end = self._minute_of_week(self.end_day, self.end_time)
        current = self._minute_of_week(local_dt.weekday(), local_dt.time())

        if start == end:
            return False
        if start < end:
            return start <= current < end
        # Wraps around the end of the week
        return current >= start or current < end


@dataclass(frozen=True)
class BusinessCalendar:
    timezone: ZoneInfo
    work_days: FrozenSet[int]
    work_start: datetime.time
    work_end: datetime.time
    freeze_window: WeeklyWindow
    boost_window: WeeklyWindow

    @classmethod
    def from_settings(cls, overrides: Optional[Dict[str, Any]] = None) -> "BusinessCalendar":
        """Build the calendar from settings.BUSINESS_CALENDAR merged over the defaults."""
        config = dict(DEFAULT_CALENDAR)
        config.update(getattr(settings, "BUSINESS_CALENDAR", {}) or {})
        if overrides:
            config.update(overrides)

        return cls(
            timezone=ZoneInfo(config["TIMEZONE"]),
            work_days=frozenset(_parse_day(d) for d in config["WORK_DAYS"]),
            work_start=_parse_time(config["WORK_START"]),
            work_end=_parse_time(config["WORK_END"]),
            freeze_window=WeeklyWindow.from_config(config["FREEZE_WINDOW"]),
            boost_window=WeeklyWindow.from_config(config["BOOST_WINDOW"]),
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def localize(self, moment: datetime.datetime) -> datetime.datetime:
        """Convert to calendar-local time; naive values are read as local already."""
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.timezone)
        return moment.astimezone(self.timezone)

    def _day_bounds(self, day: datetime.date) -> Tuple[datetime.datetime, datetime.datetime]:
        opens = datetime.datetime.combine(day, self.work_start, tzinfo=self.timezone)
        closes = datetime.datetime.combine(day, self.work_end, tzinfo=self.timezone)
        return opens, closes

    # -----------------------------------------------------------------------
    # Public contract
    # -----------------------------------------------------------------------

    def working_hours_between(self, a: datetime.datetime, b: datetime.datetime) -> float:
        """
        Working hours in [a, b), clipped to the work-day windows.

        Returns 0.0 when b <= a.
        """
        start = self.localize(a)
        end = self.localize(b)
        if end <= start:
            return 0.0

        total_seconds = 0.0
        day = start.date()
        last_day = min(end.date(), day + datetime.timedelta(days=MAX_WALK_DAYS - 1))
        while day <= last_day:
            if day.weekday() in self.work_days:
                opens, closes = self._day_bounds(day)
                lo = max(opens, start)
                hi = min(closes, end)
                if hi > lo:
                    total_seconds += (hi - lo).total_seconds()
            day += datetime.timedelta(days=1)

        return round(total_seconds / 3600.0, 4)

    def remaining_working_hours(self, now: datetime.datetime, deadline: datetime.datetime) -> float:
        """
        Signed working hours until the deadline.

        Negative values count working hours elapsed since the deadline passed.
        """
        if self.localize(deadline) >= self.localize(now):
            return self.working_hours_between(now, deadline)
        return -self.working_hours_between(deadline, now)

    def is_business_hours(self, now: datetime.datetime) -> bool:
        local = self.localize(now)
        return (
            local.weekday() in self.work_days
            and self.work_start <= local.time() < self.work_end
        )

    def is_in_weekly_freeze_window(self, now: datetime.datetime) -> bool:
        return self.freeze_window.contains(self.localize(now))

    def is_in_boost_window(self, now: datetime.datetime) -> bool:
        return self.boost_window.contains(self.localize(now))


DEFAULT_CALENDAR: Dict[str, Any] = {
    "TIMEZONE": "Asia/Jerusalem",
    "WORK_DAYS": ["sun", "mon", "tue", "wed", "thu"],
    "WORK_START": "10:00",
    "WORK_END": "18:00",
    "FREEZE_WINDOW": {"start": ("thu", "14:00"), "end": ("sat", "00:00")},
    "BOOST_WINDOW": {"start": ("sun", "10:00"), "end": ("sun", "13:00")},
}
