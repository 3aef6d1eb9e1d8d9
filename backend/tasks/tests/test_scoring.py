# tasks/tests/test_scoring.py
"""
Score Model Unit Tests
======================

The score model is pure, so these tests drive it with plain objects and
hand-built CalendarContexts instead of database rows.

Test Categories:
----------------
1. Components - base weight, aging, urgency steps
2. Properties - emergency, monotonic urgency, in-review boost
3. Freeze, clamp and DONE handling
4. Calendar context construction
"""

from types import SimpleNamespace

from django.test import SimpleTestCase

from tasks.engine.business_calendar import BusinessCalendar
from tasks.engine.scoring import (
    ZERO_BREAKDOWN,
    CalendarContext,
    aging_points,
    base_weight,
    build_calendar_context,
    score_task,
    urgency_multiplier,
)
from tasks.engine.weights import ScoringConfig

from .helpers import local


def make_task(**overrides):
    values = {
        "pk": 1,
        "type": "CLIENT",
        "priority": "IMPORTANT_NOT_URGENT",
        "status": "TODO",
        "emergency": False,
        "is_frozen": False,
        "display_score": 0.0,
        "deadline": local(2025, 1, 8, 18),
        "todo_since": local(2025, 1, 6, 10),
        "status_changed_at": local(2025, 1, 6, 10),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def context_for(remaining, **extra):
    return CalendarContext(remaining_working_hours=remaining, overdue=remaining < 0, **extra)


class ComponentTest(SimpleTestCase):

    def setUp(self):
        self.config = ScoringConfig.from_settings()

    def test_base_weights_per_type(self):
        self.assertEqual(base_weight("CLIENT", "NEITHER", self.config), 30)
        self.assertEqual(base_weight("ADMIN", "NEITHER", self.config), 5)

    def test_type_priority_adjustment(self):
        config = ScoringConfig.from_settings({"TYPE_PRIORITY_ADJUSTMENTS": {"CLIENT:NEITHER": -10}})
        self.assertEqual(base_weight("CLIENT", "NEITHER", config), 20)
        self.assertEqual(base_weight("CLIENT", "URGENT_IMPORTANT", config), 30)

    def test_aging_steps_every_24_working_hours(self):
        self.assertEqual(aging_points(0, self.config), 0)
        self.assertEqual(aging_points(23.9, self.config), 0)
        self.assertEqual(aging_points(24, self.config), 2)
        self.assertEqual(aging_points(47.9, self.config), 2)
        self.assertEqual(aging_points(48, self.config), 4)

    def test_urgency_steps(self):
        self.assertEqual(urgency_multiplier(None, False, self.config), 1.0)
        self.assertEqual(urgency_multiplier(2, False, self.config), 2.5)
        self.assertEqual(urgency_multiplier(8, False, self.config), 2.0)
        self.assertEqual(urgency_multiplier(16, False, self.config), 1.5)
        self.assertEqual(urgency_multiplier(39.5, False, self.config), 1.5)
        self.assertEqual(urgency_multiplier(40, False, self.config), 1.5)
        self.assertEqual(urgency_multiplier(40.25, False, self.config), 1.0)

    def test_overdue_multiplier_grows(self):
        self.assertEqual(urgency_multiplier(0, True, self.config), 3.0)
        self.assertAlmostEqual(urgency_multiplier(-10, True, self.config), 3.5)

    def test_no_context_scores_base_plus_priority(self):
        breakdown = score_task(make_task(priority="URGENT_IMPORTANT"), False, CalendarContext(), self.config)
        self.assertEqual(breakdown.raw_score, 70.0)
        self.assertEqual(breakdown.display_score, 70.0)
        self.assertEqual(breakdown.urgency_multiplier, 1.0)


class ScorePropertyTest(SimpleTestCase):

    def setUp(self):
        self.config = ScoringConfig.from_settings()

    def test_emergency_strictly_increases_display(self):
        for remaining in (100, 30, 10, 2, -5):
            context = context_for(remaining)
            calm = score_task(make_task(), False, context, self.config)
            urgent = score_task(make_task(emergency=True), False, context, self.config)
            self.assertGreater(urgent.display_score, calm.display_score)
            self.assertEqual(urgent.display_score - calm.display_score, self.config.emergency_boost)

    def test_display_is_monotonic_in_remaining_hours(self):
        previous = None
        for remaining in range(80, -30, -1):
            display = score_task(make_task(), False, context_for(remaining), self.config).display_score
            if previous is not None:
                self.assertGreaterEqual(display, previous, f"dropped at {remaining} remaining hours")
            previous = display

    def test_in_review_gains_exactly_the_review_boost(self):
        context = context_for(20)
        working = score_task(make_task(status="IN_PROGRESS"), False, context, self.config)
        in_review = score_task(make_task(status="IN_REVIEW"), False, context, self.config)
        self.assertEqual(in_review.display_score - working.display_score, self.config.in_review_boost)
        self.assertEqual(in_review.boosts.in_review, self.config.in_review_boost)

    def test_sunday_boost_only_for_research(self):
        context = context_for(30, in_boost_window=True)
        research = score_task(make_task(type="RESEARCH"), False, context, self.config)
        internal = score_task(make_task(type="INTERNAL"), False, context, self.config)
        self.assertEqual(research.boosts.sunday_rd, self.config.sunday_rd_boost)
        self.assertEqual(internal.boosts.sunday_rd, 0.0)
        self.assertEqual(research.display_score - internal.display_score, self.config.sunday_rd_boost)

    def test_capacity_penalty_only_for_admin(self):
        context = context_for(30)
        admin = score_task(make_task(type="ADMIN"), True, context, self.config)
        client = score_task(make_task(type="CLIENT"), True, context, self.config)
        self.assertEqual(admin.capacity_penalty, self.config.capacity_penalty)
        self.assertEqual(client.capacity_penalty, 0.0)

    def test_aging_is_multiplied_by_urgency(self):
        breakdown = score_task(make_task(), False, context_for(10, aging_hours=48), self.config)
        # (30 + 25 + 4) x 2.0
        self.assertEqual(breakdown.subtotal, 118.0)


class FreezeAndClampTest(SimpleTestCase):

    def setUp(self):
        self.config = ScoringConfig.from_settings()

    def test_frozen_task_holds_display_inside_window(self):
        task = make_task(is_frozen=True, display_score=42.0)
        breakdown = score_task(task, False, context_for(-6, in_freeze_window=True), self.config)
        self.assertTrue(breakdown.frozen)
        self.assertEqual(breakdown.display_score, 42.0)
        self.assertNotEqual(breakdown.raw_score, 42.0)

    def test_frozen_flag_outside_window_does_not_hold(self):
        task = make_task(is_frozen=True, display_score=42.0)
        breakdown = score_task(task, False, context_for(30), self.config)
        self.assertFalse(breakdown.frozen)
        self.assertEqual(breakdown.display_score, breakdown.raw_score)

    def test_negative_raw_is_clamped_for_display(self):
        task = make_task(type="ADMIN", priority="NEITHER")
        breakdown = score_task(task, True, context_for(100), self.config)
        self.assertEqual(breakdown.raw_score, -10.0)
        self.assertEqual(breakdown.display_score, 0.0)

    def test_ceiling_clamp(self):
        config = ScoringConfig.from_settings({"DISPLAY_CEILING": 100})
        breakdown = score_task(make_task(emergency=True), False, context_for(2), config)
        self.assertGreater(breakdown.raw_score, 100)
        self.assertEqual(breakdown.display_score, 100.0)

    def test_done_task_scores_zero(self):
        breakdown = score_task(make_task(status="DONE", emergency=True), False, context_for(-50), self.config)
        self.assertEqual(breakdown, ZERO_BREAKDOWN)


class CalendarContextTest(SimpleTestCase):

    def setUp(self):
        self.calendar = BusinessCalendar.from_settings()

    def test_context_from_calendar(self):
        task = make_task(todo_since=local(2025, 1, 6, 10), deadline=local(2025, 1, 7, 14))
        context = build_calendar_context(task, local(2025, 1, 7, 12), self.calendar)
        self.assertEqual(context.remaining_working_hours, 2.0)
        self.assertFalse(context.overdue)
        self.assertEqual(context.aging_hours, 10.0)
        self.assertFalse(context.in_freeze_window)
        self.assertFalse(context.in_boost_window)

    def test_aging_anchor_outside_todo_is_status_change(self):
        task = make_task(status="IN_PROGRESS", todo_since=None, status_changed_at=local(2025, 1, 7, 10))
        context = build_calendar_context(task, local(2025, 1, 7, 12), self.calendar)
        self.assertEqual(context.aging_hours, 2.0)

    def test_overdue_flag(self):
        task = make_task(deadline=local(2025, 1, 6, 11))
        context = build_calendar_context(task, local(2025, 1, 6, 15), self.calendar)
        self.assertTrue(context.overdue)
        self.assertEqual(context.remaining_working_hours, -4.0)

    def test_missing_calendar_is_neutral(self):
        self.assertEqual(build_calendar_context(make_task(), local(2025, 1, 9, 15), None), CalendarContext())

    def test_unevaluable_dates_fall_back_to_neutral(self):
        task = make_task(deadline=None)
        with self.assertLogs("tasks.engine.scoring", level="WARNING"):
            context = build_calendar_context(task, local(2025, 1, 9, 15), self.calendar)
        self.assertEqual(context, CalendarContext())
        self.assertFalse(context.in_freeze_window)
        self.assertFalse(context.in_boost_window)
