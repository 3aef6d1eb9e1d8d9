# tasks/engine/scoring.py
"""
Score Model
===========

Deterministic, explainable priority score for a single task.

    subtotal      = (base_weight + user_priority + aging) x urgency_multiplier
    raw_score     = subtotal + in_review + emergency + sunday_rd - capacity_penalty
    display_score = clamp(raw_score, floor, ceiling)

While a task is frozen and the weekly freeze window is open, display_score
is held at the last persisted value; raw_score keeps moving so the board
can be audited after the meeting.

score_task() is a pure function of (task, owner capacity, calendar context,
config). It reads no clock and keeps no state: identical inputs always give
identical output. The only place the calendar is consulted is
build_calendar_context(), which turns "now" into plain numbers and flags.
"""

from __future__ import annotations

import datetime
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from .business_calendar import BusinessCalendar
from .weights import ScoringConfig

logger = logging.getLogger(__name__)

STATUS_TODO = "TODO"
STATUS_IN_REVIEW = "IN_REVIEW"
STATUS_DONE = "DONE"


@dataclass(frozen=True)
class CalendarContext:
    """Everything time-dependent the score model needs, precomputed for one instant."""
    remaining_working_hours: Optional[float] = None
    overdue: bool = False
    aging_hours: float = 0.0
    in_boost_window: bool = False
    in_freeze_window: bool = False


@dataclass(frozen=True)
class ScoreBoosts:
    in_review: float = 0.0
    emergency: float = 0.0
    sunday_rd: float = 0.0

    @property
    def total(self) -> float:
        return self.in_review + self.emergency + self.sunday_rd


@dataclass(frozen=True)
class ScoreBreakdown:
    base_weight: float
    user_priority: float
    aging: float
    urgency_multiplier: float
    subtotal: float
    boosts: ScoreBoosts = field(default_factory=ScoreBoosts)
    capacity_penalty: float = 0.0
    raw_score: float = 0.0
    display_score: float = 0.0
    frozen: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


ZERO_BREAKDOWN = ScoreBreakdown(
    base_weight=0.0,
    user_priority=0.0,
    aging=0.0,
    urgency_multiplier=0.0,
    subtotal=0.0,
)


# ---------------------------------------------------------------------------
# Calendar context
# ---------------------------------------------------------------------------


def _aging_anchor(task: Any) -> Optional[datetime.datetime]:
    if task.status == STATUS_TODO:
        return task.todo_since
    return getattr(task, "status_changed_at", None)


def build_calendar_context(
    task: Any,
    now: datetime.datetime,
    calendar: Optional[BusinessCalendar],
) -> CalendarContext:
    """
    Evaluate the calendar for one task at one instant.

    Falls back to a neutral context (not frozen, not boosted, no aging,
    no urgency) when the calendar is unavailable or the task's dates
    cannot be evaluated, so scoring never blocks on it.
    """
    if calendar is None:
        return CalendarContext()

    try:
        remaining = calendar.remaining_working_hours(now, task.deadline)
        overdue = calendar.localize(now) > calendar.localize(task.deadline)

        anchor = _aging_anchor(task)
        aging_hours = calendar.working_hours_between(anchor, now) if anchor else 0.0

        return CalendarContext(
            remaining_working_hours=remaining,
            overdue=overdue,
            aging_hours=aging_hours,
            in_boost_window=calendar.is_in_boost_window(now),
            in_freeze_window=calendar.is_in_weekly_freeze_window(now),
        )
    except (AttributeError, TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Calendar context unavailable for task {getattr(task, 'pk', None)}: {e}")
        return CalendarContext()


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def base_weight(task_type: str, priority: str, config: ScoringConfig) -> float:
    weight = config.type_weights.get(task_type, 0.0)
    return weight + config.type_priority_adjustments.get((task_type, priority), 0.0)


def aging_points(aging_hours: float, config: ScoringConfig) -> float:
    if aging_hours <= 0 or config.aging_step_hours <= 0:
        return 0.0
    return math.floor(aging_hours / config.aging_step_hours) * config.aging_points_per_step


def urgency_multiplier(
    remaining_hours: Optional[float],
    overdue: bool,
    config: ScoringConfig,
) -> float:
    """
    Step function of remaining working hours; past the deadline it keeps
    growing with every overdue working hour. Never below 1.
    """
    if remaining_hours is None:
        return 1.0

    if overdue:
        overdue_hours = max(0.0, -remaining_hours)
        return config.overdue_multiplier + config.overdue_growth_per_hour * overdue_hours

    last = len(config.urgency_steps) - 1
    for index, (bound, multiplier) in enumerate(config.urgency_steps):
        # the widest step includes its own bound
        if remaining_hours < bound or (index == last and remaining_hours == bound):
            return max(1.0, multiplier)
    return 1.0


def _clamp(value: float, floor: float, ceiling: float) -> float:
    return max(floor, min(ceiling, value))


# ---------------------------------------------------------------------------
# Score
# ---------------------------------------------------------------------------


def score_task(
    task: Any,
    owner_at_capacity: bool,
    context: CalendarContext,
    config: ScoringConfig,
) -> ScoreBreakdown:
    """
    Compute the full breakdown for one task.

    `task` is anything exposing type, priority, status, emergency,
    is_frozen and display_score (a Task instance in practice).
    """
    if task.status == STATUS_DONE:
        return ZERO_BREAKDOWN

    weight = base_weight(task.type, task.priority, config)
    user_priority = config.priority_weights.get(task.priority, 0.0)
    aging = aging_points(context.aging_hours, config)
    multiplier = urgency_multiplier(context.remaining_working_hours, context.overdue, config)

    subtotal = (weight + user_priority + aging) * multiplier

    boosts = ScoreBoosts(
        in_review=config.in_review_boost if task.status == STATUS_IN_REVIEW else 0.0,
        emergency=config.emergency_boost if task.emergency else 0.0,
        sunday_rd=(
            config.sunday_rd_boost
            if context.in_boost_window and task.type in config.sunday_rd_types
            else 0.0
        ),
    )

    penalty = 0.0
    if owner_at_capacity and task.type in config.capacity_penalty_types:
        penalty = config.capacity_penalty

    raw = round(subtotal + boosts.total - penalty, 2)

    frozen = bool(task.is_frozen and context.in_freeze_window)
    if frozen:
        display = float(task.display_score or 0.0)
    else:
        display = round(_clamp(raw, config.display_floor, config.display_ceiling), 2)

    return ScoreBreakdown(
        base_weight=weight,
        user_priority=user_priority,
        aging=aging,
        urgency_multiplier=round(multiplier, 4),
        subtotal=round(subtotal, 2),
        boosts=boosts,
        capacity_penalty=penalty,
        raw_score=raw,
        display_score=display,
        frozen=frozen,
    )
