# tasks/engine/__init__.py
"""
Scoring Engine Package
======================

The ranking and review-workflow core of the studio board.

Modules:
--------
- business_calendar: Work-week arithmetic, freeze and boost windows (pure)
- weights: Named tuning constants for the score model
- scoring: Deterministic per-task score breakdown (pure)
- workflow: Review state machine, "pass the baton" (pure)
- orchestrator: Rescores persisted tasks, all at once or one at a time
- freeze: Weekly freeze flag toggle
- dispatch: Fire-and-forget submission of background rescoring
- celery_tasks: Celery workers for the above

Architecture:
-------------
Mutations run the state machine (when status-related), commit, then call
dispatch.schedule_recalculation(). The Celery worker runs
ScoreRecalculator.recalculate_all(), which builds a CalendarContext per
task and feeds it to scoring.score_task(). Beat runs the same sweep on a
fixed cadence, so a lost enqueue only delays a rescore.

The modules that touch the ORM are not re-exported here so that the pure
ones can be imported before Django's app registry is ready.
"""

from .business_calendar import BusinessCalendar, WeeklyWindow
from .scoring import CalendarContext, ScoreBoosts, ScoreBreakdown, build_calendar_context, score_task
from .weights import DEFAULT_SCORING, ScoringConfig
from .workflow import InvalidTransition, SideEffect, SideEffectKind, Transition, resolve_transition

__all__ = [
    # Calendar
    "BusinessCalendar",
    "WeeklyWindow",
    # Score model
    "CalendarContext",
    "ScoreBoosts",
    "ScoreBreakdown",
    "ScoringConfig",
    "DEFAULT_SCORING",
    "build_calendar_context",
    "score_task",
    # Workflow
    "InvalidTransition",
    "SideEffect",
    "SideEffectKind",
    "Transition",
    "resolve_transition",
]
