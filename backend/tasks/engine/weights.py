# tasks/engine/weights.py
"""
Named tuning constants for the score model.

The values are product decisions; override any key through
settings.TASK_SCORING rather than editing them here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple

from django.conf import settings

DEFAULT_SCORING: Dict[str, Any] = {
    # Base weight per task type, plus optional (type, priority) adjustments
    "TYPE_WEIGHTS": {
        "CLIENT": 30,
        "INTERNAL": 15,
        "RESEARCH": 15,
        "ADMIN": 5,
    },
    "TYPE_PRIORITY_ADJUSTMENTS": {},
    # Priority tier modifier, independent of type
    "PRIORITY_WEIGHTS": {
        "URGENT_IMPORTANT": 40,
        "IMPORTANT_NOT_URGENT": 25,
        "URGENT_NOT_IMPORTANT": 15,
        "NEITHER": 5,
    },
    # +2 for every 24 working hours spent waiting in the current state
    "AGING_STEP_HOURS": 24,
    "AGING_POINTS_PER_STEP": 2,
    # (remaining working hours strictly below, multiplier), tightest first
    "URGENCY_STEPS": [(8, 2.5), (16, 2.0), (40, 1.5)],
    "OVERDUE_MULTIPLIER": 3.0,
    "OVERDUE_GROWTH_PER_HOUR": 0.05,
    # Flat additive boosts
    "IN_REVIEW_BOOST": 50,
    "EMERGENCY_BOOST": 150,
    "SUNDAY_RD_BOOST": 100,
    "SUNDAY_RD_TYPES": ["RESEARCH"],
    # Owner at capacity
    "CAPACITY_PENALTY": 20,
    "CAPACITY_PENALTY_TYPES": ["ADMIN"],
    # display_score clamp
    "DISPLAY_FLOOR": 0.0,
    "DISPLAY_CEILING": 10000.0,
}


@dataclass(frozen=True)
class ScoringConfig:
    type_weights: Dict[str, float]
    type_priority_adjustments: Dict[Tuple[str, str], float]
    priority_weights: Dict[str, float]
    aging_step_hours: float
    aging_points_per_step: float
    urgency_steps: Tuple[Tuple[float, float], ...]
    overdue_multiplier: float
    overdue_growth_per_hour: float
    in_review_boost: float
    emergency_boost: float
    sunday_rd_boost: float
    sunday_rd_types: FrozenSet[str]
    capacity_penalty: float
    capacity_penalty_types: FrozenSet[str]
    display_floor: float
    display_ceiling: float

    @classmethod
    def from_settings(cls, overrides: Optional[Dict[str, Any]] = None) -> "ScoringConfig":
        values = dict(DEFAULT_SCORING)
        values.update(getattr(settings, "TASK_SCORING", {}) or {})
        if overrides:
            values.update(overrides)

        adjustments = {}
        for key, value in (values["TYPE_PRIORITY_ADJUSTMENTS"] or {}).items():
            # Accept ("CLIENT", "NEITHER") tuples or "CLIENT:NEITHER" strings
            if isinstance(key, str):
                key = tuple(key.split(":", 1))
            adjustments[tuple(key)] = float(value)

        return cls(
            type_weights={k: float(v) for k, v in values["TYPE_WEIGHTS"].items()},
            type_priority_adjustments=adjustments,
            priority_weights={k: float(v) for k, v in values["PRIORITY_WEIGHTS"].items()},
            aging_step_hours=float(values["AGING_STEP_HOURS"]),
            aging_points_per_step=float(values["AGING_POINTS_PER_STEP"]),
            urgency_steps=tuple(
                sorted((float(bound), float(mult)) for bound, mult in values["URGENCY_STEPS"])
            ),
            overdue_multiplier=float(values["OVERDUE_MULTIPLIER"]),
            overdue_growth_per_hour=float(values["OVERDUE_GROWTH_PER_HOUR"]),
            in_review_boost=float(values["IN_REVIEW_BOOST"]),
            emergency_boost=float(values["EMERGENCY_BOOST"]),
            sunday_rd_boost=float(values["SUNDAY_RD_BOOST"]),
            sunday_rd_types=frozenset(values["SUNDAY_RD_TYPES"]),
            capacity_penalty=float(values["CAPACITY_PENALTY"]),
            capacity_penalty_types=frozenset(values["CAPACITY_PENALTY_TYPES"]),
            display_floor=float(values["DISPLAY_FLOOR"]),
            display_ceiling=float(values["DISPLAY_CEILING"]),
        )
