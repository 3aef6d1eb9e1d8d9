# tasks/engine/workflow.py
"""
Review Workflow State Machine
=============================

Pure decision function for task status changes ("pass the baton"):

    | current   | requested       | reviewer? | next        | side effects     |
    |-----------|-----------------|-----------|-------------|------------------|
    | any       | DONE            | yes       | IN_REVIEW   | notify reviewer  |
    | any       | DONE            | no        | DONE        |                  |
    | IN_REVIEW | APPROVED        |           | DONE        |                  |
    | IN_REVIEW | REQUEST_CHANGES |           | IN_PROGRESS |                  |
    | any       | TODO / IN_PROGRESS / IN_REVIEW | | same    |                  |

Every status change additionally carries the bookkeeping effects that keep
the task's anchors consistent with its status (todo_since, status_changed_at,
completed_at, is_frozen) plus one audit entry. The effects are declarative;
the caller persists them and dispatches notifications, so nothing in this
module touches the database.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

TODO = "TODO"
IN_PROGRESS = "IN_PROGRESS"
IN_REVIEW = "IN_REVIEW"
DONE = "DONE"

APPROVED = "APPROVED"
REQUEST_CHANGES = "REQUEST_CHANGES"

STATUSES = (TODO, IN_PROGRESS, IN_REVIEW, DONE)
REVIEW_DECISIONS = (APPROVED, REQUEST_CHANGES)
REQUESTABLE = STATUSES + REVIEW_DECISIONS


class InvalidTransition(ValueError):
    """The requested status is unknown or not reachable from the current one."""


class SideEffectKind(str, Enum):
    NOTIFY_REVIEWER = "notify_reviewer"
    WRITE_AUDIT = "write_audit"
    STAMP_TODO_SINCE = "stamp_todo_since"
    CLEAR_TODO_SINCE = "clear_todo_since"
    STAMP_STATUS_CHANGED = "stamp_status_changed"
    STAMP_COMPLETED_AT = "stamp_completed_at"
    CLEAR_COMPLETED_AT = "clear_completed_at"
    CLEAR_FROZEN = "clear_frozen"


@dataclass(frozen=True)
class SideEffect:
    kind: SideEffectKind
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Transition:
    previous_status: str
    requested_status: str
    next_status: str
    side_effects: Tuple[SideEffect, ...] = ()

    @property
    def changed(self) -> bool:
        return self.previous_status != self.next_status

    def has_effect(self, kind: SideEffectKind) -> bool:
        return any(effect.kind == kind for effect in self.side_effects)

    def effects_of(self, kind: SideEffectKind) -> List[SideEffect]:
        return [effect for effect in self.side_effects if effect.kind == kind]


def _next_status(current: str, requested: str, has_reviewer: bool) -> Tuple[str, List[SideEffect]]:
    if requested == DONE:
        if has_reviewer:
            return IN_REVIEW, [SideEffect(SideEffectKind.NOTIFY_REVIEWER, {"reason": "review_requested"})]
        return DONE, []

    if requested in REVIEW_DECISIONS:
        if current != IN_REVIEW:
            raise InvalidTransition(f"{requested} is only valid for a task in review (current: {current}).")
        return (DONE if requested == APPROVED else IN_PROGRESS), []

    # Direct set: TODO, IN_PROGRESS, IN_REVIEW
    return requested, []


def resolve_transition(current: str, requested: str, has_reviewer: bool) -> Transition:
    """
    Decide the next status and the side effects of a status request.

    Raises InvalidTransition for unknown statuses and for review decisions
    on a task that is not in review.
    """
    if current not in STATUSES:
        raise InvalidTransition(f"Unknown current status: {current!r}")
    if requested not in REQUESTABLE:
        raise InvalidTransition(f"Unknown requested status: {requested!r}")

    next_status, effects = _next_status(current, requested, has_reviewer)

    if next_status != current:
        effects.append(SideEffect(SideEffectKind.WRITE_AUDIT, {"old": current, "new": next_status}))
        effects.append(SideEffect(SideEffectKind.STAMP_STATUS_CHANGED))

        if next_status == TODO:
            effects.append(SideEffect(SideEffectKind.STAMP_TODO_SINCE))
        elif current == TODO:
            effects.append(SideEffect(SideEffectKind.CLEAR_TODO_SINCE))

        if next_status == DONE:
            effects.append(SideEffect(SideEffectKind.STAMP_COMPLETED_AT))
            effects.append(SideEffect(SideEffectKind.CLEAR_FROZEN))
        elif current == DONE:
            effects.append(SideEffect(SideEffectKind.CLEAR_COMPLETED_AT))

    return Transition(
        previous_status=current,
        requested_status=requested,
        next_status=next_status,
        side_effects=tuple(effects),
    )


def apply_field_effects(transition: Transition, task: Any, now: datetime.datetime) -> List[str]:
    """
    Apply the status and timestamp effects of a transition to `task`.

    Returns the names of the fields that were written, ready for
    save(update_fields=...). Notification and audit effects are left to
    the caller.
    """
    updated = ["status"]
    task.status = transition.next_status

    for effect in transition.side_effects:
        if effect.kind == SideEffectKind.STAMP_TODO_SINCE:
            task.todo_since = now
            updated.append("todo_since")
        elif effect.kind == SideEffectKind.CLEAR_TODO_SINCE:
            task.todo_since = None
            updated.append("todo_since")
        elif effect.kind == SideEffectKind.STAMP_STATUS_CHANGED:
            task.status_changed_at = now
            updated.append("status_changed_at")
        elif effect.kind == SideEffectKind.STAMP_COMPLETED_AT:
            task.completed_at = now
            updated.append("completed_at")
        elif effect.kind == SideEffectKind.CLEAR_COMPLETED_AT:
            task.completed_at = None
            updated.append("completed_at")
        elif effect.kind == SideEffectKind.CLEAR_FROZEN:
            task.is_frozen = False
            updated.append("is_frozen")

    return updated
