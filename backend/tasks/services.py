# tasks/services.py
"""
Task mutation services.

Every path that changes a task goes through here so that the same
sequence always applies:

    1. validate / resolve (state machine for status changes)
    2. write the row(s) and the audit entry inside one transaction
    3. on commit: notifications and calendar sync (best-effort)
    4. schedule the background rescore (fire-and-forget)

Call sites whose response must carry a fresh score additionally run the
synchronous single-task recompute after the commit.
"""

import copy
import logging
from functools import partial
from typing import Iterable, List, Optional, Tuple

from django.db import transaction
from django.utils import timezone

from . import calendar_sync
from .engine.dispatch import schedule_recalculation
from .engine.orchestrator import ScoreRecalculator
from .engine.workflow import SideEffectKind, Transition, apply_field_effects, resolve_transition
from .models import ReviewAuditEntry, Task, TaskStatus
from .notifications import notify_emergency, notify_review_request, notify_task_assigned

logger = logging.getLogger(__name__)

BATCH_CHANGE_STATUS = "change_status"
BATCH_CHANGE_PRIORITY = "change_priority"
BATCH_CHANGE_OWNER = "change_owner"
BATCH_CHANGE_PROJECT = "change_project"
BATCH_DELETE = "delete"

BATCH_ACTIONS = (
    BATCH_CHANGE_STATUS,
    BATCH_CHANGE_PRIORITY,
    BATCH_CHANGE_OWNER,
    BATCH_CHANGE_PROJECT,
    BATCH_DELETE,
)


class TasksNotFound(Exception):
    def __init__(self, missing_ids: List[int]):
        self.missing_ids = missing_ids
        super().__init__(f"Tasks not found: {missing_ids}")


def _actor_id(actor) -> Optional[int]:
    return getattr(actor, "pk", None)


def refresh_score(task: Task, now=None) -> Task:
    """Synchronously rescore one task and reload it."""
    ScoreRecalculator().recalculate_task(task.pk, now)
    task.refresh_from_db()
    return task


def _notify_assignment(task: Task, actor, previous_owner_id=None, previous_reviewer_id=None):
    actor_id = _actor_id(actor)
    if task.owner_id and task.owner_id != previous_owner_id and task.owner_id != actor_id:
        notify_task_assigned(task.owner_id, task, "owner")
    if task.reviewer_id and task.reviewer_id != previous_reviewer_id and task.reviewer_id != actor_id:
        notify_task_assigned(task.reviewer_id, task, "reviewer")


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------


def create_task(validated_data: dict, actor=None, now=None) -> Task:
    """New tasks always start in TODO with their aging anchors at `now`."""
    now = now or timezone.now()
    validated_data = dict(validated_data)
    validated_data.pop("status", None)

    with transaction.atomic():
        task = Task.objects.create(
            status=TaskStatus.TODO,
            todo_since=now,
            status_changed_at=now,
            **validated_data,
        )
        transaction.on_commit(partial(calendar_sync.sync_task, calendar_sync.CREATED, task))
        transaction.on_commit(partial(_notify_assignment, task, actor))
        schedule_recalculation()

    logger.info(f"Task {task.pk} created by {_actor_id(actor)}")
    return refresh_score(task, now)


def edit_task(task_id: int, validated_data: dict) -> Task:
    """
    Write user-editable fields onto a freshly locked row. Only the edited
    columns are saved, so state owned by the workflow, the freeze job and
    the rescore pass is never overwritten from a stale instance.
    """
    with transaction.atomic():
        task = Task.objects.select_for_update().get(pk=task_id)
        for field, value in validated_data.items():
            setattr(task, field, value)
        task.save(update_fields=list(validated_data) + ["updated_at"])
    return task


def update_task(task: Task, previous_owner_id, previous_reviewer_id, actor=None) -> Task:
    """Post-save hook for edits made through the task serializer."""
    transaction.on_commit(partial(calendar_sync.sync_task, calendar_sync.UPDATED, task))
    transaction.on_commit(partial(_notify_assignment, task, actor, previous_owner_id, previous_reviewer_id))
    schedule_recalculation()
    return refresh_score(task)


def delete_task(task: Task) -> None:
    snapshot = copy.copy(task)
    with transaction.atomic():
        task.delete()
        transaction.on_commit(partial(calendar_sync.sync_task, calendar_sync.DELETED, snapshot))
        schedule_recalculation()
    logger.info(f"Task {snapshot.pk} deleted")


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


def _execute_transition(task: Task, transition: Transition, actor, now) -> None:
    """Persist a resolved transition and register its deferred side effects."""
    if transition.changed:
        fields = apply_field_effects(transition, task, now)
        task.save(update_fields=fields + ["updated_at"])

    if transition.has_effect(SideEffectKind.WRITE_AUDIT):
        ReviewAuditEntry.objects.create(
            task=task,
            actor=actor if _actor_id(actor) else None,
            old_status=transition.previous_status,
            new_status=transition.next_status,
            requested_status=transition.requested_status,
        )

    if transition.has_effect(SideEffectKind.NOTIFY_REVIEWER) and task.reviewer_id:
        owner_name = task.owner.get_full_name()
        transaction.on_commit(partial(notify_review_request, task, owner_name))

    if transition.changed:
        transaction.on_commit(partial(calendar_sync.sync_task, calendar_sync.UPDATED, task))


def change_task_status(
    task_id: int,
    requested_status: str,
    actor=None,
    now=None,
    schedule: bool = True,
) -> Tuple[Task, Transition]:
    """
    Run the review state machine for one task and persist the outcome.

    Raises Task.DoesNotExist for unknown ids and InvalidTransition for
    requests the state machine rejects (nothing is written in either case).
    """
    now = now or timezone.now()
    with transaction.atomic():
        task = Task.objects.select_for_update().get(pk=task_id)
        transition = resolve_transition(task.status, requested_status, task.reviewer_id is not None)
        _execute_transition(task, transition, actor, now)
        if schedule:
            schedule_recalculation()

    logger.info(
        f"Task {task_id}: {transition.previous_status} -> {transition.next_status} "
        f"(requested {requested_status})"
    )
    return task, transition


def toggle_emergency(task_id: int, actor=None) -> Task:
    with transaction.atomic():
        task = Task.objects.select_for_update().get(pk=task_id)
        task.emergency = not task.emergency
        task.save(update_fields=["emergency", "updated_at"])
        if task.emergency:
            transaction.on_commit(partial(notify_emergency, task))
        schedule_recalculation()

    logger.info(f"Task {task_id} emergency set to {task.emergency} by {_actor_id(actor)}")
    return refresh_score(task)


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def apply_batch_action(task_ids: Iterable[int], action: str, value=None, actor=None) -> int:
    """
    Apply one action uniformly to a set of tasks and schedule a single
    rescore for the whole batch.

    Raises TasksNotFound before touching anything if an id is unknown. A
    state machine rejection on any task rolls back the whole batch.
    """
    if action not in BATCH_ACTIONS:
        raise ValueError(f"Unknown batch action: {action!r}")

    ids = list(dict.fromkeys(task_ids))
    existing = set(Task.objects.filter(pk__in=ids).values_list("pk", flat=True))
    missing = [pk for pk in ids if pk not in existing]
    if missing:
        raise TasksNotFound(missing)

    now = timezone.now()
    with transaction.atomic():
        queryset = Task.objects.filter(pk__in=ids)

        if action == BATCH_CHANGE_STATUS:
            for pk in ids:
                change_task_status(pk, value, actor=actor, now=now, schedule=False)

        elif action == BATCH_CHANGE_PRIORITY:
            queryset.update(priority=value, updated_at=now)

        elif action == BATCH_CHANGE_OWNER:
            previous = dict(queryset.values_list("pk", "owner_id"))
            queryset.update(owner_id=value, updated_at=now)
            for task in Task.objects.filter(pk__in=ids):
                transaction.on_commit(partial(_notify_assignment, task, actor, previous[task.pk], task.reviewer_id))

        elif action == BATCH_CHANGE_PROJECT:
            queryset.update(project_id=value or None, updated_at=now)

        elif action == BATCH_DELETE:
            for task in queryset:
                transaction.on_commit(partial(calendar_sync.sync_task, calendar_sync.DELETED, copy.copy(task)))
            queryset.delete()

        schedule_recalculation()

    logger.info(f"Batch {action} applied to {len(ids)} tasks")
    return len(ids)
