# tasks/notifications.py
"""
Notification dispatch.

Notifications are stored as rows for the client to poll; delivery beyond
that (email, push) belongs to another service. Every call is best-effort:
a failure is logged and never propagates into the mutation that caused it.
"""

import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from .models import Notification, NotificationKind

logger = logging.getLogger(__name__)


def notify(user_id: int, kind: str, payload: Dict[str, Any]) -> Optional[Notification]:
    """
    Store one notification for one user.

    `payload` may carry "title", "message" and "task_id"; anything else is
    kept verbatim in the JSON payload.
    """
    data = dict(payload)
    title = data.pop("title", NotificationKind(kind).label)
    message = data.pop("message", "")
    task_id = data.pop("task_id", None)

    try:
        # Savepoint so a failed insert cannot poison the caller's transaction.
        with transaction.atomic():
            return Notification.objects.create(
                user_id=user_id,
                kind=kind,
                title=str(title),
                message=message,
                task_id=task_id,
                payload=data,
            )
    except DatabaseError as e:
        logger.exception(f"Notification {kind} for user {user_id} failed: {e}")
        return None


def notify_all_users(kind: str, payload: Dict[str, Any]) -> int:
    sent = 0
    user_ids = get_user_model().objects.active().values_list("id", flat=True)
    for user_id in user_ids:
        if notify(user_id, kind, payload) is not None:
            sent += 1
    return sent


def notify_review_request(task, owner_name: str) -> Optional[Notification]:
    return notify(task.reviewer_id, NotificationKind.REVIEW_REQUEST, {
        "title": "Review Requested",
        "message": f'{owner_name} submitted "{task.title}" for your review.',
        "task_id": task.pk,
    })


def notify_task_assigned(user_id: int, task, role: str) -> Optional[Notification]:
    return notify(user_id, NotificationKind.TASK_ASSIGNED, {
        "title": f"Assigned as {role}",
        "message": f'You\'ve been assigned as {role} on "{task.title}".',
        "task_id": task.pk,
        "role": role,
    })


def notify_emergency(task) -> int:
    return notify_all_users(NotificationKind.EMERGENCY_TASK, {
        "title": "Emergency Task",
        "message": f'"{task.title}" has been flagged as emergency.',
        "task_id": task.pk,
    })


def notify_score_freeze() -> int:
    return notify_all_users(NotificationKind.SCORE_FREEZE, {
        "title": "Weekly Planning Mode",
        "message": "Scores are frozen for the weekly review meeting.",
    })
