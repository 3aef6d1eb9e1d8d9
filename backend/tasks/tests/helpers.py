# tasks/tests/helpers.py
"""Shared fixtures for the task test modules. All instants are fixed."""

from datetime import datetime
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model

from tasks.models import Task, TaskStatus

User = get_user_model()

STUDIO_TZ = ZoneInfo("Asia/Jerusalem")


def local(year, month, day, hour=0, minute=0):
    """A studio-local aware datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=STUDIO_TZ)


# Week of Sunday 2025-01-05 (UTC+2 in January)
SUNDAY = local(2025, 1, 5, 11)
MONDAY_NOON = local(2025, 1, 6, 12)
THURSDAY_AFTERNOON = local(2025, 1, 9, 15)
FRIDAY_NOON = local(2025, 1, 10, 12)


def create_test_user(username: str = "testuser", **extra) -> User:
    """Create a test user with unique username."""
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
        **extra,
    )


def create_test_task(owner, now=MONDAY_NOON, **fields) -> Task:
    """Create a TODO task anchored at `now`, bypassing the service layer."""
    defaults = {
        "title": "Test Task",
        "type": "CLIENT",
        "priority": "IMPORTANT_NOT_URGENT",
        "status": TaskStatus.TODO,
        "start_date": now,
        "deadline": local(2025, 1, 8, 18),
        "todo_since": now,
        "status_changed_at": now,
    }
    defaults.update(fields)
    return Task.objects.create(owner=owner, **defaults)
