# tasks/calendar_sync.py
"""
Calendar synchronisation hook.

The real integration lives outside this service; it is plugged in through
settings.CALENDAR_SYNC_BACKEND (a dotted path to a CalendarSyncBackend
subclass). Sync is best-effort: a failing backend is logged and never
affects the task mutation that triggered it.
"""

import logging

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
DELETED = "deleted"

EVENTS = (CREATED, UPDATED, DELETED)


class CalendarSyncBackend:
    def task_created(self, task):
        raise NotImplementedError

    def task_updated(self, task):
        raise NotImplementedError

    def task_deleted(self, task):
        raise NotImplementedError


class LoggingCalendarSync(CalendarSyncBackend):
    """Default backend: records what would have been synced."""

    def task_created(self, task):
        logger.info(f"Calendar sync: create event for Task {task.pk} ({task.deadline.isoformat()})")

    def task_updated(self, task):
        logger.info(f"Calendar sync: update event for Task {task.pk} ({task.deadline.isoformat()})")

    def task_deleted(self, task):
        logger.info(f"Calendar sync: delete event for Task {task.pk}")


def get_backend() -> CalendarSyncBackend:
    path = getattr(settings, "CALENDAR_SYNC_BACKEND", "tasks.calendar_sync.LoggingCalendarSync")
    return import_string(path)()


def sync_task(event: str, task) -> bool:
    """Inform the calendar collaborator about a task change. Returns False on failure."""
    if event not in EVENTS:
        raise ValueError(f"Unknown calendar sync event: {event!r}")
    try:
        backend = get_backend()
        getattr(backend, f"task_{event}")(task)
        return True
    except Exception as e:
        logger.exception(f"Calendar sync '{event}' failed for Task {task.pk}: {e}")
        return False
