# tasks/engine/freeze.py

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from ..models import Task
from ..notifications import notify_score_freeze
from .business_calendar import BusinessCalendar
from .orchestrator import load_calendar

logger = logging.getLogger(__name__)


def apply_weekly_freeze(now=None, calendar: Optional[BusinessCalendar] = None) -> Dict[str, Any]:
    """
    Flip the per-task freeze flag to match the weekly freeze window.

    Inside the window every live task is frozen (and the team is told the
    first time it happens); outside it every frozen task is released.
    Running it again in the same state changes nothing.
    """
    now = now or timezone.now()
    calendar = calendar if calendar is not None else load_calendar()
    in_window = bool(calendar and calendar.is_in_weekly_freeze_window(now))

    if in_window:
        affected = Task.objects.live().filter(is_frozen=False).update(is_frozen=True)
        if affected:
            logger.info(f"Weekly freeze started: {affected} tasks frozen")
            transaction.on_commit(notify_score_freeze)
    else:
        affected = Task.objects.filter(is_frozen=True).update(is_frozen=False)
        if affected:
            logger.info(f"Weekly freeze lifted: {affected} tasks released")

    return {"frozen": in_window, "affected": affected}
