# tasks/engine/celery_tasks.py

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from ..models import Task
from .freeze import apply_weekly_freeze
from .orchestrator import ScoreRecalculator

# Configure logging for background worker monitoring
logger = logging.getLogger(__name__)


@shared_task(name="tasks.engine.recalculate_all_scores", ignore_result=False)
def recalculate_all_scores() -> Dict[str, Any]:
    """
    Worker: rescore every live task. Per-task failures are counted in the
    report rather than retried; the next run picks them up again.
    """
    report = ScoreRecalculator().recalculate_all()
    return report.as_dict()


@shared_task(
    bind=True,
    name="tasks.engine.recalculate_task_score",
    autoretry_for=(Exception,),
    dont_autoretry_for=(Task.DoesNotExist,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max backoff of 10 minutes
    max_retries=3,
    time_limit=30,
    soft_time_limit=25,
)
def recalculate_task_score(self, task_id: int) -> Optional[Dict[str, Any]]:
    """Worker: rescore one task. Input is the task id only."""
    try:
        breakdown = ScoreRecalculator().recalculate_task(task_id)
    except Task.DoesNotExist:
        logger.warning(f"Task {task_id} not found. Exiting worker.")
        return None
    return breakdown.to_dict()


@shared_task(name="tasks.engine.apply_weekly_freeze")
def apply_weekly_freeze_task() -> Dict[str, Any]:
    return apply_weekly_freeze()
