# projects/tasks.py

import logging
from typing import Dict

from celery import shared_task

from .health import HealthScoreAggregator

logger = logging.getLogger(__name__)


@shared_task(name="projects.recalculate_health_scores")
def recalculate_health_scores() -> Dict[str, int]:
    """
    Worker: daily health sweep over every non-archived project and client.
    Not retried; failures are counted in the returned report.
    """
    report = HealthScoreAggregator().recalculate_all()
    return report.as_dict()
