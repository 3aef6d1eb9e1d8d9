# tasks/engine/dispatch.py
"""
Background work submission.

Mutation paths never wait for a full rescore: they register the job with
the current transaction and return. The job is enqueued only after the
commit, so the worker always sees the committed rows; a rolled-back
mutation enqueues nothing.
"""

import logging

from django.db import transaction
from kombu.exceptions import OperationalError

logger = logging.getLogger(__name__)


def _enqueue_recalculation():
    from .celery_tasks import recalculate_all_scores

    try:
        result = recalculate_all_scores.delay()
        logger.debug(f"Score recalculation enqueued as {result.id}")
    except OperationalError as e:
        # Broker unavailable: the next scheduled sweep catches up.
        logger.error(f"Could not enqueue score recalculation: {e}")


def schedule_recalculation():
    """Fire-and-forget full rescore once the current transaction commits."""
    transaction.on_commit(_enqueue_recalculation)
