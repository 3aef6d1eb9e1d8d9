# tasks/engine/orchestrator.py

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfoNotFoundError

from django.utils import timezone

from ..models import Task
from .business_calendar import BusinessCalendar
from .scoring import ScoreBreakdown, build_calendar_context, score_task
from .weights import ScoringConfig

logger = logging.getLogger(__name__)


@dataclass
class RecalculationReport:
    processed: int = 0
    updated: int = 0
    failed: int = 0
    failed_task_ids: List[int] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "failed": self.failed,
            "failed_task_ids": list(self.failed_task_ids),
        }


def load_calendar() -> Optional[BusinessCalendar]:
    """The configured calendar, or None when it cannot be built."""
    try:
        return BusinessCalendar.from_settings()
    except (ZoneInfoNotFoundError, KeyError, ValueError) as e:
        logger.error(f"Business calendar misconfigured, scoring without calendar signals: {e}")
        return None


class ScoreRecalculator:
    """
    Applies the score model to persisted tasks.

    Each task's score depends only on its own row, its owner's capacity
    flag and the evaluation instant, so overlapping runs converge on the
    same values and need no mutual exclusion; at worst they repeat writes.
    """

    def __init__(
        self,
        calendar: Optional[BusinessCalendar] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.calendar = calendar if calendar is not None else load_calendar()
        self.config = config or ScoringConfig.from_settings()

    def live_tasks(self):
        return Task.objects.live().select_related("owner")

    def preview(self, task: Task, now=None) -> ScoreBreakdown:
        """Score a task at `now` without persisting anything."""
        now = now or timezone.now()
        context = build_calendar_context(task, now, self.calendar)
        return score_task(task, bool(task.owner.at_capacity), context, self.config)

    def _persist(self, task: Task, breakdown: ScoreBreakdown, now) -> None:
        Task.objects.filter(pk=task.pk).update(
            raw_score=breakdown.raw_score,
            display_score=breakdown.display_score,
            score_breakdown=breakdown.to_dict(),
            scored_at=now,
        )

    def recalculate_task(self, task_id: int, now=None) -> ScoreBreakdown:
        """
        Synchronous single-task recompute for call sites that must return a
        fresh score. Raises Task.DoesNotExist for unknown ids.
        """
        now = now or timezone.now()
        task = Task.objects.select_related("owner").get(pk=task_id)
        breakdown = self.preview(task, now)
        self._persist(task, breakdown, now)
        logger.debug(f"Task {task_id} rescored: raw={breakdown.raw_score} display={breakdown.display_score}")
        return breakdown

    def recalculate_all(self, now=None) -> RecalculationReport:
        """
        Rescore every live task. A failing task is logged and counted; the
        rest of the batch still runs.
        """
        now = now or timezone.now()
        report = RecalculationReport()

        for task in self.live_tasks().iterator():
            report.processed += 1
            try:
                breakdown = self.preview(task, now)
                self._persist(task, breakdown, now)
                report.updated += 1
            except Exception as e:
                report.failed += 1
                report.failed_task_ids.append(task.pk)
                logger.exception(f"Score recalculation failed for Task {task.pk}: {e}")

        logger.info(
            f"Score recalculation finished: {report.updated}/{report.processed} updated, "
            f"{report.failed} failed"
        )
        return report
