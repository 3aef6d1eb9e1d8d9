# api/views.py
"""
Scheduler entry points.

The same jobs Celery beat runs, exposed over HTTP for an external cron.
They run synchronously and return the job's report.
"""

import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from projects.health import HealthScoreAggregator
from tasks.engine.freeze import apply_weekly_freeze
from tasks.engine.orchestrator import ScoreRecalculator
from .permissions import CronSecretPermission

logger = logging.getLogger(__name__)


class CronView(APIView):
    authentication_classes = []
    permission_classes = [CronSecretPermission]

    def run(self):
        raise NotImplementedError

    def post(self, request):
        result = self.run()
        logger.info(f"Cron {self.__class__.__name__} finished: {result}")
        return Response({"success": True, **result})

    def get(self, request):
        return self.post(request)


class RecalculateScoresCronView(CronView):
    def run(self):
        return ScoreRecalculator().recalculate_all().as_dict()

recalculate_scores_cron_view = RecalculateScoresCronView.as_view()


class RecalculateHealthScoresCronView(CronView):
    def run(self):
        return HealthScoreAggregator().recalculate_all().as_dict()

recalculate_health_scores_cron_view = RecalculateHealthScoresCronView.as_view()


class WeeklyFreezeCronView(CronView):
    def run(self):
        return apply_weekly_freeze()

weekly_freeze_cron_view = WeeklyFreezeCronView.as_view()
