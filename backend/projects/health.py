# projects/health.py
"""
Health Score Aggregator
=======================

Folds a project's (or client's) current state into a 0-100 score with a
letter grade, a trend against the previously stored score and the list of
factors that produced it.

score_project() and score_client() are pure: they read plain attributes
off the objects they are given and never query. HealthScoreAggregator
loads the snapshots, calls them and persists the result.

Every factor has a fixed baseline for the empty case (no tasks, no
invoices, no budget), so no rubric divides by zero.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from django.conf import settings
from django.utils import timezone

from tasks.models import Task, TaskStatus
from .models import Client, Invoice, Project

logger = logging.getLogger(__name__)


DEFAULT_HEALTH_SETTINGS = {
    # (threshold, grade), highest first; anything below the last is F.
    "GRADE_THRESHOLDS": [(90, "A"), (75, "B"), (60, "C"), (40, "D")],
    "PROJECT_WEIGHTS": {
        "on_time": 0.30,
        "overdue": 0.25,
        "workload": 0.15,
        "timeline": 0.15,
        "budget": 0.15,
    },
    "CLIENT_WEIGHTS": {
        "payment": 0.30,
        "project_health": 0.25,
        "overdue": 0.20,
        "revenue": 0.15,
        "on_time": 0.10,
    },
    "OVERDUE_TASK_PENALTY": 20,
    "OVERDUE_INVOICE_PENALTY": 20,
    # Workload balance only means something once there is work to spread.
    "WORKLOAD_MIN_OPEN_TASKS": 3,
}


def health_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    merged = dict(DEFAULT_HEALTH_SETTINGS)
    merged.update(getattr(settings, "HEALTH_SCORE", None) or {})
    merged.update(overrides or {})
    return merged


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HealthFactor:
    name: str
    score: int
    weight: float
    weighted: float
    detail: str


@dataclass(frozen=True)
class HealthScoreResult:
    overall: int
    grade: str
    trend: int
    factors: List[HealthFactor] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "grade": self.grade,
            "trend": self.trend,
            "factors": [asdict(f) for f in self.factors],
        }


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def grade(overall: int, thresholds: Optional[Sequence] = None) -> str:
    """Step function of the overall score: A >= 90, B >= 75, C >= 60, D >= 40, else F."""
    if thresholds is None:
        thresholds = DEFAULT_HEALTH_SETTINGS["GRADE_THRESHOLDS"]
    for threshold, letter in thresholds:
        if overall >= threshold:
            return letter
    return "F"


def make_factor(name: str, score: float, weight: float, detail: str) -> HealthFactor:
    clamped = int(_clamp(round(score), 0, 100))
    return HealthFactor(
        name=name,
        score=clamped,
        weight=weight,
        weighted=round(clamped * weight, 2),
        detail=detail,
    )


def build_result(factors: List[HealthFactor], previous: Optional[int], thresholds=None) -> HealthScoreResult:
    overall = int(_clamp(round(sum(f.weighted for f in factors)), 0, 100))
    trend = overall - previous if previous is not None else 0
    return HealthScoreResult(overall=overall, grade=grade(overall, thresholds), trend=trend, factors=factors)


# ---------------------------------------------------------------------------
# Shared task factors
# ---------------------------------------------------------------------------


def _is_done(task) -> bool:
    return task.status == TaskStatus.DONE


def _completed_on_time(task) -> bool:
    finished = task.completed_at or task.updated_at
    return finished is None or finished <= task.deadline


def _overdue_open(tasks: Iterable, now) -> List:
    return [t for t in tasks if not _is_done(t) and t.deadline < now]


def on_time_factor(tasks: Sequence, weight: float) -> HealthFactor:
    completed = [t for t in tasks if _is_done(t)]
    if not completed:
        return make_factor("On-time Completion", 70, weight, "No completed tasks yet")

    on_time = sum(1 for t in completed if _completed_on_time(t))
    ratio = on_time / len(completed)
    return make_factor(
        "On-time Completion", ratio * 100, weight,
        f"{on_time}/{len(completed)} tasks finished by their deadline",
    )


def overdue_factor(tasks: Sequence, now, weight: float, penalty: float) -> HealthFactor:
    overdue = len(_overdue_open(tasks, now))
    if overdue == 0:
        return make_factor("Overdue Tasks", 100, weight, "No overdue tasks")
    return make_factor(
        "Overdue Tasks", 100 - overdue * penalty, weight,
        f"{overdue} open task{'s' if overdue != 1 else ''} past deadline",
    )


# ---------------------------------------------------------------------------
# Project rubric
# ---------------------------------------------------------------------------


def workload_factor(tasks: Sequence, weight: float, min_open: int) -> HealthFactor:
    open_tasks = [t for t in tasks if not _is_done(t)]
    if len(open_tasks) < min_open:
        return make_factor("Workload Balance", 100, weight, f"{len(open_tasks)} open tasks")

    per_owner: Dict[Any, int] = {}
    for task in open_tasks:
        per_owner[task.owner_id] = per_owner.get(task.owner_id, 0) + 1
    max_share = max(per_owner.values()) / len(open_tasks)
    return make_factor(
        "Workload Balance", _clamp(130 - max_share * 100, 30, 100), weight,
        f"{len(per_owner)} owner{'s' if len(per_owner) != 1 else ''}, "
        f"largest holds {round(max_share * 100)}% of open tasks",
    )


def timeline_factor(project, tasks: Sequence, now, weight: float) -> HealthFactor:
    if project.status in (Project.Status.COMPLETED, Project.Status.ARCHIVED):
        return make_factor("Timeline Adherence", 100, weight, "Project completed")
    if not project.target_finish_date:
        return make_factor("Timeline Adherence", 70, weight, "No target finish date set")

    start = project.start_date or project.created_at or now
    end = project.target_finish_date
    total_days = max((end - start).total_seconds() / 86400, 1)
    elapsed_days = (now - start).total_seconds() / 86400
    progress = _clamp(elapsed_days / total_days, 0, 1.5)

    done = sum(1 for t in tasks if _is_done(t))
    completion = done / len(tasks) if tasks else 0

    if progress > 1:
        score = _clamp(30 - (progress - 1) * 50, 0, 30)
    elif completion >= progress:
        score = _clamp(80 + (completion - progress) * 40, 80, 100)
    else:
        score = _clamp(80 - (progress - completion) * 120, 20, 80)

    return make_factor(
        "Timeline Adherence", score, weight,
        f"{round(progress * 100)}% through timeline, {round(completion * 100)}% tasks complete",
    )


def budget_factor(project, weight: float) -> HealthFactor:
    if not project.budget:
        return make_factor("Budget Burn", 70, weight, "No budget set")

    budget = float(project.budget)
    hours = float(project.hours_logged or 0)
    rate = float(project.hourly_rate or 0)

    if rate == 0 and hours == 0:
        return make_factor("Budget Burn", 80, weight, f"Budget {budget:,.0f}, no time tracked yet")
    if rate == 0:
        return make_factor("Budget Burn", 70, weight, f"Budget {budget:,.0f}, no rate configured ({round(hours)}h tracked)")

    spent = hours * rate
    ratio = spent / budget
    if ratio <= 0.8:
        score = 100
    elif ratio <= 1.0:
        score = 100 - (ratio - 0.8) * 100
    elif ratio <= 1.1:
        score = 80 - (ratio - 1.0) * 300
    elif ratio <= 1.25:
        score = 50 - (ratio - 1.1) * 200
    else:
        score = 20

    return make_factor("Budget Burn", score, weight, f"{spent:,.0f} / {budget:,.0f} spent ({round(ratio * 100)}%)")


def score_project(project, tasks: Sequence, now, previous: Optional[int] = None, config=None) -> HealthScoreResult:
    config = config or health_settings()
    weights = config["PROJECT_WEIGHTS"]
    factors = [
        on_time_factor(tasks, weights["on_time"]),
        overdue_factor(tasks, now, weights["overdue"], config["OVERDUE_TASK_PENALTY"]),
        workload_factor(tasks, weights["workload"], config["WORKLOAD_MIN_OPEN_TASKS"]),
        timeline_factor(project, tasks, now, weights["timeline"]),
        budget_factor(project, weights["budget"]),
    ]
    return build_result(factors, previous, config["GRADE_THRESHOLDS"])


# ---------------------------------------------------------------------------
# Client rubric
# ---------------------------------------------------------------------------


def payment_factor(invoices: Sequence, weight: float, overdue_penalty: float) -> HealthFactor:
    relevant = [i for i in invoices if i.status not in (Invoice.Status.DRAFT, Invoice.Status.CANCELLED)]
    if not relevant:
        return make_factor("Payment Timeliness", 70, weight, "No invoices yet")

    paid = [i for i in relevant if i.status == Invoice.Status.PAID]
    overdue = [i for i in relevant if i.status == Invoice.Status.OVERDUE]
    sent = [i for i in relevant if i.status == Invoice.Status.SENT]

    # Late payment counts half.
    paid_on_time = 0.0
    for invoice in paid:
        if invoice.payment_date and invoice.payment_date <= invoice.due_date:
            paid_on_time += 1
        elif invoice.payment_date:
            paid_on_time += 0.5

    on_time_ratio = paid_on_time / len(paid) if paid else 0
    paid_ratio = len(paid) / len(relevant)
    score = paid_ratio * 50 + on_time_ratio * 50
    score = _clamp(score - len(overdue) * overdue_penalty, 0, 100)
    if len(sent) > 2:
        score = _clamp(score - (len(sent) - 2) * 5, 0, 100)

    parts = []
    if paid:
        parts.append(f"{round(paid_on_time)}/{len(paid)} invoices paid on time")
    if overdue:
        parts.append(f"{len(overdue)} overdue")
    if not parts:
        parts.append(f"{len(relevant)} invoices sent")
    return make_factor("Payment Timeliness", score, weight, ", ".join(parts))


def project_health_factor(projects: Sequence, tasks: Sequence, weight: float) -> HealthFactor:
    relevant = [p for p in projects if p.status != Project.Status.ARCHIVED]
    if not relevant:
        return make_factor("Project Health", 50, weight, "No projects")

    active = sum(1 for p in relevant if p.status != Project.Status.COMPLETED)
    scored = [p.health_score for p in relevant if p.health_score is not None]
    if scored:
        average = sum(scored) / len(scored)
        return make_factor(
            "Project Health", average, weight,
            f"{active} active project{'s' if active != 1 else ''}, avg health {round(average)}",
        )

    # No project has been scored yet: fall back to task completion.
    relevant_ids = {p.pk for p in relevant}
    project_tasks = [t for t in tasks if t.project_id in relevant_ids]
    done = sum(1 for t in project_tasks if _is_done(t))
    score = done / len(project_tasks) * 100 if project_tasks else 50
    return make_factor(
        "Project Health", score, weight,
        f"{active} active project{'s' if active != 1 else ''}, {done}/{len(project_tasks)} tasks complete",
    )


def revenue_factor(invoices: Sequence, weight: float) -> HealthFactor:
    billed = sorted(
        (i for i in invoices if i.status in (Invoice.Status.PAID, Invoice.Status.SENT, Invoice.Status.OVERDUE)),
        key=lambda i: i.date_issued,
    )
    if len(billed) < 2:
        return make_factor("Revenue Trend", 50, weight, "Insufficient invoice data for trend")

    midpoint = len(billed) // 2
    older, newer = billed[:midpoint], billed[midpoint:]
    older_avg = sum(float(i.total) for i in older) / len(older)
    newer_avg = sum(float(i.total) for i in newer) / len(newer)

    if older_avg == 0 and newer_avg == 0:
        return make_factor("Revenue Trend", 50, weight, "No revenue recorded")
    if older_avg == 0:
        return make_factor("Revenue Trend", 90, weight, "New revenue stream")

    change = (newer_avg - older_avg) / older_avg * 100
    if change > 20:
        score, detail = 95, f"Revenue growing (+{round(change)}% vs previous period)"
    elif change > 5:
        score, detail = 80, f"Revenue growing (+{round(change)}% vs previous period)"
    elif change >= -5:
        score, detail = 65, "Revenue stable"
    elif change >= -20:
        score, detail = 40, f"Revenue declining ({round(change)}% vs previous period)"
    else:
        score, detail = 20, f"Revenue declining ({round(change)}% vs previous period)"
    return make_factor("Revenue Trend", score, weight, detail)


def score_client(
    client,
    projects: Sequence,
    tasks: Sequence,
    invoices: Sequence,
    now,
    previous: Optional[int] = None,
    config=None,
) -> HealthScoreResult:
    config = config or health_settings()
    weights = config["CLIENT_WEIGHTS"]
    factors = [
        payment_factor(invoices, weights["payment"], config["OVERDUE_INVOICE_PENALTY"]),
        project_health_factor(projects, tasks, weights["project_health"]),
        overdue_factor(tasks, now, weights["overdue"], config["OVERDUE_TASK_PENALTY"]),
        revenue_factor(invoices, weights["revenue"]),
        on_time_factor(tasks, weights["on_time"]),
    ]
    return build_result(factors, previous, config["GRADE_THRESHOLDS"])


# ---------------------------------------------------------------------------
# ORM wrapper
# ---------------------------------------------------------------------------


@dataclass
class HealthSweepReport:
    projects: int = 0
    clients: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class HealthScoreAggregator:
    """
    Loads entity snapshots, scores them and stores the result. The stored
    `health_score` becomes the previous value the next run diffs against.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or health_settings()

    def _persist(self, model, pk, result: HealthScoreResult, now) -> None:
        model.objects.filter(pk=pk).update(
            health_score=result.overall,
            health_score_grade=result.grade,
            health_score_trend=result.trend,
            health_score_factors=[asdict(f) for f in result.factors],
            health_score_updated_at=now,
        )

    def compute_project_health(self, project_id: int, persist: bool = True, now=None) -> HealthScoreResult:
        """Raises Project.DoesNotExist for unknown ids."""
        now = now or timezone.now()
        project = Project.objects.get(pk=project_id)
        tasks = list(project.tasks.all())
        result = score_project(project, tasks, now, project.health_score, self.config)
        if persist:
            self._persist(Project, project.pk, result, now)
        logger.debug(f"Project {project_id} health: {result.overall} ({result.grade}, trend {result.trend})")
        return result

    def compute_client_health(self, client_id: int, persist: bool = True, now=None) -> HealthScoreResult:
        """Raises Client.DoesNotExist for unknown ids."""
        now = now or timezone.now()
        client = Client.objects.get(pk=client_id)
        projects = list(client.projects.all())
        tasks = list(Task.objects.filter(project__client=client))
        invoices = list(client.invoices.all())
        result = score_client(client, projects, tasks, invoices, now, client.health_score, self.config)
        if persist:
            self._persist(Client, client.pk, result, now)
        logger.debug(f"Client {client_id} health: {result.overall} ({result.grade}, trend {result.trend})")
        return result

    def recalculate_all(self, now=None) -> HealthSweepReport:
        """
        Rescore every non-archived project, then every non-archived client
        (so client scores see this run's project scores). Failures are
        logged and counted.
        """
        now = now or timezone.now()
        report = HealthSweepReport()

        project_ids = Project.objects.exclude(status=Project.Status.ARCHIVED).values_list("pk", flat=True)
        for pk in list(project_ids):
            try:
                self.compute_project_health(pk, now=now)
                report.projects += 1
            except Exception as e:
                report.failed += 1
                logger.exception(f"Health score failed for Project {pk}: {e}")

        client_ids = Client.objects.exclude(status=Client.Status.ARCHIVED).values_list("pk", flat=True)
        for pk in list(client_ids):
            try:
                self.compute_client_health(pk, now=now)
                report.clients += 1
            except Exception as e:
                report.failed += 1
                logger.exception(f"Health score failed for Client {pk}: {e}")

        logger.info(
            f"Health sweep finished: {report.projects} projects, {report.clients} clients, "
            f"{report.failed} failed"
        )
        return report
