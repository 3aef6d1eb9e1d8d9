# projects/tests.py
"""
Projects App Test Suite
=======================

Test Categories:
----------------
1. Rubric Tests - pure factor functions and grading
2. Aggregator Tests - snapshot loading, persistence, trend, sweep
3. API Tests - stored and on-demand health endpoints
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from tasks.models import Task, TaskStatus
from .health import HealthScoreAggregator, budget_factor, grade, score_client, score_project, workload_factor
from .models import Client, Invoice, Project
from .tasks import recalculate_health_scores

User = get_user_model()

TZ = ZoneInfo("Asia/Jerusalem")
NOW = datetime(2025, 1, 6, 12, 0, tzinfo=TZ)


def make_project(**overrides):
    values = {
        "pk": 1,
        "status": Project.Status.ACTIVE,
        "start_date": None,
        "target_finish_date": None,
        "created_at": NOW - timedelta(days=10),
        "budget": None,
        "hourly_rate": None,
        "hours_logged": Decimal("0"),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_task(status=TaskStatus.TODO, deadline=None, completed_at=None, owner_id=1, project_id=1):
    return SimpleNamespace(
        status=status,
        deadline=deadline or NOW + timedelta(days=3),
        completed_at=completed_at,
        updated_at=completed_at,
        owner_id=owner_id,
        project_id=project_id,
    )


def factor(result, name):
    return next(f for f in result.factors if f.name == name)


# ===========================================================================
# RUBRIC TESTS
# ===========================================================================

class GradeTest(SimpleTestCase):

    def test_thresholds(self):
        self.assertEqual(grade(100), "A")
        self.assertEqual(grade(90), "A")
        self.assertEqual(grade(89), "B")
        self.assertEqual(grade(75), "B")
        self.assertEqual(grade(60), "C")
        self.assertEqual(grade(40), "D")
        self.assertEqual(grade(39), "F")
        self.assertEqual(grade(0), "F")


class ProjectRubricTest(SimpleTestCase):

    def test_empty_project_has_deterministic_baseline(self):
        first = score_project(make_project(), [], NOW)
        second = score_project(make_project(), [], NOW)
        self.assertEqual(first, second)
        self.assertEqual(first.overall, 82)
        self.assertEqual(first.grade, "B")
        self.assertEqual(first.trend, 0)
        self.assertAlmostEqual(sum(f.weight for f in first.factors), 1.0)

    def test_trend_against_previous(self):
        result = score_project(make_project(), [], NOW, previous=90)
        self.assertEqual(result.trend, result.overall - 90)

    def test_task_factors(self):
        tasks = [
            make_task(TaskStatus.DONE, deadline=NOW - timedelta(days=2), completed_at=NOW - timedelta(days=3)),
            make_task(TaskStatus.DONE, deadline=NOW - timedelta(days=2), completed_at=NOW - timedelta(days=4)),
            make_task(TaskStatus.DONE, deadline=NOW - timedelta(days=2), completed_at=NOW - timedelta(days=1)),
            make_task(TaskStatus.IN_PROGRESS, deadline=NOW - timedelta(hours=1)),
        ]
        result = score_project(make_project(), tasks, NOW)
        self.assertEqual(factor(result, "On-time Completion").score, 67)
        self.assertEqual(factor(result, "Overdue Tasks").score, 80)
        self.assertEqual(factor(result, "Workload Balance").score, 100)

    def test_workload_concentration(self):
        concentrated = [make_task(owner_id=1) for _ in range(4)]
        spread = [make_task(owner_id=i) for i in range(4)]
        self.assertEqual(workload_factor(concentrated, 0.15, 3).score, 30)
        self.assertEqual(workload_factor(spread, 0.15, 3).score, 100)

    def test_timeline_behind_schedule(self):
        project = make_project(start_date=NOW - timedelta(days=10), target_finish_date=NOW + timedelta(days=10))
        result = score_project(project, [make_task()], NOW)
        # halfway through the timeline, nothing done: 80 - 0.5 x 120
        self.assertEqual(factor(result, "Timeline Adherence").score, 20)

    def test_timeline_past_target(self):
        project = make_project(start_date=NOW - timedelta(days=20), target_finish_date=NOW - timedelta(days=10))
        result = score_project(project, [], NOW)
        self.assertEqual(factor(result, "Timeline Adherence").score, 5)

    def test_budget_burn_bands(self):
        def burn(hours):
            project = make_project(budget=Decimal("1000"), hourly_rate=Decimal("100"), hours_logged=Decimal(hours))
            return budget_factor(project, 0.15).score

        self.assertEqual(burn("5"), 100)
        self.assertEqual(burn("9"), 90)
        self.assertEqual(burn("10.5"), 65)
        self.assertEqual(burn("20"), 20)

    def test_budget_without_rate(self):
        project = make_project(budget=Decimal("1000"), hours_logged=Decimal("12"))
        self.assertEqual(budget_factor(project, 0.15).score, 70)


class ClientRubricTest(SimpleTestCase):

    def invoice(self, status, total="100", issued=date(2024, 11, 1), due=date(2024, 12, 1), paid=None):
        return SimpleNamespace(status=status, total=Decimal(total), date_issued=issued, due_date=due, payment_date=paid)

    def test_empty_client_has_deterministic_baseline(self):
        client = SimpleNamespace(pk=1)
        result = score_client(client, [], [], [], NOW)
        self.assertEqual(result.overall, 68)
        self.assertEqual(result.grade, "C")
        self.assertEqual(result.trend, 0)

    def test_payment_and_revenue(self):
        invoices = [
            self.invoice(Invoice.Status.PAID, issued=date(2024, 10, 1), due=date(2024, 11, 1), paid=date(2024, 10, 20)),
            self.invoice(Invoice.Status.PAID, issued=date(2024, 11, 1), due=date(2024, 12, 1), paid=date(2024, 12, 15)),
            self.invoice(Invoice.Status.OVERDUE, total="300", issued=date(2024, 12, 1), due=date(2025, 1, 1)),
            self.invoice(Invoice.Status.DRAFT, total="5000", issued=date(2025, 1, 2)),
        ]
        result = score_client(SimpleNamespace(pk=1), [], [], invoices, NOW)
        # paid 2/3 x 50 + on-time 0.75 x 50 - one overdue x 20
        self.assertEqual(factor(result, "Payment Timeliness").score, 51)
        # older half avg 100, newer half avg 200
        self.assertEqual(factor(result, "Revenue Trend").score, 95)

    def test_project_health_uses_stored_scores(self):
        projects = [
            SimpleNamespace(pk=1, status=Project.Status.ACTIVE, health_score=80),
            SimpleNamespace(pk=2, status=Project.Status.COMPLETED, health_score=60),
            SimpleNamespace(pk=3, status=Project.Status.ARCHIVED, health_score=0),
        ]
        result = score_client(SimpleNamespace(pk=1), projects, [], [], NOW)
        self.assertEqual(factor(result, "Project Health").score, 70)

    def test_project_health_falls_back_to_completion(self):
        projects = [SimpleNamespace(pk=1, status=Project.Status.ACTIVE, health_score=None)]
        tasks = [make_task(TaskStatus.DONE, completed_at=NOW), make_task()]
        result = score_client(SimpleNamespace(pk=1), projects, tasks, [], NOW)
        self.assertEqual(factor(result, "Project Health").score, 50)


# ===========================================================================
# AGGREGATOR TESTS
# ===========================================================================

class HealthScoreAggregatorTest(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.client_obj = Client.objects.create(name="Acme")
        self.project = Project.objects.create(name="Launch", client=self.client_obj)
        self.aggregator = HealthScoreAggregator()

    def add_task(self, **fields):
        values = {
            "title": "t",
            "start_date": NOW - timedelta(days=5),
            "deadline": NOW + timedelta(days=3),
            "project": self.project,
        }
        values.update(fields)
        return Task.objects.create(owner=self.user, **values)

    def test_first_computation_persists_with_zero_trend(self):
        result = self.aggregator.compute_project_health(self.project.pk, now=NOW)
        self.assertEqual(result.trend, 0)

        self.project.refresh_from_db()
        self.assertEqual(self.project.health_score, result.overall)
        self.assertEqual(self.project.health_score_grade, result.grade)
        self.assertEqual(self.project.health_score_updated_at, NOW)
        self.assertEqual(len(self.project.health_score_factors), 5)

    def test_trend_diffs_against_stored_score(self):
        first = self.aggregator.compute_project_health(self.project.pk, now=NOW)
        self.add_task(deadline=NOW - timedelta(days=1))
        self.add_task(deadline=NOW - timedelta(days=2))
        second = self.aggregator.compute_project_health(self.project.pk, now=NOW)

        self.assertLess(second.overall, first.overall)
        self.assertEqual(second.trend, second.overall - first.overall)

    def test_without_persist_nothing_is_stored(self):
        self.aggregator.compute_project_health(self.project.pk, persist=False, now=NOW)
        self.project.refresh_from_db()
        self.assertIsNone(self.project.health_score)

    def test_client_sees_its_projects_tasks(self):
        self.add_task(deadline=NOW - timedelta(days=1))
        result = self.aggregator.compute_client_health(self.client_obj.pk, now=NOW)
        self.assertEqual(factor(result, "Overdue Tasks").score, 80)

    def test_unknown_ids_raise(self):
        with self.assertRaises(Project.DoesNotExist):
            self.aggregator.compute_project_health(999999)
        with self.assertRaises(Client.DoesNotExist):
            self.aggregator.compute_client_health(999999)

    def test_sweep_skips_archived(self):
        archived = Project.objects.create(name="Old", status=Project.Status.ARCHIVED)
        Client.objects.create(name="Gone", status=Client.Status.ARCHIVED)

        report = self.aggregator.recalculate_all(now=NOW)
        self.assertEqual((report.projects, report.clients, report.failed), (1, 1, 0))
        archived.refresh_from_db()
        self.assertIsNone(archived.health_score)

    def test_sweep_counts_failures(self):
        with patch("projects.health.score_project", side_effect=ValueError("bad data")):
            with self.assertLogs("projects.health", level="ERROR"):
                report = self.aggregator.recalculate_all(now=NOW)
        self.assertEqual(report.projects, 0)
        self.assertEqual(report.clients, 1)
        self.assertEqual(report.failed, 1)

    def test_sweep_survives_unexpected_errors(self):
        with patch("projects.health.score_client", side_effect=KeyError("CLIENT_WEIGHTS")):
            with self.assertLogs("projects.health", level="ERROR"):
                report = self.aggregator.recalculate_all(now=NOW)
        self.assertEqual((report.projects, report.clients, report.failed), (1, 0, 1))
        self.project.refresh_from_db()
        self.assertIsNotNone(self.project.health_score)

    def test_celery_task_returns_report(self):
        self.assertEqual(recalculate_health_scores(), {"projects": 1, "clients": 1, "failed": 0})


# ===========================================================================
# API TESTS
# ===========================================================================

class HealthScoreApiTest(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.client.force_authenticate(user=self.user)
        self.acme = Client.objects.create(name="Acme")
        self.project = Project.objects.create(name="Launch", client=self.acme)

    def test_get_before_first_computation(self):
        response = self.client.get(reverse("project-health-score", args=[self.project.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["overall"])

    def test_post_recomputes_synchronously(self):
        response = self.client.post(reverse("project-health-score", args=[self.project.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["trend"], 0)
        self.assertIn(response.data["grade"], "ABCDF")

        stored = self.client.get(reverse("project-health-score", args=[self.project.pk]))
        self.assertEqual(stored.data["overall"], response.data["overall"])

    def test_client_health(self):
        response = self.client.post(reverse("client-health-score", args=[self.acme.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["factors"]), 5)

    def test_unknown_entity_is_a_404(self):
        self.assertEqual(self.client.get(reverse("project-health-score", args=[999999])).status_code, 404)
        self.assertEqual(self.client.post(reverse("client-health-score", args=[999999])).status_code, 404)

    def test_health_fields_are_read_only(self):
        response = self.client.patch(
            reverse("project-detail", args=[self.project.pk]),
            {"health_score": 100, "name": "Relaunch"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.project.refresh_from_db()
        self.assertIsNone(self.project.health_score)
        self.assertEqual(self.project.name, "Relaunch")

    def test_archived_projects_hidden_by_default(self):
        Project.objects.create(name="Old", status=Project.Status.ARCHIVED)
        response = self.client.get(reverse("project-list-create"))
        self.assertEqual([p["name"] for p in response.data], ["Launch"])

    def test_invoice_due_before_issue_rejected(self):
        response = self.client.post(reverse("invoice-list-create"), {
            "client": self.acme.pk,
            "status": "SENT",
            "total": "100.00",
            "date_issued": "2025-01-10",
            "due_date": "2025-01-01",
        }, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("due_date", response.data)
