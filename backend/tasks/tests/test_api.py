# tasks/tests/test_api.py
"""
Task API Tests
==============

HTTP endpoints end to end. The clock is pinned through
django.utils.timezone.now so create / toggle responses carry
deterministic scores; `.delay` is never reached because on-commit hooks
do not run inside TestCase unless captured.
"""

from unittest.mock import patch

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from tasks.models import Notification, NotificationKind, ReviewAuditEntry, Task, TaskStatus

from .helpers import MONDAY_NOON, create_test_task, create_test_user, local


class TaskCreateAndScoreTest(APITestCase):

    def setUp(self):
        self.user = create_test_user("owner")
        self.client.force_authenticate(user=self.user)
        self.clock = patch("django.utils.timezone.now", return_value=MONDAY_NOON)
        self.clock.start()
        self.addCleanup(self.clock.stop)

    def create_payload(self, **overrides):
        payload = {
            "title": "Client deck",
            "type": "CLIENT",
            "priority": "IMPORTANT_NOT_URGENT",
            "owner": self.user.pk,
            "start_date": local(2025, 1, 6, 9).isoformat(),
            # two working hours after MONDAY_NOON
            "deadline": local(2025, 1, 6, 14).isoformat(),
        }
        payload.update(overrides)
        return payload

    def test_create_then_toggle_emergency(self):
        response = self.client.post(reverse("task-list-create"), self.create_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        data = response.data
        self.assertEqual(data["status"], TaskStatus.TODO)
        breakdown = data["score_breakdown"]
        self.assertEqual(breakdown["urgency_multiplier"], 2.5)
        self.assertEqual(breakdown["boosts"], {"in_review": 0.0, "emergency": 0.0, "sunday_rd": 0.0})
        self.assertEqual(data["display_score"], 137.5)

        response = self.client.post(reverse("task-emergency", args=[data["id"]]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        toggled = response.data["score_breakdown"]

        self.assertTrue(response.data["emergency"])
        self.assertGreaterEqual(response.data["display_score"] - data["display_score"], 150)
        for component in ("base_weight", "user_priority", "aging", "urgency_multiplier", "subtotal", "capacity_penalty"):
            self.assertEqual(toggled[component], breakdown[component])

    def test_create_ignores_client_supplied_status_and_scores(self):
        payload = self.create_payload(status="DONE", display_score=9999)
        response = self.client.post(reverse("task-list-create"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], TaskStatus.TODO)
        self.assertNotEqual(response.data["display_score"], 9999)

    def test_deadline_before_start_is_rejected(self):
        payload = self.create_payload(deadline=local(2025, 1, 5, 9).isoformat())
        response = self.client.post(reverse("task-list-create"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("deadline", response.data)
        self.assertFalse(Task.objects.exists())

    def test_invalid_enum_is_rejected(self):
        response = self.client.post(reverse("task-list-create"), self.create_payload(type="FUN"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("type", response.data)

    def test_score_preview(self):
        task = create_test_task(self.user, deadline=local(2025, 1, 6, 14))
        response = self.client.get(reverse("task-score", args=[task.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["breakdown"]["display_score"], 137.5)
        # preview does not persist
        task.refresh_from_db()
        self.assertIsNone(task.scored_at)


class TaskListTest(APITestCase):

    def setUp(self):
        self.user = create_test_user("owner")
        self.other = create_test_user("other")
        self.client.force_authenticate(user=self.user)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("task-list-create"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_ordered_by_display_score_and_filtered(self):
        low = create_test_task(self.user, title="low", display_score=10)
        high = create_test_task(self.other, title="high", display_score=90, type="RESEARCH")

        response = self.client.get(reverse("task-list-create"))
        self.assertEqual([t["id"] for t in response.data], [high.pk, low.pk])

        response = self.client.get(reverse("task-list-create"), {"type": "RESEARCH"})
        self.assertEqual([t["id"] for t in response.data], [high.pk])

    def test_next_lists_only_callers_open_tasks(self):
        mine = create_test_task(self.user, display_score=5)
        create_test_task(self.user, status=TaskStatus.DONE, display_score=50)
        create_test_task(self.other, display_score=80)

        response = self.client.get(reverse("task-next"))
        self.assertEqual([t["id"] for t in response.data], [mine.pk])

    def test_review_queue(self):
        waiting = create_test_task(self.other, reviewer=self.user, status=TaskStatus.IN_REVIEW)
        create_test_task(self.other, reviewer=self.user, status=TaskStatus.IN_PROGRESS)

        response = self.client.get(reverse("task-review-queue"))
        self.assertEqual([t["id"] for t in response.data], [waiting.pk])

    def test_patch_cannot_change_status(self):
        task = create_test_task(self.user)
        response = self.client.patch(reverse("task-detail", args=[task.pk]), {"status": "DONE", "title": "Renamed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.status, TaskStatus.TODO)
        self.assertEqual(task.title, "Renamed")

    def test_delete(self):
        task = create_test_task(self.user)
        response = self.client.delete(reverse("task-detail", args=[task.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Task.objects.exists())

    def test_notifications_are_per_user(self):
        Notification.objects.create(user=self.user, kind=NotificationKind.SCORE_FREEZE, title="mine")
        Notification.objects.create(user=self.other, kind=NotificationKind.SCORE_FREEZE, title="theirs")

        response = self.client.get(reverse("notification-list"))
        self.assertEqual([n["title"] for n in response.data], ["mine"])


class TaskStatusApiTest(APITestCase):

    def setUp(self):
        self.owner = create_test_user("owner")
        self.reviewer = create_test_user("reviewer")
        self.client.force_authenticate(user=self.owner)
        self.task = create_test_task(self.owner, reviewer=self.reviewer, status=TaskStatus.IN_PROGRESS, todo_since=None)

    def test_done_with_reviewer_lands_in_review(self):
        response = self.client.post(reverse("task-status", args=[self.task.pk]), {"status": "DONE"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], TaskStatus.IN_REVIEW)
        self.assertEqual(response.data["score_breakdown"]["boosts"]["in_review"], 50)

        audit = self.client.get(reverse("task-audit", args=[self.task.pk]))
        self.assertEqual(len(audit.data), 1)
        self.assertEqual(audit.data[0]["new_status"], TaskStatus.IN_REVIEW)

    def test_invalid_transition_is_a_400(self):
        response = self.client.post(reverse("task-status", args=[self.task.pk]), {"status": "APPROVED"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("status", response.data)

    def test_unknown_status_value_is_a_400(self):
        response = self.client.post(reverse("task-status", args=[self.task.pk]), {"status": "ARCHIVED"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_task_is_a_404(self):
        response = self.client.post(reverse("task-status", args=[999999]), {"status": "DONE"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_emergency_unknown_task_is_a_404(self):
        response = self.client.post(reverse("task-emergency", args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TaskBatchApiTest(APITestCase):

    def setUp(self):
        self.user = create_test_user("owner")
        self.other = create_test_user("other")
        self.client.force_authenticate(user=self.user)
        self.tasks = [create_test_task(self.user, title=f"t{i}") for i in range(3)]
        self.ids = [t.pk for t in self.tasks]

    def post(self, payload):
        return self.client.post(reverse("task-batch"), payload, format="json")

    def test_missing_ids_are_listed_and_nothing_changes(self):
        response = self.post({"task_ids": self.ids + [999999], "action": "change_priority", "value": "NEITHER"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["missing_ids"], [999999])
        self.assertFalse(Task.objects.filter(priority="NEITHER").exists())

    def test_change_priority(self):
        with patch("tasks.services.schedule_recalculation") as schedule:
            response = self.post({"task_ids": self.ids, "action": "change_priority", "value": "URGENT_IMPORTANT"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"action": "change_priority", "affected": 3})
        self.assertEqual(Task.objects.filter(priority="URGENT_IMPORTANT").count(), 3)
        schedule.assert_called_once_with()

    def test_change_status_runs_state_machine(self):
        response = self.post({"task_ids": self.ids, "action": "change_status", "value": "IN_PROGRESS"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Task.objects.filter(status=TaskStatus.IN_PROGRESS, todo_since__isnull=True).count(), 3)
        self.assertEqual(ReviewAuditEntry.objects.count(), 3)

    def test_invalid_status_for_one_task_rolls_back_batch(self):
        response = self.post({"task_ids": self.ids, "action": "change_status", "value": "APPROVED"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Task.objects.filter(status=TaskStatus.TODO).count(), 3)

    def test_change_owner(self):
        response = self.post({"task_ids": self.ids, "action": "change_owner", "value": self.other.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Task.objects.filter(owner=self.other).count(), 3)

    def test_change_owner_requires_existing_user(self):
        response = self.post({"task_ids": self.ids, "action": "change_owner", "value": 999999})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete(self):
        response = self.post({"task_ids": self.ids[:2], "action": "delete"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(Task.objects.values_list("pk", flat=True)), [self.ids[2]])

    def test_unknown_action(self):
        response = self.post({"task_ids": self.ids, "action": "archive"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
