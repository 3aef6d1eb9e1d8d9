# tasks/tests/test_workflow.py
"""
Review Workflow Tests
=====================

1. Pure transition table (resolve_transition)
2. Persisted side effects through services.change_task_status
3. Field edits racing a status change
"""

from unittest.mock import patch

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from tasks import services
from tasks.engine.workflow import (
    APPROVED,
    DONE,
    IN_PROGRESS,
    IN_REVIEW,
    REQUEST_CHANGES,
    TODO,
    InvalidTransition,
    SideEffectKind,
    resolve_transition,
)
from tasks.models import Notification, NotificationKind, Priority, ReviewAuditEntry, Task, TaskStatus
from tasks.serializers import TaskSerializer

from .helpers import MONDAY_NOON, create_test_task, create_test_user, local


class ResolveTransitionTest(SimpleTestCase):

    def test_done_with_reviewer_goes_to_review(self):
        transition = resolve_transition(IN_PROGRESS, DONE, has_reviewer=True)
        self.assertEqual(transition.next_status, IN_REVIEW)
        self.assertEqual(len(transition.effects_of(SideEffectKind.NOTIFY_REVIEWER)), 1)
        self.assertEqual(len(transition.effects_of(SideEffectKind.WRITE_AUDIT)), 1)

    def test_done_without_reviewer_closes(self):
        transition = resolve_transition(IN_PROGRESS, DONE, has_reviewer=False)
        self.assertEqual(transition.next_status, DONE)
        self.assertFalse(transition.has_effect(SideEffectKind.NOTIFY_REVIEWER))
        self.assertTrue(transition.has_effect(SideEffectKind.STAMP_COMPLETED_AT))
        self.assertTrue(transition.has_effect(SideEffectKind.CLEAR_FROZEN))

    def test_approved_closes_review(self):
        transition = resolve_transition(IN_REVIEW, APPROVED, has_reviewer=True)
        self.assertEqual(transition.next_status, DONE)
        self.assertFalse(transition.has_effect(SideEffectKind.NOTIFY_REVIEWER))

    def test_request_changes_returns_to_work(self):
        transition = resolve_transition(IN_REVIEW, REQUEST_CHANGES, has_reviewer=True)
        self.assertEqual(transition.next_status, IN_PROGRESS)

    def test_review_decision_outside_review_is_rejected(self):
        with self.assertRaises(InvalidTransition):
            resolve_transition(IN_PROGRESS, APPROVED, has_reviewer=True)
        with self.assertRaises(InvalidTransition):
            resolve_transition(TODO, REQUEST_CHANGES, has_reviewer=False)

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(InvalidTransition):
            resolve_transition(TODO, "ARCHIVED", has_reviewer=False)

    def test_direct_set(self):
        transition = resolve_transition(TODO, IN_PROGRESS, has_reviewer=False)
        self.assertEqual(transition.next_status, IN_PROGRESS)
        self.assertTrue(transition.has_effect(SideEffectKind.CLEAR_TODO_SINCE))

    def test_same_status_is_a_no_op(self):
        transition = resolve_transition(IN_PROGRESS, IN_PROGRESS, has_reviewer=False)
        self.assertFalse(transition.changed)
        self.assertEqual(transition.side_effects, ())

    def test_reopening_done_clears_completion(self):
        transition = resolve_transition(DONE, TODO, has_reviewer=False)
        self.assertTrue(transition.has_effect(SideEffectKind.STAMP_TODO_SINCE))
        self.assertTrue(transition.has_effect(SideEffectKind.CLEAR_COMPLETED_AT))


class StatusChangeServiceTest(TestCase):

    def setUp(self):
        self.owner = create_test_user("owner", first_name="Dana")
        self.reviewer = create_test_user("reviewer")
        self.task = create_test_task(self.owner, reviewer=self.reviewer)

    def test_todo_cycle_stamps_and_clears_todo_since(self):
        first = local(2025, 1, 6, 13)
        second = local(2025, 1, 6, 15)

        task, _ = services.change_task_status(self.task.pk, IN_PROGRESS, actor=self.owner, now=first)
        task.refresh_from_db()
        self.assertEqual(task.status, TaskStatus.IN_PROGRESS)
        self.assertIsNone(task.todo_since)
        self.assertEqual(task.status_changed_at, first)

        task, _ = services.change_task_status(self.task.pk, TODO, actor=self.owner, now=second)
        task.refresh_from_db()
        self.assertEqual(task.status, TaskStatus.TODO)
        self.assertEqual(task.todo_since, second)

    def test_done_with_reviewer_writes_audit_and_notifies_once(self):
        with patch("tasks.engine.celery_tasks.recalculate_all_scores.delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                task, transition = services.change_task_status(self.task.pk, DONE, actor=self.owner, now=MONDAY_NOON)

        self.assertEqual(transition.next_status, IN_REVIEW)
        task.refresh_from_db()
        self.assertEqual(task.status, TaskStatus.IN_REVIEW)
        self.assertIsNone(task.completed_at)

        entries = ReviewAuditEntry.objects.filter(task=self.task)
        self.assertEqual(entries.count(), 1)
        self.assertEqual(entries[0].old_status, TaskStatus.TODO)
        self.assertEqual(entries[0].new_status, TaskStatus.IN_REVIEW)
        self.assertEqual(entries[0].requested_status, DONE)

        notes = Notification.objects.filter(kind=NotificationKind.REVIEW_REQUEST)
        self.assertEqual(notes.count(), 1)
        self.assertEqual(notes[0].user, self.reviewer)
        self.assertIn("Dana", notes[0].message)
        delay.assert_called_once()

    def test_approval_completes_and_unfreezes(self):
        self.task.status = TaskStatus.IN_REVIEW
        self.task.is_frozen = True
        self.task.save()

        task, _ = services.change_task_status(self.task.pk, APPROVED, actor=self.reviewer, now=MONDAY_NOON)
        task.refresh_from_db()
        self.assertEqual(task.status, TaskStatus.DONE)
        self.assertEqual(task.completed_at, MONDAY_NOON)
        self.assertFalse(task.is_frozen)

    def test_rejected_transition_writes_nothing(self):
        with self.assertRaises(InvalidTransition):
            services.change_task_status(self.task.pk, APPROVED, actor=self.reviewer)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, TaskStatus.TODO)
        self.assertFalse(ReviewAuditEntry.objects.exists())

    def test_same_status_writes_no_audit(self):
        services.change_task_status(self.task.pk, TODO, actor=self.owner)
        self.assertFalse(ReviewAuditEntry.objects.exists())

    def test_audit_entries_are_append_only(self):
        services.change_task_status(self.task.pk, IN_PROGRESS, actor=self.owner)
        entry = ReviewAuditEntry.objects.get()
        entry.new_status = TaskStatus.DONE
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()


class TaskEditTest(TestCase):
    """Field edits never write back state they did not change."""

    def setUp(self):
        self.owner = create_test_user("owner")
        self.task = create_test_task(self.owner, title="draft")

    def test_edit_from_stale_instance_keeps_committed_transition(self):
        stale = Task.objects.get(pk=self.task.pk)
        services.change_task_status(self.task.pk, IN_PROGRESS, actor=self.owner, now=MONDAY_NOON)

        serializer = TaskSerializer(stale, data={"title": "renamed"}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()

        task = Task.objects.get(pk=self.task.pk)
        self.assertEqual(task.title, "renamed")
        self.assertEqual(task.status, TaskStatus.IN_PROGRESS)
        self.assertIsNone(task.todo_since)
        self.assertEqual(task.status_changed_at, MONDAY_NOON)
        self.assertEqual(ReviewAuditEntry.objects.filter(task=task).count(), 1)

    def test_edit_keeps_freeze_flag_and_scores(self):
        stale = Task.objects.get(pk=self.task.pk)
        Task.objects.filter(pk=self.task.pk).update(is_frozen=True, raw_score=88.0, display_score=77.0)

        services.edit_task(stale.pk, {"priority": Priority.NEITHER})

        task = Task.objects.get(pk=self.task.pk)
        self.assertEqual(task.priority, Priority.NEITHER)
        self.assertTrue(task.is_frozen)
        self.assertEqual(task.raw_score, 88.0)
        self.assertEqual(task.display_score, 77.0)
