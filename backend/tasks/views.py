
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .engine.orchestrator import ScoreRecalculator
from .engine.workflow import InvalidTransition
from .models import Notification, ReviewAuditEntry, Task, TaskStatus
from .serializers import (
    BatchActionSerializer,
    NotificationSerializer,
    ReviewAuditEntrySerializer,
    StatusChangeSerializer,
    TaskCreateSerializer,
    TaskSerializer,
)


class TaskListCreateView(generics.ListCreateAPIView):
    """
    GET: List studio tasks, highest display score first.
         Filters: ?status=, ?owner=, ?project=, ?type=
    POST: Create a new task (starts in TODO, returned with a fresh score).
    """
    permission_classes = [permissions.IsAuthenticated]
    filter_params = ('status', 'owner', 'project', 'type')

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return TaskCreateSerializer
        return TaskSerializer

    def get_queryset(self):
        queryset = Task.objects.select_related('owner', 'reviewer', 'project')
        for param in self.filter_params:
            value = self.request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{param: value})
        return queryset.order_by('-display_score', 'deadline')

list_create_view = TaskListCreateView.as_view()


class TaskRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET, PUT, PATCH, DELETE for a specific task instance.
    Status is read-only here; use the status endpoint.
    """
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = Task.objects.select_related('owner', 'reviewer', 'project')

    def perform_update(self, serializer):
        previous_owner_id = serializer.instance.owner_id
        previous_reviewer_id = serializer.instance.reviewer_id
        task = serializer.save()
        services.update_task(task, previous_owner_id, previous_reviewer_id, actor=self.request.user)

    def perform_destroy(self, instance):
        services.delete_task(instance)

retreive_update_destroy_view = TaskRetrieveUpdateDestroyView.as_view()


class PrioritizedTaskListView(generics.ListAPIView):
    """
    The caller's open tasks in the order they should be worked on.
    """
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Task.objects.live().filter(
            owner=self.request.user
        ).select_related('owner', 'reviewer', 'project').order_by('-display_score', 'deadline')

tasks_list_view = PrioritizedTaskListView.as_view()


class TaskStatusView(APIView):
    """
    POST {"status": ...}: request a status change through the review
    state machine. DONE with a reviewer lands in IN_REVIEW and notifies
    the reviewer; APPROVED / REQUEST_CHANGES resolve a review.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            task, transition = services.change_task_status(
                pk, serializer.validated_data['status'], actor=request.user
            )
        except Task.DoesNotExist:
            raise NotFound("Task not found.")
        except InvalidTransition as e:
            raise ValidationError({"status": str(e)})

        task = services.refresh_score(task)
        return Response(TaskSerializer(task).data)

task_status_view = TaskStatusView.as_view()


class TaskEmergencyView(APIView):
    """POST: toggle the emergency flag."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        try:
            task = services.toggle_emergency(pk, actor=request.user)
        except Task.DoesNotExist:
            raise NotFound("Task not found.")
        return Response(TaskSerializer(task).data)

task_emergency_view = TaskEmergencyView.as_view()


class TaskScoreView(APIView):
    """GET: the score breakdown as of now, without persisting it."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        task = get_object_or_404(Task.objects.select_related('owner'), pk=pk)
        breakdown = ScoreRecalculator().preview(task)
        return Response({
            "task": task.pk,
            "persisted": {
                "raw_score": task.raw_score,
                "display_score": task.display_score,
                "scored_at": task.scored_at,
            },
            "breakdown": breakdown.to_dict(),
        })

task_score_view = TaskScoreView.as_view()


class TaskAuditListView(generics.ListAPIView):
    serializer_class = ReviewAuditEntrySerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        task = get_object_or_404(Task, pk=self.kwargs['pk'])
        return ReviewAuditEntry.objects.filter(task=task).select_related('actor')

task_audit_view = TaskAuditListView.as_view()


class TaskBatchView(APIView):
    """
    POST {"task_ids": [...], "action": ..., "value": ...}
    Applies one action to every listed task, then schedules a single rescore.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = BatchActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            affected = services.apply_batch_action(
                data['task_ids'], data['action'], data.get('value'), actor=request.user
            )
        except services.TasksNotFound as e:
            return Response(
                {"detail": "Tasks not found.", "missing_ids": e.missing_ids},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidTransition as e:
            raise ValidationError({"value": str(e)})

        return Response({"action": data['action'], "affected": affected}, status=status.HTTP_200_OK)

task_batch_view = TaskBatchView.as_view()


class NotificationListView(generics.ListAPIView):
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = Notification.objects.filter(user=self.request.user)
        if self.request.query_params.get('unread') in ('1', 'true'):
            queryset = queryset.filter(is_read=False)
        return queryset

notification_list_view = NotificationListView.as_view()


REVIEW_QUEUE_STATUSES = (TaskStatus.IN_REVIEW,)


class ReviewQueueView(generics.ListAPIView):
    """Tasks waiting on the caller's review, highest score first."""
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Task.objects.filter(
            reviewer=self.request.user, status__in=REVIEW_QUEUE_STATUSES
        ).select_related('owner', 'reviewer', 'project').order_by('-display_score')

review_queue_view = ReviewQueueView.as_view()
