# tasks/serializers.py

import logging

from django.contrib.auth import get_user_model
from rest_framework import serializers

from projects.models import Project
from .engine.workflow import REQUESTABLE
from .models import Notification, Priority, ReviewAuditEntry, Task
from .services import (
    BATCH_ACTIONS,
    BATCH_CHANGE_OWNER,
    BATCH_CHANGE_PRIORITY,
    BATCH_CHANGE_PROJECT,
    BATCH_CHANGE_STATUS,
    create_task,
    edit_task,
)

logger = logging.getLogger(__name__)

User = get_user_model()


class TaskSerializer(serializers.ModelSerializer):
    owner_email = serializers.ReadOnlyField(source='owner.email')
    reviewer_email = serializers.ReadOnlyField(source='reviewer.email')

    class Meta:
        model = Task
        # explicit whitelist: user-editable fields + system-read fields required by UI
        fields = [
            'id', 'title', 'description', 'type', 'priority', 'status',
            'owner', 'owner_email', 'reviewer', 'reviewer_email', 'project',
            'start_date', 'deadline', 'emergency', 'estimated_hours',
            'todo_since', 'status_changed_at', 'completed_at', 'is_frozen',
            'raw_score', 'display_score', 'score_breakdown', 'scored_at',
            'created_at', 'updated_at',
        ]
        # status moves only through the state machine endpoint, emergency
        # through its toggle; scores only through the recalculation pass.
        read_only_fields = [
            'id', 'status', 'emergency', 'todo_since', 'status_changed_at', 'completed_at',
            'is_frozen', 'raw_score', 'display_score', 'score_breakdown', 'scored_at',
            'created_at', 'updated_at',
        ]

    def validate_estimated_hours(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("estimated_hours cannot be negative.")
        return value

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        deadline = attrs.get('deadline', getattr(self.instance, 'deadline', None))
        if start_date and deadline and deadline < start_date:
            raise serializers.ValidationError({"deadline": "Deadline cannot be before the start date."})
        return attrs

    def create(self, validated_data):
        """
        Persist the task as TODO, then return it with a freshly computed
        score; the full-board rescore runs in the background after commit.
        """
        request = self.context.get('request')
        actor = getattr(request, 'user', None)
        return create_task(validated_data, actor=actor)

    def update(self, instance, validated_data):
        return edit_task(instance.pk, validated_data)


class TaskCreateSerializer(TaskSerializer):
    """Create accepts the initial emergency flag; edits go through the toggle."""

    class Meta(TaskSerializer.Meta):
        read_only_fields = [f for f in TaskSerializer.Meta.read_only_fields if f != 'emergency']


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=REQUESTABLE)


class ReviewAuditEntrySerializer(serializers.ModelSerializer):
    actor_email = serializers.ReadOnlyField(source='actor.email')

    class Meta:
        model = ReviewAuditEntry
        fields = ('id', 'task', 'actor', 'actor_email', 'old_status', 'new_status', 'requested_status', 'created_at')
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ('id', 'kind', 'title', 'message', 'task', 'payload', 'is_read', 'created_at')
        read_only_fields = fields


class BatchActionSerializer(serializers.Serializer):
    task_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    action = serializers.ChoiceField(choices=BATCH_ACTIONS)
    value = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate(self, attrs):
        action = attrs['action']
        value = attrs.get('value')

        if action == BATCH_CHANGE_STATUS:
            if value not in REQUESTABLE:
                raise serializers.ValidationError({"value": f"Status must be one of {', '.join(REQUESTABLE)}."})

        elif action == BATCH_CHANGE_PRIORITY:
            if value not in Priority.values:
                raise serializers.ValidationError({"value": f"Priority must be one of {', '.join(Priority.values)}."})

        elif action == BATCH_CHANGE_OWNER:
            if not value or not str(value).isdigit():
                raise serializers.ValidationError({"value": "value (owner id) is required."})
            if not User.objects.filter(pk=int(value), is_active=True).exists():
                raise serializers.ValidationError({"value": "Owner does not exist."})
            attrs['value'] = int(value)

        elif action == BATCH_CHANGE_PROJECT:
            if value:
                if not str(value).isdigit() or not Project.objects.filter(pk=int(value)).exists():
                    raise serializers.ValidationError({"value": "Project does not exist."})
                attrs['value'] = int(value)
            else:
                attrs['value'] = None

        return attrs


