# projects/serializers.py

from rest_framework import serializers
from .models import Client, Invoice, Project

HEALTH_FIELDS = (
    'health_score', 'health_score_grade', 'health_score_trend',
    'health_score_factors', 'health_score_updated_at',
)


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = ('id', 'name', 'status', 'created_at', 'updated_at') + HEALTH_FIELDS
        # health fields are derived by the aggregator only
        read_only_fields = ('id', 'created_at', 'updated_at') + HEALTH_FIELDS


class ProjectSerializer(serializers.ModelSerializer):
    client_name = serializers.ReadOnlyField(source='client.name')

    class Meta:
        model = Project
        fields = (
            'id', 'name', 'client', 'client_name', 'status',
            'start_date', 'target_finish_date',
            'budget', 'hourly_rate', 'hours_logged',
            'created_at', 'updated_at',
        ) + HEALTH_FIELDS
        read_only_fields = ('id', 'created_at', 'updated_at') + HEALTH_FIELDS

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        finish = attrs.get('target_finish_date', getattr(self.instance, 'target_finish_date', None))
        if start and finish and finish < start:
            raise serializers.ValidationError({"target_finish_date": "Target finish date cannot be before the start date."})
        return attrs


class InvoiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = ('id', 'client', 'project', 'status', 'total', 'date_issued', 'due_date', 'payment_date')
        read_only_fields = ('id',)

    def validate(self, attrs):
        issued = attrs.get('date_issued', getattr(self.instance, 'date_issued', None))
        due = attrs.get('due_date', getattr(self.instance, 'due_date', None))
        if issued and due and due < issued:
            raise serializers.ValidationError({"due_date": "Due date cannot be before the issue date."})

        project = attrs.get('project')
        client = attrs.get('client', getattr(self.instance, 'client', None))
        if project and project.client_id and client and project.client_id != client.pk:
            raise serializers.ValidationError({"project": "Project belongs to a different client."})
        return attrs


class HealthScoreSerializer(serializers.Serializer):
    """Read-only view of a stored or freshly computed health score."""
    overall = serializers.IntegerField(allow_null=True)
    grade = serializers.CharField(allow_blank=True)
    trend = serializers.IntegerField()
    factors = serializers.ListField(child=serializers.DictField())
    updated_at = serializers.DateTimeField(allow_null=True)

    @classmethod
    def from_instance(cls, instance):
        return cls({
            'overall': instance.health_score,
            'grade': instance.health_score_grade,
            'trend': instance.health_score_trend,
            'factors': instance.health_score_factors or [],
            'updated_at': instance.health_score_updated_at,
        })
