from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
from projects.models import Project


class TaskType(models.TextChoices):
    CLIENT = 'CLIENT', _('Client')
    INTERNAL = 'INTERNAL', _('Internal')
    RESEARCH = 'RESEARCH', _('Research')
    ADMIN = 'ADMIN', _('Admin')


class Priority(models.TextChoices):
    # Declaration order is the priority order, highest first.
    URGENT_IMPORTANT = 'URGENT_IMPORTANT', _('Urgent & important')
    IMPORTANT_NOT_URGENT = 'IMPORTANT_NOT_URGENT', _('Important, not urgent')
    URGENT_NOT_IMPORTANT = 'URGENT_NOT_IMPORTANT', _('Urgent, not important')
    NEITHER = 'NEITHER', _('Neither')


class TaskStatus(models.TextChoices):
    TODO = 'TODO', _('To do')
    IN_PROGRESS = 'IN_PROGRESS', _('In progress')
    IN_REVIEW = 'IN_REVIEW', _('In review')
    DONE = 'DONE', _('Done')


class LiveTaskQuerySet(models.QuerySet):
    def live(self):
        """Tasks the scoring engine still ranks (everything except DONE)."""
        return self.exclude(status=TaskStatus.DONE)


class Task(models.Model):
    """
    A unit of studio work, ranked by the scoring engine.
    """
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='owned_tasks',
        verbose_name=_("owner")
    )
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='review_tasks',
        verbose_name=_("reviewer")
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='tasks',
        verbose_name=_("project")
    )

    title = models.CharField(max_length=255, verbose_name=_("title"))
    description = models.TextField(blank=True, verbose_name=_("description"))
    type = models.CharField(max_length=16, choices=TaskType.choices, default=TaskType.CLIENT)
    priority = models.CharField(max_length=32, choices=Priority.choices, default=Priority.IMPORTANT_NOT_URGENT)
    status = models.CharField(max_length=16, choices=TaskStatus.choices, default=TaskStatus.TODO, db_index=True)

    start_date = models.DateTimeField(verbose_name=_("start date"))
    deadline = models.DateTimeField(verbose_name=_("deadline"))
    emergency = models.BooleanField(default=False, verbose_name=_("emergency"))
    estimated_hours = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)

    # Workflow anchors, written only by the state machine's field effects.
    todo_since = models.DateTimeField(null=True, blank=True)
    status_changed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    is_frozen = models.BooleanField(
        default=False,
        help_text=_("While set, display_score is held at its last value.")
    )

    # Derived by the recalculation pass, never user-editable.
    raw_score = models.FloatField(default=0.0, verbose_name=_("raw score"))
    display_score = models.FloatField(default=0.0, verbose_name=_("display score"), db_index=True)
    score_breakdown = models.JSONField(default=dict, blank=True)
    scored_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    objects = LiveTaskQuerySet.as_manager()

    class Meta:
        verbose_name = _("Task")
        verbose_name_plural = _("Tasks")
        ordering = ['-display_score', 'deadline', '-created_at']

    def __str__(self):
        return f"{self.title} ({self.status})"

    def clean(self):
        if self.start_date and self.deadline and self.deadline < self.start_date:
            raise ValidationError({'deadline': _("Deadline cannot be before the start date.")})


class ReviewAuditEntry(models.Model):
    """
    Append-only record of one status transition.
    """
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='audit_entries')
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='+'
    )
    old_status = models.CharField(max_length=16, choices=TaskStatus.choices)
    new_status = models.CharField(max_length=16, choices=TaskStatus.choices)
    requested_status = models.CharField(max_length=32)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name = _("Review audit entry")
        verbose_name_plural = _("Review audit entries")

    def __str__(self):
        return f"Task {self.task_id}: {self.old_status} -> {self.new_status}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError("Audit entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Audit entries cannot be deleted.")


class NotificationKind(models.TextChoices):
    REVIEW_REQUEST = 'REVIEW_REQUEST', _('Review requested')
    TASK_ASSIGNED = 'TASK_ASSIGNED', _('Task assigned')
    EMERGENCY_TASK = 'EMERGENCY_TASK', _('Emergency task')
    SCORE_FREEZE = 'SCORE_FREEZE', _('Scores frozen')


class Notification(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    kind = models.CharField(max_length=32, choices=NotificationKind.choices)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    task = models.ForeignKey(
        Task, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications'
    )
    payload = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.kind} for {self.user_id}"
