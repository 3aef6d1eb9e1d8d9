from django.db import models
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator


class HealthScoredModel(models.Model):
    """
    Fields shared by every entity that carries a health grade.

    `health_score` doubles as the retained previous `overall`: the next
    computation diffs against it to produce the trend, then overwrites it.
    """
    health_score = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name=_("health score"))
    health_score_grade = models.CharField(max_length=1, blank=True, verbose_name=_("health grade"))
    health_score_trend = models.IntegerField(default=0, verbose_name=_("health trend"))
    health_score_factors = models.JSONField(default=list, blank=True, verbose_name=_("health factors"))
    health_score_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True


class Client(HealthScoredModel):
    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', _('Active')
        ARCHIVED = 'ARCHIVED', _('Archived')

    name = models.CharField(max_length=255, verbose_name=_("name"))
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Client")
        verbose_name_plural = _("Clients")
        ordering = ['name']

    def __str__(self):
        return self.name


class Project(HealthScoredModel):
    class Status(models.TextChoices):
        NOT_STARTED = 'NOT_STARTED', _('Not started')
        ACTIVE = 'ACTIVE', _('Active')
        COMPLETED = 'COMPLETED', _('Completed')
        ARCHIVED = 'ARCHIVED', _('Archived')

    name = models.CharField(max_length=255, verbose_name=_("name"))
    client = models.ForeignKey(
        Client,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='projects',
        verbose_name=_("client")
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    start_date = models.DateTimeField(null=True, blank=True)
    target_finish_date = models.DateTimeField(null=True, blank=True)

    budget = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0)],
        help_text=_("Total budget in the studio currency.")
    )
    hourly_rate = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0)]
    )
    hours_logged = models.DecimalField(
        max_digits=10, decimal_places=2, default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Tracked hours, maintained by the time-tracking integration.")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Project")
        verbose_name_plural = _("Projects")
        ordering = ['name']

    def __str__(self):
        return self.name


class Invoice(models.Model):
    class Status(models.TextChoices):
        DRAFT = 'DRAFT', _('Draft')
        SENT = 'SENT', _('Sent')
        PAID = 'PAID', _('Paid')
        OVERDUE = 'OVERDUE', _('Overdue')
        CANCELLED = 'CANCELLED', _('Cancelled')

    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='invoices')
    project = models.ForeignKey(
        Project, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoices'
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    total = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    date_issued = models.DateField()
    due_date = models.DateField()
    payment_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ['-date_issued']

    def __str__(self):
        return f"Invoice {self.pk} for {self.client}"
