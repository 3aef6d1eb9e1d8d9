from django.urls import path,include

from .views import (
    recalculate_health_scores_cron_view,
    recalculate_scores_cron_view,
    weekly_freeze_cron_view,
)

urlpatterns=[
    path('v1/auth/',include('users.urls')),
    path('v1/projects/',include('projects.urls')),
    path('v1/tasks/',include('tasks.urls')),

    # Scheduler endpoints, shared-secret auth instead of JWT
    path('v1/cron/recalculate-scores/',recalculate_scores_cron_view,name='cron-recalculate-scores'),
    path('v1/cron/recalculate-health-scores/',recalculate_health_scores_cron_view,name='cron-recalculate-health-scores'),
    path('v1/cron/weekly-freeze/',weekly_freeze_cron_view,name='cron-weekly-freeze'),
]
