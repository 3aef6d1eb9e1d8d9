from django.urls import path
from .views import (
    list_create_view,
    notification_list_view,
    retreive_update_destroy_view,
    review_queue_view,
    task_audit_view,
    task_batch_view,
    task_emergency_view,
    task_score_view,
    task_status_view,
    tasks_list_view,
)

urlpatterns = [
    # GET and POST (List tasks and Create new task)
    path('', list_create_view, name="task-list-create"),

    path('next/', tasks_list_view, name="task-next"),
    path('review-queue/', review_queue_view, name="task-review-queue"),
    path('batch/', task_batch_view, name="task-batch"),
    path('notifications/', notification_list_view, name="notification-list"),

    # GET, PUT, PATCH, DELETE (Detail and Manipulation)
    path('<int:pk>/', retreive_update_destroy_view, name="task-detail"),
    path('<int:pk>/status/', task_status_view, name="task-status"),
    path('<int:pk>/emergency/', task_emergency_view, name="task-emergency"),
    path('<int:pk>/score/', task_score_view, name="task-score"),
    path('<int:pk>/audit/', task_audit_view, name="task-audit"),
]
