from django.urls import path
from .views import (
    client_detail_view,
    client_health_view,
    client_list_create_view,
    invoice_list_create_view,
    project_detail_view,
    project_health_view,
    project_list_create_view,
)

urlpatterns = [
    path('', project_list_create_view, name="project-list-create"),
    path('<int:pk>/', project_detail_view, name="project-detail"),
    path('<int:pk>/health-score/', project_health_view, name="project-health-score"),

    path('clients/', client_list_create_view, name="client-list-create"),
    path('clients/<int:pk>/', client_detail_view, name="client-detail"),
    path('clients/<int:pk>/health-score/', client_health_view, name="client-health-score"),

    path('invoices/', invoice_list_create_view, name="invoice-list-create"),
]
