# projects/views.py

import logging

from rest_framework import generics, permissions
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from .health import HealthScoreAggregator
from .models import Client, Invoice, Project
from .serializers import ClientSerializer, HealthScoreSerializer, InvoiceSerializer, ProjectSerializer

logger = logging.getLogger(__name__)


class ProjectListCreateView(generics.ListCreateAPIView):
    """
    GET: List projects (archived ones only with ?include_archived=1).
    POST: Create a project.
    """
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = Project.objects.select_related('client')
        if self.request.query_params.get('include_archived') not in ('1', 'true'):
            queryset = queryset.exclude(status=Project.Status.ARCHIVED)
        client = self.request.query_params.get('client')
        if client:
            queryset = queryset.filter(client=client)
        return queryset

project_list_create_view = ProjectListCreateView.as_view()


class ProjectRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = Project.objects.select_related('client')

project_detail_view = ProjectRetrieveUpdateDestroyView.as_view()


class ClientListCreateView(generics.ListCreateAPIView):
    serializer_class = ClientSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = Client.objects.all()

client_list_create_view = ClientListCreateView.as_view()


class ClientRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ClientSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = Client.objects.all()

client_detail_view = ClientRetrieveUpdateDestroyView.as_view()


class InvoiceListCreateView(generics.ListCreateAPIView):
    """Filters: ?client=, ?status="""
    serializer_class = InvoiceSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        queryset = Invoice.objects.select_related('client', 'project')
        for param in ('client', 'status'):
            value = self.request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{param: value})
        return queryset

invoice_list_create_view = InvoiceListCreateView.as_view()


class BaseHealthScoreView(APIView):
    """
    GET: the stored health score.
    POST: recompute now, persist, and return the fresh result.
    """
    permission_classes = [permissions.IsAuthenticated]
    model = None

    def compute(self, pk):
        raise NotImplementedError

    def get(self, request, pk):
        try:
            instance = self.model.objects.get(pk=pk)
        except self.model.DoesNotExist:
            raise NotFound(f"{self.model.__name__} not found.")
        return Response(HealthScoreSerializer.from_instance(instance).data)

    def post(self, request, pk):
        try:
            result = self.compute(pk)
        except self.model.DoesNotExist:
            raise NotFound(f"{self.model.__name__} not found.")
        logger.info(f"{self.model.__name__} {pk} health recomputed on demand: {result.overall}")
        return Response(result.to_dict())


class ProjectHealthScoreView(BaseHealthScoreView):
    model = Project

    def compute(self, pk):
        return HealthScoreAggregator().compute_project_health(pk)

project_health_view = ProjectHealthScoreView.as_view()


class ClientHealthScoreView(BaseHealthScoreView):
    model = Client

    def compute(self, pk):
        return HealthScoreAggregator().compute_client_health(pk)

client_health_view = ClientHealthScoreView.as_view()
