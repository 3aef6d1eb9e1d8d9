import logging

from rest_framework import generics
from rest_framework.permissions import AllowAny, IsAuthenticated

from tasks.engine.dispatch import schedule_recalculation
from .serializers import CapacitySerializer, UserDetailsSerializer, UserRegistrationSerializer

logger = logging.getLogger(__name__)


class RegisterAPIView(generics.CreateAPIView):
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

register_api_view = RegisterAPIView.as_view()


class UserDetailView(generics.RetrieveAPIView):
    serializer_class = UserDetailsSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user

user_detail_view = UserDetailView.as_view()


class CapacityUpdateView(generics.UpdateAPIView):
    """
    PATCH: flip the caller's at_capacity flag.
    The capacity penalty is part of every ADMIN task score the user owns,
    so a change re-ranks the board in the background.
    """
    serializer_class = CapacitySerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['patch', 'put']

    def get_object(self):
        return self.request.user

    def perform_update(self, serializer):
        user = serializer.save()
        logger.info(f"User {user.pk} capacity set to {user.at_capacity}")
        schedule_recalculation()

    def update(self, request, *args, **kwargs):
        response = super().update(request, *args, **kwargs)
        response.data = UserDetailsSerializer(self.get_object()).data
        return response

capacity_update_view = CapacityUpdateView.as_view()
