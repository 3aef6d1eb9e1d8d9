# api/permissions.py

import hmac
import logging

from django.conf import settings
from rest_framework import permissions

logger = logging.getLogger(__name__)


class CronSecretPermission(permissions.BasePermission):
    """
    Allows scheduler calls carrying `Authorization: Bearer <CRON_SECRET>`.
    With no CRON_SECRET configured every call is refused.
    """
    message = "Invalid or missing cron secret."

    def has_permission(self, request, view):
        secret = getattr(settings, 'CRON_SECRET', '')
        if not secret:
            logger.warning("Cron endpoint called but CRON_SECRET is not configured")
            return False

        header = request.META.get('HTTP_AUTHORIZATION', '')
        scheme, _, token = header.partition(' ')
        if scheme != 'Bearer' or not token:
            return False
        return hmac.compare_digest(token.encode(), secret.encode())
