# api/tests.py
"""
Scheduler Endpoint Tests
========================

Cron endpoints authenticate with the shared secret only.
"""

from unittest.mock import patch

from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase


@override_settings(CRON_SECRET='s3cret')
class CronEndpointTest(APITestCase):

    def test_missing_secret_is_refused(self):
        response = self.client.post(reverse('cron-recalculate-scores'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_wrong_secret_is_refused(self):
        response = self.client.post(reverse('cron-recalculate-scores'), HTTP_AUTHORIZATION='Bearer nope')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_recalculate_scores(self):
        response = self.client.post(reverse('cron-recalculate-scores'), HTTP_AUTHORIZATION='Bearer s3cret')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['processed'], 0)

    def test_get_is_accepted(self):
        response = self.client.get(reverse('cron-recalculate-health-scores'), HTTP_AUTHORIZATION='Bearer s3cret')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['failed'], 0)

    def test_weekly_freeze(self):
        with patch('api.views.apply_weekly_freeze', return_value={'frozen': True, 'affected': 3}):
            response = self.client.post(reverse('cron-weekly-freeze'), HTTP_AUTHORIZATION='Bearer s3cret')
        self.assertEqual(response.data, {'success': True, 'frozen': True, 'affected': 3})

    @override_settings(CRON_SECRET='')
    def test_unconfigured_secret_refuses_everything(self):
        response = self.client.post(reverse('cron-recalculate-scores'), HTTP_AUTHORIZATION='Bearer ')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
