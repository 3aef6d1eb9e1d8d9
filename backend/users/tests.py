# users/tests.py
"""
Users App Test Suite
====================

Registration, JWT login and the capacity flag.
"""

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

User = get_user_model()


class AuthApiTest(APITestCase):

    def test_register_and_login(self):
        response = self.client.post(reverse('auth_register'), {
            'email': 'new@example.com',
            'username': 'newbie',
            'password': 'S3cure-pass-123',
            'password2': 'S3cure-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(User.objects.get(email='new@example.com').at_capacity)

        response = self.client.post(reverse('token_obtain_pair'), {
            'email': 'new@example.com',
            'password': 'S3cure-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_password_mismatch(self):
        response = self.client.post(reverse('auth_register'), {
            'email': 'new@example.com',
            'username': 'newbie',
            'password': 'S3cure-pass-123',
            'password2': 'other-pass-456',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.exists())


class CapacityApiTest(APITestCase):

    def setUp(self):
        self.user = User.objects.create_user(username='testuser', email='test@example.com', password='testpass123')

    def test_requires_authentication(self):
        response = self.client.patch(reverse('user_capacity'), {'at_capacity': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    @patch('users.views.schedule_recalculation')
    def test_toggle_schedules_recalculation(self, schedule):
        self.client.force_authenticate(user=self.user)

        response = self.client.patch(reverse('user_capacity'), {'at_capacity': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['at_capacity'])
        self.assertEqual(response.data['email'], 'test@example.com')
        schedule.assert_called_once_with()

        response = self.client.patch(reverse('user_capacity'), {'at_capacity': False}, format='json')
        self.user.refresh_from_db()
        self.assertFalse(self.user.at_capacity)
        self.assertEqual(schedule.call_count, 2)
