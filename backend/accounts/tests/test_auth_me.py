"""
Integration tests for the current-user endpoint (``/api/accounts/me/``).

Each test logs in through the real login endpoint and uses the returned
access token, exercising the whole JWT path.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole

User = get_user_model()


class TestMeEndpoint(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.password = "Str0ngPass"
        cls.user = User.objects.create_user(
            username="me_user",
            email="me_user@example.com",
            password=cls.password,
            first_name="Mia",
            last_name="Example",
            role=UserRole.USER,
        )
        User.objects.create_user(
            username="other",
            email="taken@example.com",
            password=cls.password,
        )

    def setUp(self):
        self.client = APIClient()
        self.me_url = reverse("accounts:me")
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": "me_user", "password": self.password},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def test_get_me_returns_profile(self):
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["username"], "me_user")
        self.assertEqual(resp.data["role"], UserRole.USER)
        self.assertFalse(resp.data["is_chair"])

    def test_patch_me_updates_names(self):
        resp = self.client.patch(self.me_url, {"first_name": "Maya"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["first_name"], "Maya")
        self.user.refresh_from_db()
        self.assertEqual(self.user.first_name, "Maya")
        self.assertEqual(self.user.last_name, "Example")

    def test_patch_me_cannot_change_role(self):
        resp = self.client.patch(self.me_url, {"role": UserRole.ADMIN}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, UserRole.USER)

    def test_patch_me_email_conflict(self):
        resp = self.client.patch(self.me_url, {"email": "TAKEN@example.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_patch_me_keeps_own_email(self):
        resp = self.client.patch(self.me_url, {"email": "ME_USER@example.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["email"], "me_user@example.com")

    def test_me_requires_authentication(self):
        self.client.credentials()
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
