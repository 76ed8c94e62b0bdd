"""
Accounts app tests — registration, login and logout.

Covers:
  1. Registration creates a caseworker with a hashed password
  2. Duplicate username / email → 409
  3. Password confirmation and minimum length → 400
  4. Login with username or email; token carries role claims
  5. Wrong password and inactive user → 400
  6. Logout blacklists the refresh token
"""

from __future__ import annotations

import pytest
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User, UserRole

REGISTER_URL = "/api/accounts/auth/register/"
LOGIN_URL = "/api/accounts/auth/login/"
REFRESH_URL = "/api/accounts/auth/token/refresh/"
LOGOUT_URL = "/api/accounts/auth/logout/"


def _register_payload(**overrides) -> dict:
    """Return a valid registration payload, with optional overrides."""
    data = {
        "username": "newuser",
        "password": "Str0ngPass",
        "password_confirm": "Str0ngPass",
        "email": "NewUser@Example.com",
        "first_name": "New",
        "last_name": "User",
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestRegistration:

    def test_register_creates_caseworker(self, api_client: APIClient):
        resp = api_client.post(REGISTER_URL, _register_payload(), format="json")
        assert resp.status_code == status.HTTP_201_CREATED, resp.data

        user = User.objects.get(username="newuser")
        assert user.check_password("Str0ngPass")
        assert user.role == UserRole.USER
        assert user.email == "newuser@example.com"
        assert resp.data["role"] == UserRole.USER
        assert "password" not in resp.data

    def test_role_in_payload_is_ignored(self, api_client: APIClient):
        resp = api_client.post(REGISTER_URL, _register_payload(role="ADMIN"), format="json")
        assert resp.status_code == status.HTTP_201_CREATED
        assert User.objects.get(username="newuser").role == UserRole.USER

    def test_duplicate_username_conflicts(self, api_client: APIClient, create_user):
        create_user(username="newuser")
        resp = api_client.post(REGISTER_URL, _register_payload(), format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT
        assert "username" in resp.data["detail"]

    def test_duplicate_email_conflicts_case_insensitively(self, api_client: APIClient, create_user):
        create_user(username="someone", email="newuser@example.com")
        resp = api_client.post(REGISTER_URL, _register_payload(), format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT
        assert "email" in resp.data["detail"]

    def test_password_mismatch_rejected(self, api_client: APIClient):
        resp = api_client.post(
            REGISTER_URL, _register_payload(password_confirm="Different1"), format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert "password_confirm" in resp.data

    @pytest.mark.parametrize("field,value", [
        ("password", "12345"),
        ("username", "ab"),
        ("email", "not-an-email"),
    ])
    def test_field_validation(self, api_client: APIClient, field: str, value: str):
        overrides = {field: value}
        if field == "password":
            overrides["password_confirm"] = value
        resp = api_client.post(REGISTER_URL, _register_payload(**overrides), format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert field in resp.data


@pytest.mark.django_db
class TestLogin:

    @pytest.mark.parametrize("identifier", ["loginuser", "loginuser@example.com", "LOGINUSER@example.com"])
    def test_login_with_username_or_email(self, api_client: APIClient, create_user, identifier: str):
        create_user(username="loginuser", email="loginuser@example.com", password="Str0ngPass")
        resp = api_client.post(
            LOGIN_URL, {"identifier": identifier, "password": "Str0ngPass"}, format="json",
        )
        assert resp.status_code == status.HTTP_200_OK, resp.data
        assert {"access", "refresh", "user"} <= set(resp.data)
        assert resp.data["user"]["username"] == "loginuser"

    def test_token_carries_role_and_username(self, api_client: APIClient, create_user):
        create_user(username="boss", password="Str0ngPass", role=UserRole.MANAGER)
        resp = api_client.post(LOGIN_URL, {"identifier": "boss", "password": "Str0ngPass"}, format="json")

        token = AccessToken(resp.data["access"])
        assert token["role"] == UserRole.MANAGER
        assert token["username"] == "boss"

    def test_login_updates_last_login(self, api_client: APIClient, create_user):
        user = create_user(username="stamp", password="Str0ngPass")
        assert user.last_login is None
        api_client.post(LOGIN_URL, {"identifier": "stamp", "password": "Str0ngPass"}, format="json")
        user.refresh_from_db()
        assert user.last_login is not None

    def test_wrong_password_fails(self, api_client: APIClient, create_user):
        create_user(username="wrongpw", password="CorrectPass1")
        resp = api_client.post(
            LOGIN_URL, {"identifier": "wrongpw", "password": "WrongPass1"}, format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_inactive_user_cannot_login(self, api_client: APIClient, create_user):
        create_user(username="inactive", password="Str0ngPass", is_active=False)
        resp = api_client.post(
            LOGIN_URL, {"identifier": "inactive", "password": "Str0ngPass"}, format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestLogout:

    def _login(self, api_client: APIClient, create_user) -> dict:
        create_user(username="leaver", password="Str0ngPass")
        resp = api_client.post(LOGIN_URL, {"identifier": "leaver", "password": "Str0ngPass"}, format="json")
        return resp.data

    def test_logout_blacklists_refresh_token(self, api_client: APIClient, create_user):
        tokens = self._login(api_client, create_user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        resp = api_client.post(LOGOUT_URL, {"refresh": tokens["refresh"]}, format="json")
        assert resp.status_code == status.HTTP_205_RESET_CONTENT

        api_client.credentials()
        resp = api_client.post(REFRESH_URL, {"refresh": tokens["refresh"]}, format="json")
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_with_garbage_token_is_bad_request(self, api_client: APIClient, create_user):
        tokens = self._login(api_client, create_user)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        resp = api_client.post(LOGOUT_URL, {"refresh": "not-a-token"}, format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_logout_requires_authentication(self, api_client: APIClient):
        resp = api_client.post(LOGOUT_URL, {"refresh": "x"}, format="json")
        assert resp.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_issues_new_access_token(self, api_client: APIClient, create_user):
        tokens = self._login(api_client, create_user)
        resp = api_client.post(REFRESH_URL, {"refresh": tokens["refresh"]}, format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert "access" in resp.data
