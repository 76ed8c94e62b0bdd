"""
Tests for administrative user management (``/api/accounts/users/``).

Access rules under test:
  - ADMIN and MANAGER read; USER gets 403.
  - Only ADMIN creates, updates, deletes, activates and deactivates.
  - DELETE is a soft delete (deactivation); an admin cannot deactivate
    their own account.
"""

from __future__ import annotations

import pytest
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User, UserRole

USERS_URL = "/api/accounts/users/"


def _login_as(client: APIClient, user: User) -> APIClient:
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


@pytest.fixture()
def admin(create_user):
    return create_user(username="admin_user", role=UserRole.ADMIN)


@pytest.fixture()
def manager(create_user):
    return create_user(username="manager_user", role=UserRole.MANAGER)


@pytest.fixture()
def worker(create_user):
    return create_user(username="worker_user", role=UserRole.USER)


@pytest.mark.django_db
class TestUserListing:

    def test_manager_can_list_users(self, api_client, manager, worker):
        resp = _login_as(api_client, manager).get(USERS_URL)
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["meta"]["total"] == 2
        assert {row["username"] for row in resp.data["data"]} == {"manager_user", "worker_user"}

    def test_caseworker_cannot_list_users(self, api_client, worker):
        resp = _login_as(api_client, worker).get(USERS_URL)
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_filter_by_role_and_search(self, api_client, admin, manager, worker, create_user):
        create_user(username="another_worker", first_name="Zed")
        client = _login_as(api_client, admin)

        resp = client.get(USERS_URL, {"role": UserRole.USER})
        assert {row["username"] for row in resp.data["data"]} == {"worker_user", "another_worker"}

        resp = client.get(USERS_URL, {"search": "zed"})
        assert [row["username"] for row in resp.data["data"]] == ["another_worker"]

    def test_filter_by_active_flag(self, api_client, admin, create_user):
        create_user(username="dormant", is_active=False)
        resp = _login_as(api_client, admin).get(USERS_URL, {"is_active": "false"})
        assert [row["username"] for row in resp.data["data"]] == ["dormant"]

    def test_retrieve_missing_user_is_404(self, api_client, admin):
        resp = _login_as(api_client, admin).get(f"{USERS_URL}99999/")
        assert resp.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestUserWrites:

    def test_admin_creates_user_with_role(self, api_client, admin):
        payload = {
            "username": "fresh_manager",
            "email": "Fresh@Example.com",
            "password": "Str0ngPass",
            "role": UserRole.MANAGER,
        }
        resp = _login_as(api_client, admin).post(USERS_URL, payload, format="json")
        assert resp.status_code == status.HTTP_201_CREATED, resp.data

        created = User.objects.get(username="fresh_manager")
        assert created.role == UserRole.MANAGER
        assert created.email == "fresh@example.com"
        assert created.check_password("Str0ngPass")

    def test_manager_cannot_create_user(self, api_client, manager):
        payload = {"username": "nope", "email": "nope@example.com", "password": "Str0ngPass"}
        resp = _login_as(api_client, manager).post(USERS_URL, payload, format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN
        assert not User.objects.filter(username="nope").exists()

    def test_create_duplicate_username_conflicts(self, api_client, admin, worker):
        payload = {"username": "worker_user", "email": "x@example.com", "password": "Str0ngPass"}
        resp = _login_as(api_client, admin).post(USERS_URL, payload, format="json")
        assert resp.status_code == status.HTTP_409_CONFLICT

    def test_admin_updates_role_and_password(self, api_client, admin, worker):
        resp = _login_as(api_client, admin).patch(
            f"{USERS_URL}{worker.pk}/",
            {"role": UserRole.MANAGER, "password": "N3wPassword"},
            format="json",
        )
        assert resp.status_code == status.HTTP_200_OK, resp.data
        worker.refresh_from_db()
        assert worker.role == UserRole.MANAGER
        assert worker.check_password("N3wPassword")

    def test_update_email_conflict(self, api_client, admin, worker, manager):
        resp = _login_as(api_client, admin).patch(
            f"{USERS_URL}{worker.pk}/", {"email": manager.email}, format="json",
        )
        assert resp.status_code == status.HTTP_409_CONFLICT

    def test_delete_deactivates_instead_of_removing(self, api_client, admin, worker):
        resp = _login_as(api_client, admin).delete(f"{USERS_URL}{worker.pk}/")
        assert resp.status_code == status.HTTP_204_NO_CONTENT
        worker.refresh_from_db()
        assert worker.is_active is False

    def test_admin_cannot_deactivate_self(self, api_client, admin):
        resp = _login_as(api_client, admin).post(f"{USERS_URL}{admin.pk}/deactivate/")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        admin.refresh_from_db()
        assert admin.is_active is True

    def test_activate_and_deactivate(self, api_client, admin, worker):
        client = _login_as(api_client, admin)

        resp = client.post(f"{USERS_URL}{worker.pk}/deactivate/")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["is_active"] is False

        resp = client.post(f"{USERS_URL}{worker.pk}/activate/")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["is_active"] is True

    def test_manager_cannot_deactivate(self, api_client, manager, worker):
        resp = _login_as(api_client, manager).post(f"{USERS_URL}{worker.pk}/deactivate/")
        assert resp.status_code == status.HTTP_403_FORBIDDEN

    def test_superuser_counts_as_admin(self, api_client, create_user, worker):
        root = create_user(username="root", role=UserRole.USER, is_superuser=True, is_staff=True)
        resp = _login_as(api_client, root).post(f"{USERS_URL}{worker.pk}/deactivate/")
        assert resp.status_code == status.HTTP_200_OK
