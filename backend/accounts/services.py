"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, and return the result
wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — self-service sign-up.
- ``AuthenticationService``    — logout via refresh-token blacklisting.
- ``UserManagementService``    — admin CRUD, activation, deactivation.
- ``CurrentUserService``       — "Me" endpoint helpers.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from core.domain.access import require_role
from core.domain.exceptions import Conflict, DomainError, NotFound

from .models import CHAIR_ROLES, UserRole

User = get_user_model()
logger = logging.getLogger(__name__)


def _ensure_unique(*, username: str | None = None, email: str | None = None, exclude_pk: int | None = None) -> None:
    """Raise ``Conflict`` naming every unique field that is already taken."""
    qs = User.objects.all()
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)

    conflicts = []
    if username and qs.filter(username=username).exists():
        conflicts.append("username")
    if email and qs.filter(email__iexact=email).exists():
        conflicts.append("email")

    if conflicts:
        raise Conflict(
            f"The following field(s) already exist: {', '.join(conflicts)}."
        )


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """Encapsulates the self-service registration flow."""

    @staticmethod
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new caseworker account.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer``.

        Returns
        -------
        User
            The newly created user with ``role=USER``.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the username or email is already taken.
        """
        data = dict(validated_data)
        data.pop("password_confirm", None)
        password = data.pop("password")

        _ensure_unique(username=data.get("username"), email=data.get("email"))

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=password,
                    role=UserRole.USER,
                    **data,
                )
        except IntegrityError:
            raise Conflict(
                "A user with the provided username or email already exists."
            )

        logger.info("Registered user %s (id=%s)", user.username, user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """Token helpers that complement SimpleJWT's own views."""

    @staticmethod
    def logout(refresh_token: str, user: User) -> None:
        """
        Revoke ``refresh_token`` by adding it to SimpleJWT's blacklist.

        Raises
        ------
        core.domain.exceptions.DomainError
            If the token is malformed, expired, or already revoked.
        """
        try:
            token = RefreshToken(refresh_token)
            if str(token.get("user_id")) != str(user.pk):
                raise DomainError("Refresh token does not belong to the current user.")
            token.blacklist()
        except TokenError as exc:
            raise DomainError(f"Invalid refresh token: {exc}")
        logger.info("User %s logged out", user.username)


# ═══════════════════════════════════════════════════════════════════
#  User Management Service
# ═══════════════════════════════════════════════════════════════════


class UserManagementService:
    """
    Administrative operations on users.

    Access Policies
    ---------------
    - ADMIN and MANAGER may list and inspect users.
    - Only ADMIN may create, update, delete, activate or deactivate.
    """

    @staticmethod
    def list_users(
        requesting_user: User,
        *,
        role: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> QuerySet[User]:
        """
        Return a filtered queryset of users, newest first.

        ``search`` is a case-insensitive match on username, email, first
        and last name.
        """
        require_role(requesting_user, *CHAIR_ROLES)

        qs = User.objects.all().order_by("-date_joined")
        if role:
            qs = qs.filter(role=role)
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        if search:
            qs = qs.filter(
                Q(username__icontains=search)
                | Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )
        return qs

    @staticmethod
    def get_user(requesting_user: User, user_id: int) -> User:
        require_role(requesting_user, *CHAIR_ROLES)
        try:
            return User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(f"User with id {user_id} not found.")

    @staticmethod
    def create_user(requesting_user: User, validated_data: dict[str, Any]) -> User:
        """Create an account with an explicit role (ADMIN only)."""
        require_role(requesting_user, UserRole.ADMIN)

        data = dict(validated_data)
        password = data.pop("password")
        _ensure_unique(username=data.get("username"), email=data.get("email"))

        try:
            with transaction.atomic():
                user = User.objects.create_user(password=password, **data)
        except IntegrityError:
            raise Conflict(
                "A user with the provided username or email already exists."
            )

        logger.info(
            "User %s created account %s with role %s",
            requesting_user.username, user.username, user.role,
        )
        return user

    @staticmethod
    @transaction.atomic
    def update_user(requesting_user: User, user_id: int, validated_data: dict[str, Any]) -> User:
        """
        Apply a partial update (ADMIN only).

        Email uniqueness is re-checked when it changes and a new
        ``password`` is hashed with ``set_password``.
        """
        require_role(requesting_user, UserRole.ADMIN)
        user = UserManagementService.get_user(requesting_user, user_id)

        data = dict(validated_data)
        email = data.get("email")
        if email and email.lower() != user.email.lower():
            _ensure_unique(email=email, exclude_pk=user.pk)

        password = data.pop("password", None)
        for field, value in data.items():
            setattr(user, field, value)
        if password:
            user.set_password(password)

        user.save()
        logger.info("User %s updated account %s", requesting_user.username, user.username)
        return user

    @staticmethod
    def deactivate_user(requesting_user: User, user_id: int) -> User:
        """
        Deactivate a user (ADMIN only).  Also backs ``DELETE``.

        Raises
        ------
        DomainError
            If the admin targets their own account.
        """
        require_role(requesting_user, UserRole.ADMIN)
        user = UserManagementService.get_user(requesting_user, user_id)

        if user.pk == requesting_user.pk:
            raise DomainError("You cannot deactivate your own account.")

        if user.is_active:
            user.is_active = False
            user.save(update_fields=["is_active", "updated_at"])
            logger.info("User %s deactivated %s", requesting_user.username, user.username)
        return user

    @staticmethod
    def activate_user(requesting_user: User, user_id: int) -> User:
        require_role(requesting_user, UserRole.ADMIN)
        user = UserManagementService.get_user(requesting_user, user_id)

        if not user.is_active:
            user.is_active = True
            user.save(update_fields=["is_active", "updated_at"])
            logger.info("User %s activated %s", requesting_user.username, user.username)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Helpers for the ``/me/`` endpoint."""

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the caller's own names and email.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the new email belongs to another account.
        """
        email = validated_data.get("email")
        if email and email.lower() != user.email.lower():
            _ensure_unique(email=email, exclude_pk=user.pk)

        for field, value in validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=[*validated_data.keys(), "updated_at"])
        return user
