"""
Accounts app models.

Defines the fixed role set and a custom User model that extends
Django's ``AbstractUser``.  Every account holds exactly one role:

* ``ADMIN``   — full control over users and cases.
* ``MANAGER`` — supervises caseworkers; assigns and reviews cases.
* ``USER``    — caseworker; accepts, works and completes assigned cases.

ADMIN and MANAGER are collectively called *chairs* throughout the code.
"""

from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models


class UserRole(models.TextChoices):
    ADMIN = "ADMIN", "Administrator"
    MANAGER = "MANAGER", "Manager"
    USER = "USER", "Caseworker"


#: Roles allowed to supervise the case workflow.
CHAIR_ROLES: tuple[str, ...] = (UserRole.ADMIN, UserRole.MANAGER)


class UserManager(DjangoUserManager):
    """Default manager; superusers created from the CLI become ADMINs."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", UserRole.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom user model for the case-management system.

    Login is supported via *either* ``username`` or ``email`` together
    with the password (see ``accounts.backends.MultiFieldAuthBackend``).
    Deleting a user through the API only deactivates the account so that
    case history keeps its authors.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.USER,
        db_index=True,
        verbose_name="Role",
    )
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Updated At")

    objects = UserManager()

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ["-date_joined"]

    def __str__(self):
        return f"{self.username} ({self.role})"

    # ── Role predicates ──────────────────────────────────────────────

    @property
    def effective_role(self) -> str:
        """Superusers always act as ADMIN."""
        return UserRole.ADMIN if self.is_superuser else self.role

    @property
    def is_admin(self) -> bool:
        return self.effective_role == UserRole.ADMIN

    @property
    def is_chair(self) -> bool:
        return self.effective_role in CHAIR_ROLES

    @property
    def is_caseworker(self) -> bool:
        return self.effective_role == UserRole.USER
