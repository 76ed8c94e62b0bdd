"""
core.domain.access — Role-scoped queryset selectors and guards.

Per-app scoping rules live in each app's ``services.py``.  This module
provides the shared dispatch helpers:

    1) ``apply_role_scope`` — ordered role-rule dispatch for querysets.
    2) ``require_role``     — guard that raises ``PermissionDenied``.
    3) ``get_user_role``    — resolves the effective role of a user.

Usage in an app's service layer::

    from core.domain.access import apply_role_scope

    CASE_SCOPE_RULES = [
        (CHAIR_ROLES,     lambda qs, u: qs),
        ((UserRole.USER,), lambda qs, u: qs.filter(assigned_to=u)),
    ]

    qs = apply_role_scope(Case.objects.all(), user, scope_rules=CASE_SCOPE_RULES)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterable

from django.db.models import QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# A single scope rule: (roles the rule applies to, filter_fn).
ScopeRule = tuple[Iterable[str], ScopeFilter]


def get_user_role(user: User) -> str | None:
    """
    Return the effective role string for ``user``.

    Superusers created through ``createsuperuser`` are treated as ADMIN
    regardless of the stored ``role`` value.
    """
    from accounts.models import UserRole

    if not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return UserRole.ADMIN
    return getattr(user, "role", None)


def apply_role_scope(
    queryset: QuerySet,
    user: User,
    *,
    scope_rules: list[ScopeRule],
    default: str = "none",
) -> QuerySet:
    """
    Apply the first scope rule whose roles include the user's role.

    Args:
        queryset:    Base (unfiltered) queryset.
        user:        The authenticated user.
        scope_rules: Ordered list of ``(roles, filter_fn)`` tuples.
        default:     ``"none"`` returns an empty queryset when no rule
                     matches; ``"all"`` returns it unfiltered.
    """
    role = get_user_role(user)
    for roles, filter_fn in scope_rules:
        if role in roles:
            return filter_fn(queryset, user)

    if default == "none":
        return queryset.none()
    return queryset


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Raise ``PermissionDenied`` unless the user's role is among
    ``allowed_roles``.

    Example::

        require_role(user, UserRole.ADMIN, UserRole.MANAGER)
    """
    role = get_user_role(user)
    if role not in allowed_roles:
        raise PermissionDenied(
            message
            or f"Role '{role}' is not permitted for this operation. "
            f"Required: {', '.join(str(r) for r in allowed_roles)}."
        )
