"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations raised inside the
service layers of ``accounts``, ``cases``, ``attachments`` and ``core``.
They are **not** DRF exceptions; the global handler in
``core.domain.exception_handler`` turns them into HTTP responses.

Mapping cheatsheet
------------------
┌─────────────────────┬──────┐
│ Domain Exception    │ Code │
├─────────────────────┼──────┤
│ DomainError         │ 400  │
│ PermissionDenied    │ 403  │
│ NotFound            │ 404  │
│ Conflict            │ 409  │
│ InvalidTransition   │ 409  │
└─────────────────────┴──────┘

Usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if (case.status, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(current=case.status, target=target)
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Converted to a 400 Bad Request at the view boundary.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The authenticated user's role (or relationship to the resource) does
    not allow this operation.  Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """The requested resource does not exist.  Maps to HTTP 404."""

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate username/email, editing a closed case.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A case-workflow transition that is not allowed from the current status.

    Example::

        raise InvalidTransition(
            current="OPEN",
            target="COMPLETED",
            reason="Completion must be requested by the assignee first.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid status transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason
