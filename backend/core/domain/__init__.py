"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF ``EXCEPTION_HANDLER`` that performs that mapping.
notifications      Synchronous notification creation helper.
transactions       Helpers for ``transaction.atomic`` + ``select_for_update``.
access             Role-scoped queryset selectors and guards.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.notifications import NotificationService
    from core.domain.transactions import atomic_transition
    from core.domain.access import apply_role_scope, require_role
"""
