"""
core.domain.exception_handler — DRF-compatible global exception handler.

Maps domain exceptions from ``core.domain.exceptions`` to DRF
``Response`` objects so that views don't need per-endpoint try/except.

Registered in ``casedesk/settings.py``::

    REST_FRAMEWORK = {
        ...
        "EXCEPTION_HANDLER": "core.domain.exception_handler.domain_exception_handler",
    }
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

# Domain exception → HTTP status code (most specific first)
_STATUS_MAP: dict[type, int] = {
    PermissionDenied:  403,
    NotFound:          404,
    InvalidTransition: 409,
    Conflict:          409,
    DomainError:       400,
}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also understands ``core.domain.exceptions``.

    The default DRF handler runs first.  When it returns ``None`` the
    exception is matched against ``_STATUS_MAP``; anything else propagates.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            view = context.get("view")
            logger.warning(
                "Domain exception [%s] in %s: %s",
                exc_class.__name__,
                type(view).__name__ if view is not None else "unknown",
                exc,
            )
            return Response({"detail": str(exc)}, status=status_code)

    return None
