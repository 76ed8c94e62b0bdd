"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Synchronous** — all DB writes happen in the calling thread and inside
  the caller's transaction, so a rolled-back workflow step leaves no
  orphan notifications behind.
* **Multiple recipients** — pass a single ``User`` or an iterable.
  ``None`` entries and duplicates are dropped, and the actor never
  notifies themselves.
* **Templated text** — titles and messages come from ``_EVENT_TEMPLATES``
  and are formatted with ``{actor}``, ``{case_title}`` and any key of
  ``extra``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=[case.created_by, case.assigned_to],
        event_type=NotificationType.CASE_ACCEPTED,
        case=case,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from cases.models import Case
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → (title, message) templates ─────────────────────────
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    "CASE_ASSIGNED":         ("New Case Assigned",        "{actor} assigned you the case \"{case_title}\"."),
    "CASE_ACCEPTED":         ("Case Accepted",            "{actor} accepted the case \"{case_title}\"."),
    "CASE_REJECTED":         ("Case Rejected",            "{actor} rejected the case \"{case_title}\". Reason: {reason}"),
    "CASE_STATUS_CHANGED":   ("Case Status Updated",      "The case \"{case_title}\" moved to {status}."),
    "CASE_PRIORITY_CHANGED": ("Case Priority Updated",    "The priority of \"{case_title}\" changed to {priority}."),
    "CASE_COMMENT_ADDED":    ("New Comment",              "{actor} commented on \"{case_title}\"."),
    "COMPLETION_REQUESTED":  ("Completion Review Needed", "{actor} requested completion review for \"{case_title}\"."),
    "COMPLETION_APPROVED":   ("Completion Approved",      "{actor} approved the completion of \"{case_title}\"."),
    "COMPLETION_REJECTED":   ("Completion Rejected",      "{actor} sent \"{case_title}\" back for more work. Reason: {reason}"),
    "SYSTEM_ANNOUNCEMENT":   ("System Announcement",      "{message}"),
}


class _SafeDict(dict):
    """Leaves unknown ``{placeholders}`` empty instead of raising."""

    def __missing__(self, key: str) -> str:
        return ""


def render_template(event_type: str, context: dict[str, Any]) -> tuple[str, str]:
    """Return the ``(title, message)`` pair for ``event_type``."""
    title, message = _EVENT_TEMPLATES.get(
        event_type,
        (event_type.replace("_", " ").title(), f"Event: {event_type}"),
    )
    values = _SafeDict(context)
    return title.format_map(values), message.format_map(values).strip()


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User | None] | None,
        event_type: str,
        case: Case | None = None,
        extra: dict[str, Any] | None = None,
        title: str | None = None,
        message: str | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per distinct recipient.

        Args:
            actor:       The user who performed the action.  Stored as
                         ``sender`` and excluded from the recipients.
            recipients:  A single ``User`` or an iterable of users.
            event_type:  A ``NotificationType`` value.
            case:        Optional case the notification refers to.
            extra:       Template context and ``metadata`` payload.
            title:       Explicit title, overriding the template.
            message:     Explicit message, overriding the template.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy: circular import

        if recipients is None:
            recipients = []
        elif isinstance(recipients, models.Model):
            recipients = [recipients]

        unique: dict[int, User] = {}
        for recipient in recipients:
            if recipient is None:
                continue
            if actor is not None and recipient.pk == actor.pk:
                continue
            unique.setdefault(recipient.pk, recipient)

        if not unique:
            logger.debug(
                "No recipients left for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        extra = dict(extra or {})
        context = {
            "actor": actor.get_username() if actor is not None else "System",
            "case_title": case.title if case is not None else "",
            **extra,
        }
        rendered_title, rendered_message = render_template(str(event_type), context)

        metadata = {key: value for key, value in extra.items() if value is not None}
        if case is not None:
            metadata.setdefault("case_id", case.pk)

        notifications = Notification.objects.bulk_create([
            Notification(
                type=event_type,
                title=title or rendered_title,
                message=message or rendered_message,
                recipient=recipient,
                sender=actor,
                case=case,
                metadata=metadata,
            )
            for recipient in unique.values()
        ])

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
