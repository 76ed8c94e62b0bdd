"""
Core app service layer.

Contains cross-app aggregation services and the notification inbox.
All business logic for the core endpoints lives here; views stay thin.

Services
--------
- ``DashboardAggregationService``  — Role-scoped dashboard counters,
  recent activity and the caller's open tasks.
- ``NotificationInboxService``     — Listing, reading, deleting and
  sending notifications for one user.
- ``HealthService``                — Liveness and database checks.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from django.apps import apps
from django.contrib.auth import get_user_model
from django.db import DatabaseError, connection, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from accounts.models import CHAIR_ROLES, UserRole

from .constants import MY_TASKS_LIMIT, RECENT_ACTIVITY_LIMIT
from .domain.access import require_role
from .domain.exceptions import NotFound
from .domain.notifications import NotificationService
from .models import Notification, NotificationType

User = get_user_model()
logger = logging.getLogger(__name__)

#: Process start, used for ``uptime_seconds``.
_STARTED_AT = time.monotonic()


# ════════════════════════════════════════════════════════════════════
#  Dashboard Aggregation Service
# ════════════════════════════════════════════════════════════════════

class DashboardAggregationService:
    """
    Produces the dashboard payloads for one user.

    Everything is computed over the same case scope as the case list:
    chairs see all cases, caseworkers see what they created, what is
    assigned to them and the unassigned pool.
    """

    def __init__(self, user: User) -> None:
        self.user = user

    # ── Public API ──────────────────────────────────────────────────

    def get_stats(self) -> dict[str, Any]:
        """Return the headline counters and the per-status breakdown."""
        case_qs = self._get_case_queryset()

        aggregates = case_qs.aggregate(
            total_cases=Count("id"),
            my_cases=Count("id", filter=Q(created_by=self.user)),
            assigned_cases=Count("id", filter=Q(assigned_to=self.user)),
        )
        return {
            **aggregates,
            "status_breakdown": self._get_cases_by_status(case_qs),
        }

    def get_recent_activity(self) -> list[dict[str, Any]]:
        """Return the latest audit entries on cases the user can see."""
        CaseLog = apps.get_model("cases", "CaseLog")

        visible_case_ids = self._get_case_queryset().values_list("id", flat=True)
        logs = (
            CaseLog.objects
            .filter(case_id__in=visible_case_ids)
            .select_related("user", "case")
            .order_by("-created_at", "-id")[:RECENT_ACTIVITY_LIMIT]
        )
        return [
            {
                "id": log.pk,
                "action": log.action,
                "details": log.details,
                "user": log.user.username,
                "case_id": log.case_id,
                "case_title": log.case.title,
                "timestamp": log.created_at,
            }
            for log in logs
        ]

    def get_my_tasks(self) -> list[dict[str, Any]]:
        """Non-closed cases the user created or holds, most recently touched first."""
        from cases.models import CaseStatus

        Case = apps.get_model("cases", "Case")
        cases = (
            Case.objects
            .filter(Q(created_by=self.user) | Q(assigned_to=self.user))
            .exclude(status=CaseStatus.CLOSED)
            .select_related("created_by")
            .order_by("-updated_at")[:MY_TASKS_LIMIT]
        )
        return [
            {
                "id": case.pk,
                "title": case.title,
                "status": case.status,
                "priority": case.priority,
                "due_date": case.due_date,
                "created_by": case.created_by.username,
                "updated_at": case.updated_at,
            }
            for case in cases
        ]

    # ── Private helpers ─────────────────────────────────────────────

    def _get_case_queryset(self) -> QuerySet:
        from cases.services import CaseQueryService

        return CaseQueryService.get_visible_queryset(self.user)

    def _get_cases_by_status(self, case_qs: QuerySet) -> list[dict[str, Any]]:
        """Every status with its count, zero included."""
        from cases.models import CaseStatus

        counts = dict(
            case_qs.order_by().values_list("status").annotate(count=Count("id"))
        )
        return [
            {"status": value, "label": label, "count": counts.get(value, 0)}
            for value, label in CaseStatus.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Inbox Service
# ═══════════════════════════════════════════════════════════════════

class NotificationInboxService:
    """
    The notification inbox of one user.

    A user only ever sees, reads or deletes notifications addressed to
    them; anything else is reported as not found.
    """

    def __init__(self, user: User) -> None:
        self.user = user

    def list_notifications(
        self,
        *,
        is_read: bool | None = None,
        type: str | None = None,
        created_after=None,
        created_before=None,
    ) -> QuerySet[Notification]:
        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("sender", "case")
            .order_by("-created_at", "-id")
        )
        if is_read is not None:
            qs = qs.filter(is_read=is_read)
        if type:
            qs = qs.filter(type=type)
        if created_after:
            qs = qs.filter(created_at__date__gte=created_after)
        if created_before:
            qs = qs.filter(created_at__date__lte=created_before)
        return qs

    def unread_count(self) -> int:
        return Notification.objects.filter(recipient=self.user, is_read=False).count()

    def get_notification(self, notification_id: int) -> Notification:
        try:
            return (
                Notification.objects
                .select_related("sender", "case")
                .get(pk=notification_id, recipient=self.user)
            )
        except Notification.DoesNotExist:
            raise NotFound(f"Notification with id {notification_id} not found.")

    def mark_as_read(self, notification_id: int) -> Notification:
        """Mark one notification read.  Re-reading keeps the original ``read_at``."""
        notification = self.get_notification(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Return the number of notifications that changed."""
        now = timezone.now()
        return Notification.objects.filter(recipient=self.user, is_read=False).update(
            is_read=True, read_at=now, updated_at=now,
        )

    def delete(self, notification_id: int) -> None:
        self.get_notification(notification_id).delete()

    def get_stats(self) -> dict[str, Any]:
        qs = Notification.objects.filter(recipient=self.user)
        totals = qs.aggregate(
            total=Count("id"),
            unread=Count("id", filter=Q(is_read=False)),
        )
        by_type = dict(qs.order_by().values_list("type").annotate(count=Count("id")))
        return {
            "total": totals["total"],
            "unread": totals["unread"],
            "read": totals["total"] - totals["unread"],
            "by_type": by_type,
        }

    @transaction.atomic
    def send(self, validated_data: dict[str, Any]) -> Notification:
        """
        Create a notification for one recipient (chairs only).

        Raises
        ------
        PermissionDenied
            Caller is not a chair.
        NotFound
            Recipient or case does not exist.
        """
        require_role(self.user, *CHAIR_ROLES, message="Only managers and administrators can send notifications.")

        try:
            recipient = User.objects.get(pk=validated_data["recipient"])
        except User.DoesNotExist:
            raise NotFound(f"User with id {validated_data['recipient']} not found.")

        case = None
        case_id = validated_data.get("case")
        if case_id is not None:
            Case = apps.get_model("cases", "Case")
            try:
                case = Case.objects.get(pk=case_id)
            except Case.DoesNotExist:
                raise NotFound(f"Case with id {case_id} not found.")

        notification = Notification.objects.create(
            type=validated_data["type"],
            title=validated_data["title"],
            message=validated_data["message"],
            recipient=recipient,
            sender=self.user,
            case=case,
            metadata=validated_data.get("metadata") or {},
        )
        logger.info("User %s sent notification #%s to %s", self.user.username, notification.pk, recipient.username)
        return notification

    @transaction.atomic
    def announce(self, *, title: str, message: str, recipients: list[int] | None = None) -> int:
        """
        Broadcast a ``SYSTEM_ANNOUNCEMENT`` (ADMIN only).

        Goes to ``recipients`` when given, otherwise to every active
        user.  Returns the number of notifications created.
        """
        require_role(self.user, UserRole.ADMIN, message="Only administrators can send announcements.")

        users = User.objects.filter(is_active=True)
        if recipients:
            users = users.filter(pk__in=recipients)

        created = NotificationService.create(
            actor=self.user,
            recipients=list(users),
            event_type=NotificationType.SYSTEM_ANNOUNCEMENT,
            title=title,
            message=message,
        )
        return len(created)


# ═══════════════════════════════════════════════════════════════════
#  Health Service
# ═══════════════════════════════════════════════════════════════════

class HealthService:
    """Liveness and readiness information for load balancers and operators."""

    @staticmethod
    def basic() -> dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": timezone.now(),
            "uptime_seconds": round(time.monotonic() - _STARTED_AT, 2),
        }

    @staticmethod
    def detailed() -> dict[str, Any]:
        """``basic`` plus a database round-trip; ``degraded`` if it fails."""
        health = HealthService.basic()

        started = time.perf_counter()
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            database = {
                "status": "up",
                "vendor": connection.vendor,
                "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        except DatabaseError as exc:
            logger.error("Database health check failed: %s", exc)
            database = {"status": "down", "vendor": connection.vendor, "error": str(exc)}
            health["status"] = "degraded"

        health["services"] = {"database": database}
        return health
