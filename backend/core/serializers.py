"""
Core app serializers.

Response serializers for the dashboard, notification and health
endpoints, plus the request serializers for notification filters and
sending.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import Notification, NotificationType


# ════════════════════════════════════════════════════════════════════
#  Dashboard
# ════════════════════════════════════════════════════════════════════

class CasesByStatusSerializer(serializers.Serializer):
    """
    A single status bucket in the dashboard breakdown.

    Example::

        {"status": "IN_PROGRESS", "label": "In Progress", "count": 7}
    """

    status = serializers.CharField()
    label = serializers.CharField()
    count = serializers.IntegerField()


class DashboardStatsSerializer(serializers.Serializer):
    """
    Response for ``GET /api/core/dashboard/``.

    Counters are computed over the cases visible to the caller.
    """

    total_cases = serializers.IntegerField(help_text="Cases visible to the caller.")
    my_cases = serializers.IntegerField(help_text="Visible cases the caller created.")
    assigned_cases = serializers.IntegerField(help_text="Visible cases assigned to the caller.")
    status_breakdown = CasesByStatusSerializer(many=True)


class RecentActivitySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    action = serializers.CharField()
    details = serializers.CharField(allow_blank=True)
    user = serializers.CharField(help_text="Username of the actor.")
    case_id = serializers.IntegerField()
    case_title = serializers.CharField()
    timestamp = serializers.DateTimeField()


class MyTaskSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    status = serializers.CharField()
    priority = serializers.CharField()
    due_date = serializers.DateField(allow_null=True)
    created_by = serializers.CharField()
    updated_at = serializers.DateTimeField()


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for ``Notification`` instances.

    Used by the Notification ViewSet to list and retrieve notifications
    for the authenticated user.
    """

    sender = UserSummarySerializer(read_only=True)
    type_display = serializers.CharField(source="get_type_display", read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "type",
            "type_display",
            "title",
            "message",
            "sender",
            "case",
            "is_read",
            "read_at",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields


class NotificationFilterSerializer(serializers.Serializer):
    """Query parameters for ``GET /api/core/notifications/``."""

    is_read = serializers.BooleanField(required=False, allow_null=True, default=None)
    type = serializers.ChoiceField(choices=NotificationType.choices, required=False)
    created_after = serializers.DateField(required=False)
    created_before = serializers.DateField(required=False)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        after = attrs.get("created_after")
        before = attrs.get("created_before")
        if after and before and after > before:
            raise serializers.ValidationError(
                "created_after must be earlier than created_before."
            )
        return attrs


class NotificationCreateSerializer(serializers.Serializer):
    recipient = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=NotificationType.choices)
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    case = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    metadata = serializers.DictField(required=False)


class AnnouncementSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    recipients = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        allow_empty=True,
        help_text="User ids. Omit to address every active user.",
    )


class NotificationStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    unread = serializers.IntegerField()
    read = serializers.IntegerField()
    by_type = serializers.DictField(child=serializers.IntegerField())


# ════════════════════════════════════════════════════════════════════
#  Health
# ════════════════════════════════════════════════════════════════════

class HealthSerializer(serializers.Serializer):
    status = serializers.CharField(help_text="'ok' or 'degraded'.")
    timestamp = serializers.DateTimeField()
    uptime_seconds = serializers.FloatField()


class DetailedHealthSerializer(HealthSerializer):
    services = serializers.DictField()
