"""
Cases app serializers.

Contains all Request and Response serializers for the Cases API.
Serializers handle field definitions, read/write constraints, and
field-level validation only.  **No business logic or workflow
transitions live here**; those belong in ``services.py``.

Structure
---------
1. Filter / query-param serializers
2. Case read serializers (list, detail)
3. Case write serializers (create, update)
4. Workflow action serializers (assign, transition, reject)
5. Sub-resource serializers (log, note, caseworker workload, stats)
"""

from __future__ import annotations

from typing import Any

from django.utils import timezone
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import Case, CaseLog, CasePriority, CaseStatus
from .services import CASE_VIEWS, SORT_FIELDS


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseFilterSerializer(serializers.Serializer):
    """
    Validates and cleans query-parameter filters for ``GET /api/cases/``.

    All fields are optional.  The view passes the validated dict directly
    to ``CaseQueryService.get_filtered_queryset``.  Paging parameters
    (``page``, ``limit``) are read by the paginator, not here.

    Query Parameters
    ----------------
    ``view``            : str   — dashboard view, see ``CASE_VIEWS``
    ``status``          : str   — one of ``CaseStatus`` values
    ``priority``        : str   — one of ``CasePriority`` values
    ``assigned_to``     : int   — PK of the assignee
    ``created_by``      : int   — PK of the creator
    ``search``          : str   — matched against title and description
    ``created_after``   : date  — ISO 8601, inclusive
    ``created_before``  : date  — ISO 8601, inclusive
    ``updated_after``   : date  — ISO 8601, inclusive
    ``updated_before``  : date  — ISO 8601, inclusive
    ``sort_by``         : str   — unknown values fall back to ``created_at``
    ``sort_order``      : str   — ``asc`` or ``desc`` (default)
    """

    view = serializers.ChoiceField(choices=list(CASE_VIEWS.keys()), required=False, default="all")
    status = serializers.ChoiceField(choices=CaseStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=CasePriority.choices, required=False)
    assigned_to = serializers.IntegerField(required=False, min_value=1)
    created_by = serializers.IntegerField(required=False, min_value=1)
    search = serializers.CharField(required=False, max_length=255, allow_blank=False)
    created_after = serializers.DateField(required=False)
    created_before = serializers.DateField(required=False)
    updated_after = serializers.DateField(required=False)
    updated_before = serializers.DateField(required=False)
    sort_by = serializers.CharField(required=False, default="created_at")
    sort_order = serializers.ChoiceField(choices=["asc", "desc"], required=False, default="desc")

    def validate_sort_by(self, value: str) -> str:
        return value if value in SORT_FIELDS else "created_at"

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        for prefix in ("created", "updated"):
            after = attrs.get(f"{prefix}_after")
            before = attrs.get(f"{prefix}_before")
            if after and before and after > before:
                raise serializers.ValidationError(
                    f"{prefix}_after must be earlier than {prefix}_before."
                )
        return attrs


# ═══════════════════════════════════════════════════════════════════
#  2. Case Read Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for the case audit trail."""

    user = UserSummarySerializer(read_only=True)
    action_display = serializers.CharField(source="get_action_display", read_only=True)

    class Meta:
        model = CaseLog
        fields = ["id", "case", "user", "action", "action_display", "details", "created_at"]
        read_only_fields = fields


class CaseListSerializer(serializers.ModelSerializer):
    """
    Compact representation for the list endpoint.

    Excludes logs and attachments to keep list-page payloads small.
    """

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    priority_display = serializers.CharField(source="get_priority_display", read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "title",
            "status",
            "status_display",
            "priority",
            "priority_display",
            "created_by",
            "assigned_to",
            "due_date",
            "is_overdue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_overdue(self, obj: Case) -> bool:
        if obj.due_date is None or obj.status in (CaseStatus.COMPLETED, CaseStatus.CLOSED):
            return False
        return obj.due_date < timezone.localdate()


class CaseDetailSerializer(CaseListSerializer):
    """
    Full case representation.

    ``recent_logs`` holds the latest ten audit entries; the complete
    trail is served by ``GET /api/cases/{id}/logs/``.
    ``allowed_actions`` lists the workflow actions the requesting user
    can trigger right now and needs ``request`` in the context.
    """

    completed_by = UserSummarySerializer(read_only=True)
    recent_logs = serializers.SerializerMethodField()
    attachments = serializers.SerializerMethodField()
    allowed_actions = serializers.SerializerMethodField()

    class Meta(CaseListSerializer.Meta):
        fields = CaseListSerializer.Meta.fields + [
            "description",
            "completed_at",
            "completed_by",
            "metadata",
            "recent_logs",
            "attachments",
            "allowed_actions",
        ]
        read_only_fields = fields

    def get_recent_logs(self, obj: Case) -> list[dict]:
        logs = obj.logs.select_related("user").order_by("-created_at", "-id")[:10]
        return CaseLogSerializer(logs, many=True).data

    def get_attachments(self, obj: Case) -> list[dict]:
        from attachments.serializers import AttachmentSerializer

        return AttachmentSerializer(
            obj.attachments.select_related("uploaded_by"), many=True,
        ).data

    def get_allowed_actions(self, obj: Case) -> list[str]:
        from .services import CaseWorkflowService

        request = self.context.get("request")
        if request is None:
            return []
        return CaseWorkflowService.available_actions(obj, request.user)


# ═══════════════════════════════════════════════════════════════════
#  3. Case Write Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseCreateSerializer(serializers.Serializer):
    """
    Validates ``POST /api/cases/``.

    ``assigned_to`` is honoured for chairs only; the service rejects it
    for caseworkers.
    """

    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    priority = serializers.ChoiceField(choices=CasePriority.choices, default=CasePriority.MEDIUM)
    due_date = serializers.DateField(required=False, allow_null=True)
    assigned_to = serializers.IntegerField(required=False, allow_null=True, min_value=1)

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value


class CaseUpdateSerializer(serializers.Serializer):
    """
    Validates ``PATCH /api/cases/{id}/``.

    Status, assignee and ownership are not editable here; they move only
    through the workflow actions.
    """

    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=CasePriority.choices, required=False)
    due_date = serializers.DateField(required=False, allow_null=True)

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value


# ═══════════════════════════════════════════════════════════════════
#  4. Workflow Action Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseAssignSerializer(serializers.Serializer):
    """Request body for ``POST /api/cases/{id}/assign/``."""

    assigned_to = serializers.IntegerField(min_value=1, help_text="PK of the caseworker.")
    message = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)


class CaseTransitionSerializer(serializers.Serializer):
    """Optional note for accept, request-completion, approve-completion and close."""

    message = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)


class CaseRejectSerializer(serializers.Serializer):
    """Reason for reject and reject-completion."""

    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=1000)


# ═══════════════════════════════════════════════════════════════════
#  5. Sub-resource Serializers
# ═══════════════════════════════════════════════════════════════════


class CaseNoteSerializer(serializers.Serializer):
    """Request body for ``POST /api/cases/{id}/logs/``."""

    details = serializers.CharField(max_length=5000)


class CaseworkerWorkloadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    username = serializers.CharField()
    email = serializers.EmailField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    active_cases = serializers.IntegerField()
    can_accept_more = serializers.BooleanField()


class CaseStatsSerializer(serializers.Serializer):
    """Schema-only description of ``GET /api/cases/stats/``."""

    overview = serializers.DictField(child=serializers.IntegerField())
    personal = serializers.DictField(child=serializers.IntegerField())
    team = serializers.DictField(child=serializers.IntegerField(), allow_null=True)
    trends = serializers.DictField()
    charts = serializers.DictField()
