"""
Cases app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

No database queries or workflow logic lives here.

ViewSets
--------
- ``CaseViewSet`` — The single ViewSet for all case-related endpoints.
  Custom @action methods handle workflow, assignment, logs,
  attachments and statistics so the URL structure stays discoverable.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from attachments.serializers import AttachmentSerializer, AttachmentUploadSerializer
from attachments.services import AttachmentService
from core.pagination import MetaPagination

from .serializers import (
    CaseAssignSerializer,
    CaseCreateSerializer,
    CaseDetailSerializer,
    CaseFilterSerializer,
    CaseListSerializer,
    CaseLogSerializer,
    CaseNoteSerializer,
    CaseRejectSerializer,
    CaseStatsSerializer,
    CaseTransitionSerializer,
    CaseUpdateSerializer,
    CaseworkerWorkloadSerializer,
)
from .services import (
    CaseAssignmentService,
    CaseLogService,
    CaseManagementService,
    CaseQueryService,
    CaseWorkflowService,
)

logger = logging.getLogger(__name__)

_TRANSITION_ERRORS = {
    403: OpenApiResponse(description="Caller may not perform this transition."),
    404: OpenApiResponse(description="Case not found."),
    409: OpenApiResponse(description="Transition not allowed from the current status."),
}


class CaseViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the cases app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined, preventing accidental exposure of unintended
    CRUD operations.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Role and ownership
    checks are enforced exclusively inside the service layer; domain
    exceptions are mapped to HTTP codes by the global exception handler.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, FormParser, MultiPartParser]
    lookup_value_regex = r"\d+"

    def _detail(self, request: Request, case, status_code: int = status.HTTP_200_OK) -> Response:
        serializer = CaseDetailSerializer(case, context={"request": request})
        return Response(serializer.data, status=status_code)

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List cases",
        description=(
            "List cases visible to the authenticated user. `view` selects a "
            "dashboard perspective; the remaining parameters narrow, sort "
            "and page the result."
        ),
        parameters=[
            OpenApiParameter(name="view", type=str, description="all, my_cases, assigned, created, team, urgent, pending, in_progress, completion_review, resolved."),
            OpenApiParameter(name="status", type=str, description="Filter by case status."),
            OpenApiParameter(name="priority", type=str, description="Filter by priority."),
            OpenApiParameter(name="assigned_to", type=int, description="Filter by assignee PK."),
            OpenApiParameter(name="created_by", type=int, description="Filter by creator PK."),
            OpenApiParameter(name="search", type=str, description="Free-text search on title/description."),
            OpenApiParameter(name="created_after", type=str, description="ISO 8601 date."),
            OpenApiParameter(name="created_before", type=str, description="ISO 8601 date."),
            OpenApiParameter(name="updated_after", type=str, description="ISO 8601 date."),
            OpenApiParameter(name="updated_before", type=str, description="ISO 8601 date."),
            OpenApiParameter(name="sort_by", type=str, description="created_at, updated_at, title, priority, status or due_date."),
            OpenApiParameter(name="sort_order", type=str, description="asc or desc."),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int, description="Page size, 1-100."),
        ],
        responses={
            200: OpenApiResponse(response=CaseListSerializer(many=True), description="Paged list with `meta` and `filters`."),
            400: OpenApiResponse(description="Invalid filter value."),
            403: OpenApiResponse(description="The team view is restricted to managers and administrators."),
        },
        tags=["Cases"],
    )
    def list(self, request: Request) -> Response:
        """
        GET /api/cases/

        List cases visible to the authenticated user, with optional filtering.
        """
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        qs, applied = CaseQueryService.get_filtered_queryset(
            request.user, filter_serializer.validated_data,
        )

        paginator = MetaPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        serializer = CaseListSerializer(page, many=True)
        return paginator.get_paginated_response(
            serializer.data,
            filters={
                "applied": applied,
                "available": CaseQueryService.available_filters(),
            },
        )

    @extend_schema(
        summary="Create a new case",
        description=(
            "Create a case. Managers and administrators may pass `assigned_to` "
            "to assign it at once, in which case it starts PENDING."
        ),
        request=CaseCreateSerializer,
        responses={
            201: OpenApiResponse(response=CaseDetailSerializer, description="Case created."),
            400: OpenApiResponse(description="Validation error or assignee cannot take the case."),
            403: OpenApiResponse(description="Caseworkers cannot assign cases."),
            404: OpenApiResponse(description="Assignee not found."),
        },
        tags=["Cases"],
    )
    def create(self, request: Request) -> Response:
        serializer = CaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseManagementService.create_case(serializer.validated_data, request.user)
        return self._detail(request, case, status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve case details",
        description="Full case with recent logs, attachments and the actions the caller can take.",
        responses={
            200: OpenApiResponse(response=CaseDetailSerializer, description="Full case detail."),
            403: OpenApiResponse(description="Case is outside the caller's scope."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Cases"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        return self._detail(request, case)

    @extend_schema(
        summary="Partially update case",
        description=(
            "Update title, description, priority or due date. Caseworkers edit "
            "their own cases; managers edit cases that are not yet assigned."
        ),
        request=CaseUpdateSerializer,
        responses={
            200: OpenApiResponse(response=CaseDetailSerializer, description="Case updated."),
            400: OpenApiResponse(description="Validation error."),
            403: OpenApiResponse(description="Permission denied."),
            404: OpenApiResponse(description="Case not found."),
            409: OpenApiResponse(description="Case is completed or closed."),
        },
        tags=["Cases"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = CaseUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        case = CaseManagementService.update_case(int(pk), serializer.validated_data, request.user)
        return self._detail(request, case)

    @extend_schema(
        summary="Delete a case",
        description="Delete a case with its logs and attachments. Administrators or the creator only.",
        responses={
            204: OpenApiResponse(description="Case deleted."),
            403: OpenApiResponse(description="Permission denied."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Cases"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        CaseManagementService.delete_case(int(pk), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ── Workflow @actions ─────────────────────────────────────────────

    @extend_schema(
        summary="Assign case",
        description="OPEN → PENDING. Managers and administrators only. The caseworker must be active and below the workload limit.",
        request=CaseAssignSerializer,
        responses={
            200: CaseDetailSerializer,
            400: OpenApiResponse(description="Assignee inactive, not a caseworker, or at capacity."),
            **_TRANSITION_ERRORS,
        },
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request: Request, pk: str = None) -> Response:
        serializer = CaseAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseAssignmentService.assign(
            case,
            serializer.validated_data["assigned_to"],
            request.user,
            serializer.validated_data["message"],
        )
        return self._detail(request, case)

    @extend_schema(
        summary="Accept case",
        description="PENDING → IN_PROGRESS. Assigned caseworker only.",
        request=CaseTransitionSerializer,
        responses={
            200: CaseDetailSerializer,
            400: OpenApiResponse(description="Caseworker already has the maximum cases in progress."),
            **_TRANSITION_ERRORS,
        },
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="accept")
    def accept(self, request: Request, pk: str = None) -> Response:
        serializer = CaseTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseWorkflowService.accept(case, request.user, serializer.validated_data["message"])
        return self._detail(request, case)

    @extend_schema(
        summary="Reject case",
        description="PENDING → OPEN. Assigned caseworker only; the case returns to the unassigned pool.",
        request=CaseRejectSerializer,
        responses={200: CaseDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request: Request, pk: str = None) -> Response:
        serializer = CaseRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseWorkflowService.reject(case, request.user, serializer.validated_data["reason"])
        return self._detail(request, case)

    @extend_schema(
        summary="Request completion review",
        description="IN_PROGRESS → PENDING_COMPLETION_REVIEW. Assigned caseworker only.",
        request=CaseTransitionSerializer,
        responses={200: CaseDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="request-completion")
    def request_completion(self, request: Request, pk: str = None) -> Response:
        serializer = CaseTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseWorkflowService.request_completion(case, request.user, serializer.validated_data["message"])
        return self._detail(request, case)

    @extend_schema(
        summary="Approve completion",
        description="PENDING_COMPLETION_REVIEW → COMPLETED. Managers and administrators only.",
        request=CaseTransitionSerializer,
        responses={200: CaseDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="approve-completion")
    def approve_completion(self, request: Request, pk: str = None) -> Response:
        serializer = CaseTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseWorkflowService.approve_completion(case, request.user, serializer.validated_data["message"])
        return self._detail(request, case)

    @extend_schema(
        summary="Reject completion",
        description="PENDING_COMPLETION_REVIEW → IN_PROGRESS. Managers and administrators only.",
        request=CaseRejectSerializer,
        responses={200: CaseDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="reject-completion")
    def reject_completion(self, request: Request, pk: str = None) -> Response:
        serializer = CaseRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseWorkflowService.reject_completion(case, request.user, serializer.validated_data["reason"])
        return self._detail(request, case)

    @extend_schema(
        summary="Close case",
        description="COMPLETED → CLOSED, or OPEN → CLOSED. Managers and administrators only.",
        request=CaseTransitionSerializer,
        responses={200: CaseDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Cases - Workflow"],
    )
    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request: Request, pk: str = None) -> Response:
        serializer = CaseTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseQueryService.get_case_detail(request.user, int(pk))
        case = CaseWorkflowService.close(case, request.user, serializer.validated_data["message"])
        return self._detail(request, case)

    # ── Sub-resource @actions: logs ──────────────────────────────────

    @extend_schema(
        methods=["GET"],
        summary="List case logs",
        responses={200: CaseLogSerializer(many=True)},
        tags=["Cases - Logs"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Add a note",
        request=CaseNoteSerializer,
        responses={201: CaseLogSerializer},
        tags=["Cases - Logs"],
    )
    @action(detail=True, methods=["get", "post"], url_path="logs")
    def logs(self, request: Request, pk: str = None) -> Response:
        if request.method == "GET":
            logs = CaseLogService.list_logs(request.user, int(pk))
            paginator = MetaPagination()
            page = paginator.paginate_queryset(logs, request, view=self)
            return paginator.get_paginated_response(CaseLogSerializer(page, many=True).data)

        serializer = CaseNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        log = CaseLogService.add_note(request.user, int(pk), serializer.validated_data["details"])
        return Response(CaseLogSerializer(log).data, status=status.HTTP_201_CREATED)

    # ── Sub-resource @actions: attachments ───────────────────────────

    @extend_schema(
        methods=["GET"],
        summary="List case attachments",
        responses={200: AttachmentSerializer(many=True)},
        tags=["Attachments"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Upload attachments",
        description="Multipart upload of up to 10 files in the `files` field, 10 MB each.",
        request={"multipart/form-data": AttachmentUploadSerializer},
        responses={
            201: AttachmentSerializer(many=True),
            400: OpenApiResponse(description="No files, too many files, too large or disallowed type."),
            409: OpenApiResponse(description="Case is closed."),
        },
        tags=["Attachments"],
    )
    @action(detail=True, methods=["get", "post"], url_path="attachments")
    def attachments(self, request: Request, pk: str = None) -> Response:
        if request.method == "GET":
            attachments = AttachmentService.list_for_case(request.user, int(pk))
            return Response(AttachmentSerializer(attachments, many=True).data, status=status.HTTP_200_OK)

        serializer = AttachmentUploadSerializer(data={"files": request.FILES.getlist("files")})
        serializer.is_valid(raise_exception=True)
        created = AttachmentService.upload(request.user, int(pk), serializer.validated_data["files"])
        return Response(AttachmentSerializer(created, many=True).data, status=status.HTTP_201_CREATED)

    # ── Collection @actions ──────────────────────────────────────────

    @extend_schema(
        summary="Case statistics",
        description="Overview, personal, team (managers only), trend and chart data within the caller's scope.",
        responses={200: CaseStatsSerializer},
        tags=["Cases"],
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request: Request) -> Response:
        return Response(CaseQueryService.get_stats(request.user), status=status.HTTP_200_OK)

    @extend_schema(
        summary="Available caseworkers",
        description="Active caseworkers with their workload, those with capacity first.",
        responses={
            200: CaseworkerWorkloadSerializer(many=True),
            403: OpenApiResponse(description="Managers and administrators only."),
        },
        tags=["Cases - Workflow"],
    )
    @action(detail=False, methods=["get"], url_path="available-caseworkers")
    def available_caseworkers(self, request: Request) -> Response:
        rows = CaseAssignmentService.available_caseworkers(request.user)
        return Response(CaseworkerWorkloadSerializer(rows, many=True).data, status=status.HTTP_200_OK)
