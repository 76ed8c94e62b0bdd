"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Extracting and validating query parameters from the request.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)

from .pagination import NotificationPagination
from .serializers import (
    AnnouncementSerializer,
    DashboardStatsSerializer,
    DetailedHealthSerializer,
    HealthSerializer,
    MyTaskSerializer,
    NotificationCreateSerializer,
    NotificationFilterSerializer,
    NotificationSerializer,
    NotificationStatsSerializer,
    RecentActivitySerializer,
)
from .services import DashboardAggregationService, HealthService, NotificationInboxService


# ════════════════════════════════════════════════════════════════════
#  Dashboard
# ════════════════════════════════════════════════════════════════════

class DashboardStatsView(APIView):
    """
    **GET /api/core/dashboard/**

    Headline counters for the authenticated user.  Managers and
    administrators count every case; caseworkers count the cases they
    can see.  See ``DashboardAggregationService`` for the scoping.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Dashboard statistics",
        description="Total, created-by-me and assigned-to-me counts with a per-status breakdown, scoped by role.",
        responses={200: OpenApiResponse(response=DashboardStatsSerializer, description="Dashboard stats.")},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        service = DashboardAggregationService(user=request.user)
        serializer = DashboardStatsSerializer(service.get_stats())
        return Response(serializer.data, status=status.HTTP_200_OK)


class RecentActivityView(APIView):
    """**GET /api/core/dashboard/recent-activity/**"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Recent activity",
        description="The latest case log entries on cases visible to the caller.",
        responses={200: RecentActivitySerializer(many=True)},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        service = DashboardAggregationService(user=request.user)
        serializer = RecentActivitySerializer(service.get_recent_activity(), many=True)
        return Response({"activities": serializer.data}, status=status.HTTP_200_OK)


class MyTasksView(APIView):
    """**GET /api/core/dashboard/my-tasks/**"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="My tasks",
        description="Up to five non-closed cases created by or assigned to the caller, most recently updated first.",
        responses={200: MyTaskSerializer(many=True)},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        service = DashboardAggregationService(user=request.user)
        serializer = MyTaskSerializer(service.get_my_tasks(), many=True)
        return Response({"tasks": serializer.data}, status=status.HTTP_200_OK)


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — the authenticated user's inbox.

    Endpoints
    ---------
    GET    /api/core/notifications/              → paged list
    POST   /api/core/notifications/              → send one (chairs)
    GET    /api/core/notifications/{id}/         → retrieve
    DELETE /api/core/notifications/{id}/         → delete
    POST   /api/core/notifications/{id}/read/    → mark read
    POST   /api/core/notifications/read-all/     → mark all read
    GET    /api/core/notifications/stats/        → counters
    POST   /api/core/notifications/announce/     → broadcast (ADMIN)
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List notifications",
        parameters=[
            OpenApiParameter(name="is_read", type=bool),
            OpenApiParameter(name="type", type=str, description="A notification type."),
            OpenApiParameter(name="created_after", type=str, description="ISO 8601 date."),
            OpenApiParameter(name="created_before", type=str, description="ISO 8601 date."),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Paged notifications; `meta.unread` holds the unread total.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        filters = NotificationFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        service = NotificationInboxService(user=request.user)
        qs = service.list_notifications(**filters.validated_data)

        paginator = NotificationPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        serializer = NotificationSerializer(page, many=True)
        return paginator.get_paginated_response(
            serializer.data,
            meta={"unread": service.unread_count()},
        )

    @extend_schema(
        summary="Send notification",
        request=NotificationCreateSerializer,
        responses={
            201: NotificationSerializer,
            403: OpenApiResponse(description="Managers and administrators only."),
            404: OpenApiResponse(description="Recipient or case not found."),
        },
        tags=["Notifications"],
    )
    def create(self, request: Request) -> Response:
        serializer = NotificationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        notification = NotificationInboxService(user=request.user).send(serializer.validated_data)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Retrieve notification", responses={200: NotificationSerializer}, tags=["Notifications"])
    def retrieve(self, request: Request, pk: str = None) -> Response:
        notification = NotificationInboxService(user=request.user).get_notification(int(pk))
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(summary="Delete notification", responses={204: None}, tags=["Notifications"])
    def destroy(self, request: Request, pk: str = None) -> Response:
        NotificationInboxService(user=request.user).delete(int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Mark notification as read",
        request=None,
        responses={200: OpenApiResponse(response=NotificationSerializer, description="Updated notification.")},
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"], url_path="read")
    def mark_as_read(self, request: Request, pk: str = None) -> Response:
        notification = NotificationInboxService(user=request.user).mark_as_read(int(pk))
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(description="`{updated}`: number of notifications changed.")},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def mark_all_as_read(self, request: Request) -> Response:
        updated = NotificationInboxService(user=request.user).mark_all_as_read()
        return Response({"updated": updated}, status=status.HTTP_200_OK)

    @extend_schema(summary="Notification statistics", responses={200: NotificationStatsSerializer}, tags=["Notifications"])
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request: Request) -> Response:
        data = NotificationInboxService(user=request.user).get_stats()
        return Response(NotificationStatsSerializer(data).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Broadcast announcement",
        request=AnnouncementSerializer,
        responses={
            201: OpenApiResponse(description="`{sent}`: number of notifications created."),
            403: OpenApiResponse(description="Administrators only."),
        },
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="announce")
    def announce(self, request: Request) -> Response:
        serializer = AnnouncementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sent = NotificationInboxService(user=request.user).announce(**serializer.validated_data)
        return Response({"sent": sent}, status=status.HTTP_201_CREATED)


# ════════════════════════════════════════════════════════════════════
#  Health
# ════════════════════════════════════════════════════════════════════

class HealthView(APIView):
    """**GET /api/core/health/** — public liveness probe."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="Health check", responses={200: HealthSerializer}, tags=["Health"])
    def get(self, request: Request) -> Response:
        return Response(HealthSerializer(HealthService.basic()).data, status=status.HTTP_200_OK)


class DetailedHealthView(APIView):
    """
    **GET /api/core/health/detailed/**

    Adds a database round-trip.  Answers 503 when the database is down
    so that orchestrators take the instance out of rotation.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Detailed health check",
        responses={200: DetailedHealthSerializer, 503: DetailedHealthSerializer},
        tags=["Health"],
    )
    def get(self, request: Request) -> Response:
        data = HealthService.detailed()
        code = status.HTTP_200_OK if data["status"] == "ok" else status.HTTP_503_SERVICE_UNAVAILABLE
        return Response(DetailedHealthSerializer(data).data, status=code)
