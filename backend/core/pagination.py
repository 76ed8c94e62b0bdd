"""
Project-wide pagination.

List endpoints return a ``{data, meta}`` envelope::

    {
        "data": [...],
        "meta": {
            "total": 57,
            "page": 2,
            "limit": 20,
            "total_pages": 3,
            "has_next_page": true,
            "has_previous_page": true
        }
    }

``page`` must be >= 1 and ``limit`` 1..100; anything else is a 400 with the
standard DRF validation body. A page past the end returns empty ``data``
with the real ``total_pages``.

Views that need extra envelope keys (e.g. ``filters`` on the case list,
``unread`` on notifications) pass them to ``get_paginated_response``.
"""

from __future__ import annotations

from typing import Any

from django.core.paginator import EmptyPage, Page
from rest_framework import serializers
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, NOTIFICATION_PAGE_SIZE


class PageParamsSerializer(serializers.Serializer):
    """Validates the ``page`` / ``limit`` query parameters."""

    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=MAX_PAGE_SIZE)


class MetaPagination(PageNumberPagination):
    """Page-number pagination driven by ``?page=`` and ``?limit=``."""

    page_size = DEFAULT_PAGE_SIZE
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = MAX_PAGE_SIZE

    def paginate_queryset(self, queryset, request, view=None) -> list:
        params = PageParamsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        self.request = request
        page_number = params.validated_data.get("page", 1)
        paginator = self.django_paginator_class(
            queryset, params.validated_data.get("limit", self.page_size),
        )
        try:
            self.page = paginator.page(page_number)
        except EmptyPage:
            self.page = Page([], page_number, paginator)
        return list(self.page)

    def get_meta(self) -> dict[str, Any]:
        paginator = self.page.paginator
        return {
            "total": paginator.count,
            "page": self.page.number,
            "limit": paginator.per_page,
            "total_pages": paginator.num_pages if paginator.count else 0,
            "has_next_page": self.page.has_next(),
            "has_previous_page": self.page.has_previous(),
        }

    def get_paginated_response(self, data, meta: dict[str, Any] | None = None, **extra) -> Response:
        payload = {"data": data, "meta": {**self.get_meta(), **(meta or {})}}
        payload.update(extra)
        return Response(payload)

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": ["data", "meta"],
            "properties": {
                "data": schema,
                "meta": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer", "example": 57},
                        "page": {"type": "integer", "example": 1},
                        "limit": {"type": "integer", "example": DEFAULT_PAGE_SIZE},
                        "total_pages": {"type": "integer", "example": 3},
                        "has_next_page": {"type": "boolean"},
                        "has_previous_page": {"type": "boolean"},
                    },
                },
            },
        }


class NotificationPagination(MetaPagination):
    """Smaller default page for the notification inbox."""

    page_size = NOTIFICATION_PAGE_SIZE
