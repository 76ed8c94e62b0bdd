"""
Attachments app views.

Upload and listing are nested under the case
(``/api/cases/{id}/attachments/``, see ``cases.views``).  This ViewSet
serves the single-file endpoints.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import AttachmentDownloadSerializer, AttachmentSerializer
from .services import AttachmentService


class AttachmentViewSet(viewsets.ViewSet):
    """
    /api/attachments/{id}/

    Visibility follows the parent case; deletion is limited to the
    uploader and administrators.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="Attachment info",
        responses={
            200: AttachmentSerializer,
            403: OpenApiResponse(description="Parent case is outside the caller's scope."),
            404: OpenApiResponse(description="Attachment not found."),
        },
        tags=["Attachments"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        attachment = AttachmentService.get_attachment(request.user, int(pk))
        return Response(AttachmentSerializer(attachment).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete attachment",
        responses={
            204: OpenApiResponse(description="Deleted."),
            403: OpenApiResponse(description="Only the uploader or an administrator may delete."),
            404: OpenApiResponse(description="Attachment not found."),
        },
        tags=["Attachments"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        AttachmentService.delete(request.user, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Download URL",
        description="Returns a URL for the file. With object storage it is presigned and valid for one hour.",
        responses={200: AttachmentDownloadSerializer},
        tags=["Attachments"],
    )
    @action(detail=True, methods=["get"], url_path="download")
    def download(self, request: Request, pk: str = None) -> Response:
        payload = AttachmentService.download_url(request.user, int(pk))
        payload["url"] = request.build_absolute_uri(payload["url"])
        return Response(payload, status=status.HTTP_200_OK)
