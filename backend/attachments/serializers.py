"""
Attachments app serializers.

Request validation here is structural (presence and count of files);
size and MIME checks happen in ``services.validate_upload``.
"""

from __future__ import annotations

from django.urls import reverse
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from core.constants import MAX_FILES_PER_UPLOAD

from .models import Attachment


class AttachmentSerializer(serializers.ModelSerializer):
    """Metadata of a stored file.  The binary is fetched via ``download_url``."""

    uploaded_by = UserSummarySerializer(read_only=True)
    download_url = serializers.SerializerMethodField()

    class Meta:
        model = Attachment
        fields = [
            "id",
            "case",
            "uploaded_by",
            "original_name",
            "content_type",
            "size",
            "download_url",
            "created_at",
        ]
        read_only_fields = fields

    def get_download_url(self, obj: Attachment) -> str:
        return reverse("attachments:attachment-download", kwargs={"pk": obj.pk})


class AttachmentUploadSerializer(serializers.Serializer):
    files = serializers.ListField(
        child=serializers.FileField(),
        allow_empty=False,
        max_length=MAX_FILES_PER_UPLOAD,
        help_text=f"One to {MAX_FILES_PER_UPLOAD} files, 10 MB each.",
    )


class AttachmentDownloadSerializer(serializers.Serializer):
    url = serializers.CharField()
    expires_in = serializers.IntegerField(allow_null=True)
    filename = serializers.CharField()
