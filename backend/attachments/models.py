"""
Attachments app models.

Files uploaded against a case.  The binary lives in the configured
storage backend; the row keeps the metadata the API reports.
"""

import os
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from .storage import select_attachment_storage


def case_file_path(instance, filename: str) -> str:
    """``case_files/YYYY/MM/{timestamp}_{uuid}{ext}``; the original name is kept on the row."""
    now = timezone.now()
    ext = os.path.splitext(filename)[1].lower()
    return f"case_files/{now:%Y/%m}/{now:%Y%m%dT%H%M%S}_{uuid.uuid4().hex}{ext}"


class Attachment(models.Model):
    case = models.ForeignKey(
        "cases.Case",
        on_delete=models.CASCADE,
        related_name="attachments",
        verbose_name="Case",
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="uploaded_attachments",
        verbose_name="Uploaded By",
    )
    file = models.FileField(
        upload_to=case_file_path,
        storage=select_attachment_storage,
        max_length=255,
        verbose_name="File",
    )
    original_name = models.CharField(max_length=255, verbose_name="Original Name")
    content_type = models.CharField(max_length=100, verbose_name="Content Type")
    size = models.PositiveBigIntegerField(verbose_name="Size (bytes)")
    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Attachment"
        verbose_name_plural = "Attachments"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.original_name} on Case #{self.case_id}"
