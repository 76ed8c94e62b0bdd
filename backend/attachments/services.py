"""
Attachments Service Layer.

All file validation, access checks and storage side effects for case
attachments.  Access follows case visibility: whoever can see a case
can list, inspect and download its files.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import Any

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.db.models import QuerySet

from accounts.models import UserRole
from cases.models import Case, CaseLogAction, CaseStatus
from cases.services import CaseLogService, CaseQueryService
from core.constants import (
    ALLOWED_ATTACHMENT_TYPES,
    DOWNLOAD_URL_EXPIRY_SECONDS,
    MAX_ATTACHMENT_SIZE,
    MAX_FILES_PER_UPLOAD,
)
from core.domain.access import get_user_role
from core.domain.exceptions import Conflict, DomainError, NotFound, PermissionDenied

from .models import Attachment
from .storage import uses_object_storage

User = get_user_model()
logger = logging.getLogger(__name__)


def resolve_content_type(upload: UploadedFile) -> str:
    """Client-declared MIME type, falling back to a guess from the name."""
    content_type = (getattr(upload, "content_type", "") or "").split(";")[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(upload.name)
        content_type = guessed or content_type
    return content_type


def validate_upload(upload: UploadedFile) -> str:
    """
    Check size and type of one uploaded file.

    Returns
    -------
    str
        The resolved MIME type.

    Raises
    ------
    DomainError
        The file is empty, larger than ``MAX_ATTACHMENT_SIZE`` or of a
        type outside ``ALLOWED_ATTACHMENT_TYPES``.
    """
    if upload.size == 0:
        raise DomainError(f"'{upload.name}' is empty.")
    if upload.size > MAX_ATTACHMENT_SIZE:
        raise DomainError(
            f"'{upload.name}' exceeds the {MAX_ATTACHMENT_SIZE // (1024 * 1024)} MB limit."
        )
    content_type = resolve_content_type(upload)
    if content_type not in ALLOWED_ATTACHMENT_TYPES:
        raise DomainError(f"'{upload.name}' has an unsupported file type ({content_type or 'unknown'}).")
    return content_type


class AttachmentService:
    """Upload, inspect, download and delete case attachments."""

    @staticmethod
    def list_for_case(user: User, case_id: int) -> QuerySet[Attachment]:
        case = CaseQueryService.get_case_detail(user, case_id)
        return case.attachments.select_related("uploaded_by")

    @staticmethod
    @transaction.atomic
    def upload(user: User, case_id: int, files: list[UploadedFile]) -> list[Attachment]:
        """
        Store one or more files against a case.

        Every file is validated before anything is written, so a single
        bad file rejects the whole batch.

        Raises
        ------
        DomainError
            No files, too many files, or a file fails validation.
        Conflict
            The case is closed.
        """
        case = CaseQueryService.get_case_detail(user, case_id)
        if case.status == CaseStatus.CLOSED:
            raise Conflict("Files cannot be attached to a closed case.")
        if not files:
            raise DomainError("No files were provided.")
        if len(files) > MAX_FILES_PER_UPLOAD:
            raise DomainError(f"At most {MAX_FILES_PER_UPLOAD} files can be uploaded at once.")

        content_types = [validate_upload(upload) for upload in files]

        created = []
        try:
            for upload, content_type in zip(files, content_types):
                attachment = Attachment(
                    case=case,
                    uploaded_by=user,
                    original_name=upload.name[:255],
                    content_type=content_type,
                    size=upload.size,
                )
                attachment.file.save(upload.name, upload, save=False)
                created.append(attachment)
                attachment.save()
        except Exception:
            # Objects already written to storage would be orphaned by the rollback.
            for attachment in created:
                if attachment.file.name:
                    attachment.file.storage.delete(attachment.file.name)
            raise

        CaseLogService.record(
            case, user, CaseLogAction.NOTE,
            "Attached: " + ", ".join(a.original_name for a in created),
        )
        logger.info(
            "%d file(s) attached to Case #%s by %s",
            len(created), case.pk, user.username,
        )
        return created

    @staticmethod
    def get_attachment(user: User, attachment_id: int) -> Attachment:
        """
        Raises
        ------
        NotFound
            No such attachment.
        PermissionDenied
            The parent case is outside the user's scope.
        """
        try:
            attachment = Attachment.objects.select_related(
                "case", "uploaded_by",
            ).get(pk=attachment_id)
        except Attachment.DoesNotExist:
            raise NotFound(f"Attachment with id {attachment_id} not found.")

        if not CaseQueryService.can_view(user, attachment.case):
            raise PermissionDenied("You do not have access to this attachment.")
        return attachment

    @staticmethod
    def download_url(user: User, attachment_id: int) -> dict[str, Any]:
        """
        A URL the client can fetch the file from.

        With object storage the URL is presigned and expires after
        ``DOWNLOAD_URL_EXPIRY_SECONDS``; with the filesystem backend it is
        the media URL and ``expires_in`` is ``None``.
        """
        attachment = AttachmentService.get_attachment(user, attachment_id)
        if uses_object_storage():
            return {
                "url": attachment.file.storage.url(attachment.file.name, expire=DOWNLOAD_URL_EXPIRY_SECONDS),
                "expires_in": DOWNLOAD_URL_EXPIRY_SECONDS,
                "filename": attachment.original_name,
            }
        return {
            "url": attachment.file.url,
            "expires_in": None,
            "filename": attachment.original_name,
        }

    @staticmethod
    @transaction.atomic
    def delete(user: User, attachment_id: int) -> None:
        """Delete the row and, once committed, the stored object.  Uploader or ADMIN only."""
        attachment = AttachmentService.get_attachment(user, attachment_id)
        if get_user_role(user) != UserRole.ADMIN and attachment.uploaded_by_id != user.pk:
            raise PermissionDenied("Only the uploader or an administrator can delete this file.")

        storage, name = attachment.file.storage, attachment.file.name
        case = attachment.case
        attachment.delete()
        transaction.on_commit(lambda: storage.delete(name))

        CaseLogService.record(case, user, CaseLogAction.NOTE, f"Removed attachment: {attachment.original_name}")
        logger.info("Attachment #%s deleted by %s", attachment_id, user.username)

    @staticmethod
    def purge_case_files(case: Case) -> None:
        """Schedule removal of every stored object of ``case`` after commit."""
        targets = [(a.file.storage, a.file.name) for a in case.attachments.all()]

        def _remove():
            for storage, name in targets:
                storage.delete(name)

        if targets:
            transaction.on_commit(_remove)
