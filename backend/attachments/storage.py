"""
Attachment storage backends.

``select_attachment_storage`` is the callable handed to
``Attachment.file``.  It returns Django's default (filesystem) storage
or ``S3Storage`` depending on ``CASEDESK_STORAGE_BACKEND``.

``S3Storage`` talks to any S3-compatible object store (MinIO locally,
AWS S3 in production) through a ``boto3`` client configured for
SigV4 and path-style addressing.
"""

from __future__ import annotations

import logging
from io import BytesIO

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from django.conf import settings
from django.core.files.base import File
from django.core.files.storage import Storage, default_storage
from django.utils.deconstruct import deconstructible
from django.utils.functional import cached_property

from core.constants import DOWNLOAD_URL_EXPIRY_SECONDS

logger = logging.getLogger(__name__)


@deconstructible
class S3Storage(Storage):
    """
    Minimal Django ``Storage`` on top of an S3 bucket.

    Object keys are the names generated by ``upload_to``; names are
    unique so no collision handling is needed.  ``url`` returns a
    presigned GET URL.
    """

    def __init__(
        self,
        bucket: str | None = None,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
    ):
        self.bucket = bucket or settings.S3_BUCKET
        self.endpoint_url = endpoint_url or settings.S3_ENDPOINT_URL
        self.access_key = access_key or settings.S3_ACCESS_KEY
        self.secret_key = secret_key or settings.S3_SECRET_KEY
        self.region = region or settings.S3_REGION
        self._bucket_checked = False

    @cached_property
    def client(self):
        return boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            region_name=self.region,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
            ),
        )

    def ensure_bucket(self) -> None:
        """Create the bucket on first use if it does not exist yet."""
        if self._bucket_checked:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if e.response["Error"]["Code"] not in ("404", "NoSuchBucket"):
                raise
            self.client.create_bucket(Bucket=self.bucket)
            logger.info("Created bucket %s", self.bucket)
        self._bucket_checked = True

    def _open(self, name: str, mode: str = "rb") -> File:
        buffer = BytesIO()
        self.client.download_fileobj(self.bucket, name, buffer)
        buffer.seek(0)
        return File(buffer, name=name)

    def _save(self, name: str, content) -> str:
        self.ensure_bucket()
        if hasattr(content, "seek"):
            content.seek(0)

        extra_args = {}
        content_type = getattr(content, "content_type", None)
        if content_type:
            extra_args["ContentType"] = content_type

        self.client.upload_fileobj(content, self.bucket, name, ExtraArgs=extra_args)
        return name

    def delete(self, name: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=name)

    def exists(self, name: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=name)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NoSuchBucket"):
                return False
            raise

    def size(self, name: str) -> int:
        response = self.client.head_object(Bucket=self.bucket, Key=name)
        return response["ContentLength"]

    def url(self, name: str, expire: int = DOWNLOAD_URL_EXPIRY_SECONDS) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": name},
            ExpiresIn=expire,
        )


def uses_object_storage() -> bool:
    return settings.CASEDESK_STORAGE_BACKEND == "s3"


def select_attachment_storage() -> Storage:
    if uses_object_storage():
        return S3Storage()
    return default_storage
