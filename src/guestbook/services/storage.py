"""Attachment storage backed by an S3-compatible bucket."""

from __future__ import annotations

import logging
import mimetypes
import threading
import time
from collections.abc import Callable
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from guestbook.core.settings import Settings
from guestbook.schemas.message import Attachment
from guestbook.services.errors import GuestbookError, ValidationFailure
from guestbook.utils.files import format_file_size, is_allowed_size, is_allowed_type

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


class StorageError(GuestbookError):
    """Raised when the object store rejects or cannot complete a request."""


class StorageDisabledError(StorageError):
    """Raised when storage is used without credentials configured."""


class _ProgressTracker:
    """Turns boto3's byte-count callbacks into a completion fraction."""

    def __init__(self, total: int, on_progress: ProgressCallback) -> None:
        self._total = total
        self._seen = 0
        self._on_progress = on_progress
        self._lock = threading.Lock()

    def __call__(self, bytes_amount: int) -> None:
        # boto3 may call this from its transfer threads.
        with self._lock:
            self._seen += bytes_amount
            fraction = 1.0 if self._total <= 0 else min(1.0, self._seen / self._total)
        self._on_progress(fraction)


def safe_filename(filename: str) -> str:
    """Strip characters that are awkward in object keys and URLs."""
    cleaned = "".join(c for c in filename if c.isalnum() or c in "._-")
    return cleaned or "file"


class AttachmentStorage:
    """Uploads, locates and deletes message attachments."""

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        """Create the storage service.

        Args:
            settings: Application settings carrying bucket and credentials.
            client: Optional pre-built S3 client, mainly for tests.

        Raises:
            StorageDisabledError: If no client is given and credentials are missing.
        """
        self.settings = settings
        self.bucket = settings.storage_bucket
        if client is None:
            if not settings.file_storage_enabled:
                raise StorageDisabledError("File storage is not configured")
            client = boto3.client(
                "s3",
                endpoint_url=settings.storage_endpoint,
                aws_access_key_id=settings.storage_access_key,
                aws_secret_access_key=settings.storage_secret_key,
                region_name=settings.storage_region,
            )
        self.client = client

    def validate(self, filename: str, content_type: str | None, size: int) -> None:
        """Reject files whose type or size the guestbook does not accept."""
        if not is_allowed_type(content_type, self.settings.supported_file_types):
            raise ValidationFailure(f"File type not allowed: {content_type or filename}")
        if not is_allowed_size(size, self.settings.max_file_size):
            limit = format_file_size(self.settings.max_file_size)
            raise ValidationFailure(f"File size exceeds maximum allowed ({limit})")

    def generate_key(self, filename: str) -> str:
        """Return a unique object key: ``<epoch millis>_<safe filename>``."""
        return f"{int(time.time() * 1000)}_{safe_filename(filename)}"

    def upload(
        self,
        file: BinaryIO,
        filename: str,
        content_type: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Attachment:
        """Upload a file and return the attachment metadata for a message.

        Args:
            file: Seekable file-like object.
            filename: Original file name shown to readers.
            content_type: MIME type; guessed from the name when omitted.
            on_progress: Called with the completed fraction in ``[0, 1]``.

        Raises:
            ValidationFailure: If the file type or size is not allowed.
            StorageError: If the upload fails.
        """
        if not content_type:
            content_type, _ = mimetypes.guess_type(filename)

        file.seek(0, 2)
        size = file.tell()
        file.seek(0)

        self.validate(filename, content_type, size)
        key = self.generate_key(filename)

        extra: dict[str, Any] = {
            "ExtraArgs": {
                "ContentType": content_type,
                "ACL": "public-read",
                "CacheControl": self.settings.storage_cache_control,
            }
        }
        if on_progress is not None:
            extra["Callback"] = _ProgressTracker(size, on_progress)

        try:
            self.client.upload_fileobj(file, self.bucket, key, **extra)
        except NoCredentialsError as err:
            raise StorageError("Storage credentials not configured") from err
        except (ClientError, BotoCoreError) as err:
            logger.error("Upload of %s failed: %s", filename, err)
            raise StorageError(f"Failed to upload file: {err}") from err

        if on_progress is not None and size == 0:
            on_progress(1.0)

        logger.info("Stored attachment %s (%s)", key, format_file_size(size))
        return Attachment(
            name=filename,
            url=self.public_url(key),
            size=size,
            type=content_type or "application/octet-stream",
            path=key,
        )

    def delete(self, key: str) -> bool:
        """Delete an object; return False if the store refused."""
        try:
            self.client.delete_objects(
                Bucket=self.bucket, Delete={"Objects": [{"Key": key}], "Quiet": True}
            )
        except (ClientError, BotoCoreError) as err:
            logger.warning("Could not delete attachment %s: %s", key, err)
            return False
        return True

    def public_url(self, key: str) -> str:
        """Return the durable public URL for an object key."""
        if self.settings.storage_public_url:
            return f"{self.settings.storage_public_url.rstrip('/')}/{key}"
        if self.settings.storage_endpoint:
            return f"{self.settings.storage_endpoint.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.settings.storage_region}.amazonaws.com/{key}"

    def ensure_bucket(self) -> bool:
        """Create the bucket as publicly readable if it does not exist.

        Returns:
            True if the bucket was created, False if it already existed or
            could not be created.
        """
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return False
        except ClientError as err:
            code = str(err.response.get("Error", {}).get("Code", ""))
            if code not in _MISSING_BUCKET_CODES:
                logger.warning("Could not inspect bucket %s: %s", self.bucket, err)
                return False

        try:
            self.client.create_bucket(Bucket=self.bucket, ACL="public-read")
        except (ClientError, BotoCoreError) as err:
            logger.warning("Creating bucket %s failed, check permissions: %s", self.bucket, err)
            return False
        logger.info("Created storage bucket %s", self.bucket)
        return True
