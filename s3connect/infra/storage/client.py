"""Storage client protocol and data types.

This module defines the interface the async adapter drives, the result
types it hands back to callers, and the error taxonomy every backend
translates its failures into. Vendor SDK classes never cross this boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

# Maximum part number allowed by S3
MAX_PART_NUMBER = 10000
# Minimum size of every part but the last, as enforced by S3
MIN_PART_SIZE_BYTES = 5 * 1024 * 1024


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ObjectNotFoundError(StorageError):
    """The bucket, key or multipart upload does not exist."""


class AccessDeniedError(StorageError):
    """Credentials were rejected or lack permission."""


class InvalidRequestError(StorageError):
    """The request was malformed or violates a service constraint."""


class EmptyUploadError(InvalidRequestError):
    """A multipart upload was closed without receiving any data."""


class MultipartStateError(StorageError):
    """A multipart sink was used after it was closed or aborted."""


class ServiceInternalError(StorageError):
    """The storage service failed on its side (5xx)."""


class StorageTransportError(StorageError):
    """The service could not be reached or the connection failed."""


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class PutObjectResult:
    """Acknowledgment of a single-shot upload."""

    etag: str | None
    version_id: str | None = None


@dataclass(frozen=True, slots=True)
class CompleteMultipartUploadResult:
    """Acknowledgment of a finalized multipart upload."""

    bucket: str
    object_key: str
    etag: str | None
    location: str | None = None
    version_id: str | None = None
    parts_count: int = 0


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None


@dataclass(frozen=True, slots=True)
class PendingUpload:
    """A multipart upload that was initiated but neither completed nor aborted."""

    upload_id: str
    object_key: str
    initiated_at: datetime | None = None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Methods are synchronous and blocking; the async adapter runs them on the
    event loop's default executor. Implementations raise ``StorageError``
    subclasses only.
    """

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        content_length: int,
        content_type: str | None = None,
    ) -> PutObjectResult:
        """Upload a fully buffered object in a single request.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            body: Object content.
            content_length: Value sent as Content-Length.
            content_type: MIME type; the service default applies when omitted.

        Returns:
            PutObjectResult with the object's ETag.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def get_object(self, *, bucket: str, object_key: str) -> bytes:
        """Download an object fully into memory.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            StorageError: If the operation fails.
        """
        ...

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session.

        Returns:
            MultipartUpload containing the upload_id for subsequent operations.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        """Upload one part of a multipart upload.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            upload_id: Multipart upload ID from init_multipart_upload.
            part_number: Part number (1-based, max 10000).
            body: Part content.

        Returns:
            CompletedPart carrying the part's ETag.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompleteMultipartUploadResult:
        """Complete a multipart upload by combining all parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def list_multipart_uploads(
        self, *, bucket: str, prefix: str | None = None
    ) -> list[PendingUpload]:
        """List multipart uploads still open in a bucket."""
        ...

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content.

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
            StorageError: If the operation fails.
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        ...

    def ensure_bucket(self, bucket: str) -> None:
        """Create a bucket unless it already exists."""
        ...
