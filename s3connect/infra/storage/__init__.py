"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    MAX_PART_NUMBER,
    MIN_PART_SIZE_BYTES,
    AccessDeniedError,
    CompletedPart,
    CompleteMultipartUploadResult,
    EmptyUploadError,
    InvalidRequestError,
    MultipartStateError,
    MultipartUpload,
    ObjectHead,
    ObjectNotFoundError,
    PendingUpload,
    PutObjectResult,
    ServiceInternalError,
    StorageClient,
    StorageError,
    StorageTransportError,
)

__all__ = [
    "MAX_PART_NUMBER",
    "MIN_PART_SIZE_BYTES",
    "AccessDeniedError",
    "CompletedPart",
    "CompleteMultipartUploadResult",
    "EmptyUploadError",
    "InvalidRequestError",
    "MultipartStateError",
    "MultipartUpload",
    "ObjectHead",
    "ObjectNotFoundError",
    "PendingUpload",
    "PutObjectResult",
    "ServiceInternalError",
    "StorageClient",
    "StorageError",
    "StorageTransportError",
]
