"""Asyncio streaming connector for S3-compatible object storage."""

from s3connect.infra.storage import (
    AccessDeniedError,
    CompletedPart,
    CompleteMultipartUploadResult,
    EmptyUploadError,
    InvalidRequestError,
    MultipartStateError,
    ObjectHead,
    ObjectNotFoundError,
    PendingUpload,
    PutObjectResult,
    ServiceInternalError,
    StorageClient,
    StorageError,
    StorageTransportError,
)
from s3connect.services import MultipartUploadConsumer, S3

__all__ = [
    "S3",
    "MultipartUploadConsumer",
    "AccessDeniedError",
    "CompletedPart",
    "CompleteMultipartUploadResult",
    "EmptyUploadError",
    "InvalidRequestError",
    "MultipartStateError",
    "ObjectHead",
    "ObjectNotFoundError",
    "PendingUpload",
    "PutObjectResult",
    "ServiceInternalError",
    "StorageClient",
    "StorageError",
    "StorageTransportError",
]
