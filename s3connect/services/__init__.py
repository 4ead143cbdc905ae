from .base import BaseStorageService
from .multipart import MultipartUploadConsumer
from .s3 import S3

__all__ = [
    "BaseStorageService",
    "MultipartUploadConsumer",
    "S3",
]
