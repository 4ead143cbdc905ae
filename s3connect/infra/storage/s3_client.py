"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3connect.infra.storage.client import (
    AccessDeniedError,
    CompletedPart,
    CompleteMultipartUploadResult,
    InvalidRequestError,
    MultipartUpload,
    ObjectHead,
    ObjectNotFoundError,
    PendingUpload,
    PutObjectResult,
    ServiceInternalError,
    StorageError,
    StorageTransportError,
)

if TYPE_CHECKING:
    from s3connect.common.config import Settings

NOT_FOUND_CODES = frozenset(
    {"NoSuchKey", "NoSuchBucket", "NoSuchUpload", "NotFound", "404"}
)
ACCESS_DENIED_CODES = frozenset(
    {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "403"}
)
BUCKET_EXISTS_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code") or "")


def _status_code(exc: ClientError) -> int:
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return int(status) if status is not None else 0


def translate_error(exc: Exception, message: str) -> StorageError:
    """Map an SDK exception onto the storage error taxonomy."""
    text = f"{message}: {exc}"
    if isinstance(exc, ClientError):
        code = _error_code(exc)
        status = _status_code(exc)
        if code in NOT_FOUND_CODES or status == 404:
            return ObjectNotFoundError(text, code=code)
        if code in ACCESS_DENIED_CODES or status in (401, 403):
            return AccessDeniedError(text, code=code)
        if status >= 500:
            return ServiceInternalError(text, code=code)
        if 400 <= status < 500:
            return InvalidRequestError(text, code=code)
        return StorageError(text, code=code or None)
    if isinstance(exc, BotoCoreError):
        return StorageTransportError(text)
    return StorageError(text)


def _strip_etag(etag: Any) -> str | None:
    return str(etag).strip('"') if etag else None


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Settings containing S3 configuration.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        config = Config(
            s3={"addressing_style": settings.S3_ADDRESSING_STYLE},
            connect_timeout=settings.S3_CONNECT_TIMEOUT,
            read_timeout=settings.S3_READ_TIMEOUT,
        )

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        content_length: int,
        content_type: str | None = None,
    ) -> PutObjectResult:
        """Upload a fully buffered object in a single request."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": object_key,
            "Body": body,
            "ContentLength": int(content_length),
        }
        if content_type:
            params["ContentType"] = content_type

        try:
            response = self._client.put_object(**params)
        except Exception as exc:
            raise translate_error(exc, "Failed to put object") from exc

        return PutObjectResult(
            etag=_strip_etag(response.get("ETag")),
            version_id=response.get("VersionId"),
        )

    def get_object(self, *, bucket: str, object_key: str) -> bytes:
        """Download an object fully into memory."""
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except Exception as exc:
            raise translate_error(exc, "Failed to get object") from exc

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if content_type:
            params["ContentType"] = content_type

        try:
            response = self._client.create_multipart_upload(**params)
        except Exception as exc:
            raise translate_error(exc, "Failed to create multipart upload") from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=bucket,
            object_key=object_key,
        )

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> CompletedPart:
        """Upload one part of a multipart upload."""
        try:
            response = self._client.upload_part(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                Body=body,
                ContentLength=len(body),
            )
        except Exception as exc:
            raise translate_error(exc, f"Failed to upload part {part_number}") from exc

        etag = response.get("ETag")
        if not etag:
            raise StorageError(f"S3 response missing ETag for part {part_number}")

        # The ETag goes back to the service verbatim, quotes included.
        return CompletedPart(part_number=int(part_number), etag=str(etag))

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompleteMultipartUploadResult:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(parts, key=lambda p: p.part_number)
            ]
        }

        try:
            response = self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            raise translate_error(exc, "Failed to complete multipart upload") from exc

        return CompleteMultipartUploadResult(
            bucket=response.get("Bucket") or bucket,
            object_key=response.get("Key") or object_key,
            etag=_strip_etag(response.get("ETag")),
            location=response.get("Location"),
            version_id=response.get("VersionId"),
            parts_count=len(multipart_payload["Parts"]),
        )

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        try:
            self._client.abort_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
            )
        except Exception as exc:
            raise translate_error(exc, "Failed to abort multipart upload") from exc

    def list_multipart_uploads(
        self, *, bucket: str, prefix: str | None = None
    ) -> list[PendingUpload]:
        """List multipart uploads still open in a bucket."""
        params: dict[str, Any] = {"Bucket": bucket}
        if prefix:
            params["Prefix"] = prefix

        pending: list[PendingUpload] = []
        try:
            while True:
                response = self._client.list_multipart_uploads(**params)
                for upload in response.get("Uploads") or []:
                    pending.append(
                        PendingUpload(
                            upload_id=str(upload.get("UploadId")),
                            object_key=str(upload.get("Key")),
                            initiated_at=upload.get("Initiated"),
                        )
                    )
                if not response.get("IsTruncated"):
                    break
                params["KeyMarker"] = response.get("NextKeyMarker")
                params["UploadIdMarker"] = response.get("NextUploadIdMarker")
        except Exception as exc:
            raise translate_error(exc, "Failed to list multipart uploads") from exc

        return pending

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise translate_error(exc, "Failed to get object metadata") from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=_strip_etag(response.get("ETag")),
            content_type=response.get("ContentType"),
        )

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise translate_error(exc, "Failed to delete object") from exc

    def ensure_bucket(self, bucket: str) -> None:
        """Create a bucket unless it already exists.

        Only meant for test and sandbox setup; production buckets are
        provisioned outside this library.
        """
        params: dict[str, Any] = {"Bucket": bucket}
        region = self._settings.S3_REGION
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self._client.create_bucket(**params)
        except ClientError as exc:
            if _error_code(exc) in BUCKET_EXISTS_CODES:
                return
            raise translate_error(exc, "Failed to create bucket") from exc
        except Exception as exc:
            raise translate_error(exc, "Failed to create bucket") from exc
