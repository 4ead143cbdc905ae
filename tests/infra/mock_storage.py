"""In-memory storage client for testing the async adapter."""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from s3connect.infra.storage.client import (
    CompletedPart,
    CompleteMultipartUploadResult,
    InvalidRequestError,
    MultipartUpload,
    ObjectHead,
    ObjectNotFoundError,
    PendingUpload,
    PutObjectResult,
)


def _etag(body: bytes) -> str:
    return f'"{hashlib.md5(body).hexdigest()}"'


@dataclass
class MockStorageClient:
    """In-memory mock of StorageClient with failure injection.

    ``failures`` maps an operation name to the exception it raises;
    ``fail_part_number`` makes only that part upload fail. ``delays`` holds an
    operation back for that many seconds after its work is done, which lets a
    test cancel the caller while the request is still in flight. ``events``
    records when each request starts and finishes.
    """

    objects: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)
    uploads: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)
    fail_part_number: int | None = None
    delays: dict[str, float] = field(default_factory=dict)
    events: list[str] = field(default_factory=list)
    _upload_counter: int = field(default=0)

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        self.events.append(f"{operation}:start")
        exc = self.failures.get(operation)
        if exc is not None:
            raise exc

    def _respond(self, operation: str) -> None:
        delay = self.delays.get(operation)
        if delay:
            time.sleep(delay)
        self.events.append(f"{operation}:done")

    def _open_upload(self, upload_id: str) -> dict[str, Any]:
        upload = self.uploads.get(upload_id)
        if upload is None or upload["status"] != "open":
            raise ObjectNotFoundError(
                f"Upload {upload_id} not found", code="NoSuchUpload"
            )
        return upload

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        content_length: int,
        content_type: str | None = None,
    ) -> PutObjectResult:
        self._record("put_object")
        if content_length != len(body):
            raise InvalidRequestError(
                "Content-Length does not match body", code="IncompleteBody"
            )
        self.objects[(bucket, object_key)] = {
            "body": bytes(body),
            "content_type": content_type,
            "etag": _etag(body),
        }
        return PutObjectResult(etag=_etag(body).strip('"'))

    def get_object(self, *, bucket: str, object_key: str) -> bytes:
        self._record("get_object")
        obj = self.objects.get((bucket, object_key))
        if obj is None:
            raise ObjectNotFoundError(
                f"{bucket}/{object_key} does not exist", code="NoSuchKey"
            )
        return obj["body"]

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        self._record("init_multipart_upload")
        self._upload_counter += 1
        upload_id = f"mock-upload-{self._upload_counter}"
        self.uploads[upload_id] = {
            "bucket": bucket,
            "object_key": object_key,
            "content_type": content_type,
            "parts": {},
            "status": "open",
            "initiated_at": datetime.now(timezone.utc),
        }
        self._respond("init_multipart_upload")
        return MultipartUpload(
            upload_id=upload_id, bucket=bucket, object_key=object_key
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
        self._record("upload_part")
        upload = self._open_upload(upload_id)
        if part_number == self.fail_part_number:
            raise InvalidRequestError(f"injected failure on part {part_number}")
        upload["parts"][part_number] = (bytes(body), _etag(body))
        self._respond("upload_part")
        return CompletedPart(part_number=part_number, etag=_etag(body))

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompleteMultipartUploadResult:
        self._record("complete_multipart_upload")
        upload = self._open_upload(upload_id)
        numbers = [p.part_number for p in parts]
        if numbers != sorted(set(numbers)):
            raise InvalidRequestError("Parts must be ascending", code="InvalidPartOrder")
        chunks = []
        for part in parts:
            stored = upload["parts"].get(part.part_number)
            if stored is None or stored[1] != part.etag:
                raise InvalidRequestError("Unknown part", code="InvalidPart")
            chunks.append(stored[0])

        body = b"".join(chunks)
        upload["status"] = "completed"
        etag = f"mock-etag-{upload_id}"
        self.objects[(bucket, object_key)] = {
            "body": body,
            "content_type": upload["content_type"],
            "etag": etag,
        }
        self._respond("complete_multipart_upload")
        return CompleteMultipartUploadResult(
            bucket=bucket,
            object_key=object_key,
            etag=etag,
            location=f"https://mock-s3/{bucket}/{object_key}",
            parts_count=len(parts),
        )

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        self._record("abort_multipart_upload")
        upload = self._open_upload(upload_id)
        upload["status"] = "aborted"
        upload["parts"].clear()
        self._respond("abort_multipart_upload")

    def list_multipart_uploads(
        self, *, bucket: str, prefix: str | None = None
    ) -> list[PendingUpload]:
        self._record("list_multipart_uploads")
        return [
            PendingUpload(
                upload_id=upload_id,
                object_key=upload["object_key"],
                initiated_at=upload["initiated_at"],
            )
            for upload_id, upload in self.uploads.items()
            if upload["status"] == "open"
            and upload["bucket"] == bucket
            and upload["object_key"].startswith(prefix or "")
        ]

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        self._record("head_object")
        obj = self.objects.get((bucket, object_key))
        if obj is None:
            raise ObjectNotFoundError(
                f"{bucket}/{object_key} does not exist", code="404"
            )
        return ObjectHead(
            size_bytes=len(obj["body"]),
            etag=obj["etag"].strip('"'),
            content_type=obj["content_type"],
        )

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        self._record("delete_object")
        self.objects.pop((bucket, object_key), None)

    def ensure_bucket(self, bucket: str) -> None:
        self._record("ensure_bucket")

    def status_of(self, upload_id: str) -> str:
        """Test helper returning open/completed/aborted for an upload."""
        return self.uploads[upload_id]["status"]
