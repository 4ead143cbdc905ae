"""Multipart upload sink.

``MultipartUploadConsumer`` owns one multipart session for its whole life:
it initiates the session lazily, uploads parts strictly in the order chunks
are pushed, completes the upload on ``close()`` and aborts it on any failure
so that no upload id is ever left open on the service.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType

from s3connect.common.config import Settings
from s3connect.infra.storage.client import (
    MAX_PART_NUMBER,
    CompletedPart,
    CompleteMultipartUploadResult,
    EmptyUploadError,
    InvalidRequestError,
    MultipartStateError,
    MultipartUpload,
    StorageClient,
)
from s3connect.services.base import BaseStorageService, CancelledWithResponse

logger = logging.getLogger("storage")


class MultipartUploadConsumer(BaseStorageService):
    """Push-based sink turning a sequence of chunks into one stored object.

    Chunks are buffered until at least ``min_part_size`` bytes are available,
    then sent as the next part. With ``min_part_size=0`` every non-empty chunk
    becomes exactly one part. Empty chunks are ignored.

    Usage::

        async with s3.multipart_upload_consumer("bucket", "key") as sink:
            async for chunk in source:
                await sink.send(chunk)
        print(sink.result.etag)
    """

    def __init__(
        self,
        storage: StorageClient,
        settings: Settings,
        *,
        bucket: str,
        key: str,
        content_type: str | None = None,
        min_part_size: int | None = None,
    ) -> None:
        super().__init__(storage, settings)
        self._ensure_location(bucket, key)
        if min_part_size is None:
            min_part_size = settings.S3_MIN_PART_SIZE_BYTES
        if min_part_size < 0:
            raise ValueError("min_part_size must not be negative")
        self.bucket = bucket
        self.key = key
        self.content_type = content_type
        self._min_part_size = int(min_part_size)
        self._upload: MultipartUpload | None = None
        self._parts: list[CompletedPart] = []
        self._buffer = bytearray()
        self._lock = asyncio.Lock()
        self._finished = False
        self._result: CompleteMultipartUploadResult | None = None

    @property
    def upload_id(self) -> str | None:
        return self._upload.upload_id if self._upload else None

    @property
    def parts(self) -> tuple[CompletedPart, ...]:
        return tuple(self._parts)

    @property
    def closed(self) -> bool:
        return self._finished

    @property
    def result(self) -> CompleteMultipartUploadResult:
        if self._result is None:
            raise MultipartStateError(
                f"multipart upload of {self.bucket}/{self.key} has not completed"
            )
        return self._result

    async def send(self, chunk: bytes) -> None:
        """Accept the next chunk, uploading a part once enough data is buffered."""
        async with self._lock:
            self._ensure_open()
            if not chunk:
                return
            self._buffer.extend(chunk)
            if len(self._buffer) >= self._min_part_size:
                await self._flush()

    async def close(self) -> CompleteMultipartUploadResult:
        """Signal end of input and finalize the upload.

        Raises:
            EmptyUploadError: No data was sent; nothing was initiated.
            StorageError: Uploading the last part or completing failed. The
                session has been aborted before the error is raised.
            asyncio.CancelledError: Raised once the in-flight request settles.
                If completion had already succeeded, ``result`` holds it and
                nothing is aborted; otherwise the session is aborted first.
        """
        async with self._lock:
            self._ensure_open()
            try:
                if self._buffer:
                    await self._flush()
                if self._upload is None:
                    raise EmptyUploadError(
                        f"refusing to upload {self.bucket}/{self.key} with no data"
                    )
                try:
                    result = await self._call(
                        "complete_multipart_upload",
                        self._storage.complete_multipart_upload,
                        bucket=self.bucket,
                        object_key=self.key,
                        upload_id=self._upload.upload_id,
                        parts=list(self._parts),
                    )
                except CancelledWithResponse as cancelled:
                    # The object is committed; there is nothing left to abort.
                    self._mark_completed(cancelled.response)
                    raise
            except BaseException:
                await self._abort_session()
                raise

            self._mark_completed(result)
            return result

    def _mark_completed(self, result: CompleteMultipartUploadResult) -> None:
        logger.info(
            "multipart_upload_completed bucket=%s key=%s upload_id=%s parts=%s",
            self.bucket,
            self.key,
            self.upload_id,
            len(self._parts),
        )
        self._finished = True
        self._upload = None
        self._result = result

    async def abort(self) -> None:
        """Discard the upload and release the session on the service.

        Safe to call more than once and after a failed ``send``/``close``.
        """
        async with self._lock:
            await self._abort_session()

    async def __aenter__(self) -> "MultipartUploadConsumer":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.abort()
        elif not self._finished:
            await self.close()

    def _ensure_open(self) -> None:
        if self._finished:
            raise MultipartStateError(
                f"multipart upload of {self.bucket}/{self.key} is already closed"
            )

    async def _flush(self) -> None:
        try:
            if self._upload is None:
                try:
                    self._upload = await self._call(
                        "create_multipart_upload",
                        self._storage.init_multipart_upload,
                        bucket=self.bucket,
                        object_key=self.key,
                        content_type=self.content_type,
                    )
                except CancelledWithResponse as cancelled:
                    # Keep the upload id so the abort below releases it.
                    self._upload = cancelled.response
                    raise
                logger.info(
                    "multipart_upload_initiated bucket=%s key=%s upload_id=%s",
                    self.bucket,
                    self.key,
                    self._upload.upload_id,
                )

            part_number = len(self._parts) + 1
            if part_number > MAX_PART_NUMBER:
                raise InvalidRequestError(
                    f"multipart upload exceeds {MAX_PART_NUMBER} parts"
                )
            body = bytes(self._buffer)
            self._buffer.clear()
            part = await self._call(
                "upload_part",
                self._storage.upload_part,
                bucket=self.bucket,
                object_key=self.key,
                upload_id=self._upload.upload_id,
                part_number=part_number,
                body=body,
            )
        except BaseException:
            await self._abort_session()
            raise

        self._parts.append(part)
        logger.debug(
            "multipart_part_uploaded upload_id=%s part_number=%s size=%s",
            self._upload.upload_id,
            part.part_number,
            len(body),
        )

    async def _abort_session(self) -> None:
        self._finished = True
        self._buffer.clear()
        upload, self._upload = self._upload, None
        if upload is None:
            return
        try:
            await self._call(
                "abort_multipart_upload",
                self._storage.abort_multipart_upload,
                bucket=upload.bucket,
                object_key=upload.object_key,
                upload_id=upload.upload_id,
            )
        except Exception:
            # Abort failures never replace the error being propagated.
            logger.exception(
                "multipart_abort_failed bucket=%s key=%s upload_id=%s",
                upload.bucket,
                upload.object_key,
                upload.upload_id,
            )
            return
        logger.info(
            "multipart_upload_aborted bucket=%s key=%s upload_id=%s parts=%s",
            upload.bucket,
            upload.object_key,
            upload.upload_id,
            len(self._parts),
        )
