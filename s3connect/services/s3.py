"""Async object storage adapter.

This module provides the public entry point of the library: single-shot
puts and gets, and multipart uploads driven either by an iterable of chunks
or by a push-based sink.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterable, Iterable
from contextlib import aclosing, nullcontext

from s3connect.common.config import Settings, get_settings
from s3connect.infra.storage.client import (
    CompleteMultipartUploadResult,
    ObjectHead,
    ObjectNotFoundError,
    PendingUpload,
    PutObjectResult,
    StorageClient,
)
from s3connect.infra.storage.s3_client import S3StorageClient
from s3connect.services.base import BaseStorageService
from s3connect.services.multipart import MultipartUploadConsumer

logger = logging.getLogger("storage")

Chunks = Iterable[bytes] | AsyncIterable[bytes]


class S3(BaseStorageService):
    """Asyncio facade over an object storage client.

    Every request runs on the event loop's default executor, one at a time
    per operation. Errors are the ``StorageError`` taxonomy raised by the
    client; nothing is retried here.
    """

    def __init__(
        self,
        storage_client: StorageClient | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        super().__init__(
            storage_client or self._build_storage_client(settings), settings
        )

    @staticmethod
    def _build_storage_client(settings: Settings) -> StorageClient:
        return S3StorageClient(settings=settings)

    async def put_object(
        self,
        bucket: str,
        key: str,
        content: bytes | bytearray | memoryview,
        content_length: int | None = None,
        content_type: str | None = None,
    ) -> PutObjectResult:
        """Upload a fully buffered object.

        Args:
            bucket: Target bucket name.
            key: Object key.
            content: Object content.
            content_length: Defaults to the byte length of ``content``.
            content_type: MIME type; the service default applies when omitted.
        """
        self._ensure_location(bucket, key)
        body = bytes(content)
        length = len(body) if content_length is None else int(content_length)
        result = await self._call(
            "put_object",
            self._storage.put_object,
            bucket=bucket,
            object_key=key,
            body=body,
            content_length=length,
            content_type=content_type,
        )
        logger.info("object_put bucket=%s key=%s size=%s", bucket, key, length)
        return result

    async def get_object(self, bucket: str, key: str) -> bytes:
        """Download an object into memory.

        Raises:
            ObjectNotFoundError: If the key does not exist.
        """
        self._ensure_location(bucket, key)
        return await self._call(
            "get_object", self._storage.get_object, bucket=bucket, object_key=key
        )

    async def multipart_upload(
        self,
        bucket: str,
        key: str,
        chunks: Chunks,
        content_type: str | None = None,
        *,
        min_part_size: int | None = None,
    ) -> CompleteMultipartUploadResult:
        """Store the concatenation of ``chunks`` as one object.

        ``chunks`` may be a regular or an async iterable. If the source or any
        request fails, or the calling task is cancelled, the open session is
        aborted before the error propagates.

        Raises:
            EmptyUploadError: ``chunks`` produced no data.
        """
        async with self.multipart_upload_consumer(
            bucket, key, content_type=content_type, min_part_size=min_part_size
        ) as consumer:
            if isinstance(chunks, AsyncIterable):
                source = (
                    aclosing(chunks)
                    if isinstance(chunks, AsyncGenerator)
                    else nullcontext(chunks)
                )
                async with source as stream:
                    async for chunk in stream:
                        await consumer.send(chunk)
            else:
                for chunk in chunks:
                    await consumer.send(chunk)
        return consumer.result

    def multipart_upload_consumer(
        self,
        bucket: str,
        key: str,
        content_type: str | None = None,
        *,
        min_part_size: int | None = None,
    ) -> MultipartUploadConsumer:
        """Return a sink that uploads pushed chunks as one multipart upload."""
        return MultipartUploadConsumer(
            self._storage,
            self._settings,
            bucket=bucket,
            key=key,
            content_type=content_type,
            min_part_size=min_part_size,
        )

    async def head_object(self, bucket: str, key: str) -> ObjectHead:
        self._ensure_location(bucket, key)
        return await self._call(
            "head_object", self._storage.head_object, bucket=bucket, object_key=key
        )

    async def exists(self, bucket: str, key: str) -> bool:
        try:
            await self.head_object(bucket, key)
        except ObjectNotFoundError:
            return False
        return True

    async def delete_object(self, bucket: str, key: str) -> None:
        self._ensure_location(bucket, key)
        await self._call(
            "delete_object", self._storage.delete_object, bucket=bucket, object_key=key
        )
        logger.info("object_deleted bucket=%s key=%s", bucket, key)

    async def list_multipart_uploads(
        self, bucket: str, prefix: str | None = None
    ) -> list[PendingUpload]:
        """List multipart sessions still open in ``bucket``."""
        self._ensure_bucket_name(bucket)
        return await self._call(
            "list_multipart_uploads",
            self._storage.list_multipart_uploads,
            bucket=bucket,
            prefix=prefix,
        )
