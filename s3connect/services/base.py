from __future__ import annotations

import asyncio
import functools
import time
from typing import Any, Callable, TypeVar

from s3connect.common.config import Settings
from s3connect.infra.observability.metrics import observe_request
from s3connect.infra.storage.client import InvalidRequestError, StorageClient

T = TypeVar("T")


class CancelledWithResponse(asyncio.CancelledError):
    """Cancellation arrived while a request was in flight and the request succeeded.

    Still a ``CancelledError``; ``response`` holds what the service returned so
    callers can clean up after side effects that already happened.
    """

    def __init__(self, response: Any) -> None:
        super().__init__()
        self.response = response


async def _settle(request: asyncio.Future) -> None:
    while not request.done():
        try:
            await asyncio.wait([request])
        except asyncio.CancelledError:
            continue


class BaseStorageService:
    """Provides guard rails and helpers shared by async storage services."""

    def __init__(self, storage: StorageClient, settings: Settings):
        self._storage = storage
        self._settings = settings

    @property
    def storage(self) -> StorageClient:
        return self._storage

    @property
    def settings(self) -> Settings:
        return self._settings

    def _ensure_bucket_name(self, bucket: str) -> None:
        if not bucket:
            raise InvalidRequestError("bucket is required for this operation")

    def _ensure_location(self, bucket: str, key: str) -> None:
        self._ensure_bucket_name(bucket)
        if not key:
            raise InvalidRequestError("key is required for this operation")

    async def _call(self, operation: str, func: Callable[..., T], **kwargs: Any) -> T:
        """Run one blocking storage request on the loop's default executor.

        The worker thread cannot be interrupted, so on cancellation the request
        is awaited to completion before the cancellation propagates. If it
        succeeded, ``CancelledWithResponse`` carries its result.
        """
        loop = asyncio.get_running_loop()
        start = time.perf_counter()
        request = loop.run_in_executor(None, functools.partial(func, **kwargs))
        try:
            result = await asyncio.shield(request)
        except asyncio.CancelledError:
            await _settle(request)
            if request.exception() is not None:
                self._observe(operation, "error", start)
                raise
            self._observe(operation, "success", start)
            raise CancelledWithResponse(request.result()) from None
        except BaseException:
            self._observe(operation, "error", start)
            raise
        self._observe(operation, "success", start)
        return result

    def _observe(self, operation: str, outcome: str, start: float) -> None:
        if self._settings.ENABLE_METRICS:
            observe_request(operation, outcome, time.perf_counter() - start)
