from __future__ import annotations

import pytest

from s3connect.common.config import Settings, get_settings
from s3connect.services import S3
from tests.infra.mock_storage import MockStorageClient


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture()
def s3(mock_storage, settings) -> S3:
    return S3(mock_storage, settings=settings)
