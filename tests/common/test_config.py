"""Tests for Settings loading."""

from __future__ import annotations

import os

import pytest

from s3connect.common import config
from s3connect.common.config import Settings, get_settings
from s3connect.infra.storage.client import MIN_PART_SIZE_BYTES


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "ENV_FILE", tmp_path / ".env")
    for name in (
        "S3_ENDPOINT_URL",
        "S3_REGION",
        "S3_ACCESS_KEY_ID",
        "S3_SECRET_ACCESS_KEY",
        "S3_USE_SSL",
        "S3_ADDRESSING_STYLE",
        "S3_CONNECT_TIMEOUT",
        "S3_READ_TIMEOUT",
        "S3_MIN_PART_SIZE_BYTES",
        "ENABLE_METRICS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_environment()

    assert settings.S3_ENDPOINT_URL is None
    assert settings.S3_REGION == "us-east-1"
    assert settings.S3_USE_SSL is True
    assert settings.S3_ADDRESSING_STYLE == "path"
    assert settings.S3_MIN_PART_SIZE_BYTES == MIN_PART_SIZE_BYTES
    assert settings.ENABLE_METRICS is True
    assert settings.LOG_LEVEL == "INFO"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("S3_ENDPOINT_URL", "http://minio:9000")
    monkeypatch.setenv("S3_USE_SSL", "false")
    monkeypatch.setenv("S3_ADDRESSING_STYLE", "Virtual")
    monkeypatch.setenv("S3_READ_TIMEOUT", "5")
    monkeypatch.setenv("S3_MIN_PART_SIZE_BYTES", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_environment()

    assert settings.S3_ENDPOINT_URL == "http://minio:9000"
    assert settings.S3_USE_SSL is False
    assert settings.S3_ADDRESSING_STYLE == "virtual"
    assert settings.S3_READ_TIMEOUT == 5
    assert settings.S3_MIN_PART_SIZE_BYTES == 0
    assert settings.LOG_LEVEL == "DEBUG"


def test_blank_credentials_are_unset(monkeypatch):
    monkeypatch.setenv("S3_ACCESS_KEY_ID", "  ")

    assert Settings.from_environment().S3_ACCESS_KEY_ID is None


def test_env_file_does_not_override_environment(monkeypatch):
    config.ENV_FILE.write_text(
        "# local overrides\nS3_REGION='eu-central-1'\nS3_ACCESS_KEY_ID=from-file\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("S3_ACCESS_KEY_ID", "from-env")

    try:
        settings = Settings.from_environment()
    finally:
        os.environ.pop("S3_REGION", None)

    assert settings.S3_REGION == "eu-central-1"
    assert settings.S3_ACCESS_KEY_ID == "from-env"


@pytest.mark.parametrize(
    "overrides",
    [
        {"S3_ADDRESSING_STYLE": "dns"},
        {"S3_CONNECT_TIMEOUT": 0},
        {"S3_READ_TIMEOUT": -1},
        {"S3_MIN_PART_SIZE_BYTES": -1},
    ],
)
def test_rejects_invalid_values(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
