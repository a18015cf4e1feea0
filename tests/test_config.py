from __future__ import annotations

import pytest

from s3_gateway.common.config import Settings


def test_defaults():
    settings = Settings()
    assert settings.STORAGE_PRESIGN_EXPIRES_SECONDS == 3600
    assert settings.LIST_PAGE_SIZE == 100
    assert settings.ARCHIVE_PREFIX == "archive/"
    assert settings.PORT == 3000
    assert settings.CORS_ENABLED is True


def test_from_environment_reads_fallback_names(monkeypatch):
    monkeypatch.delenv("S3_REGION", raising=False)
    monkeypatch.delenv("S3_BUCKET", raising=False)
    monkeypatch.setenv("AWS_REGION", "ap-south-1")
    monkeypatch.setenv("S3_BUCKET_NAME", "legacy-bucket")

    settings = Settings.from_environment()

    assert settings.S3_REGION == "ap-south-1"
    assert settings.S3_BUCKET == "legacy-bucket"


def test_from_environment_parses_types(monkeypatch):
    monkeypatch.setenv("LIST_PAGE_SIZE", "25")
    monkeypatch.setenv("S3_USE_SSL", "false")
    monkeypatch.setenv("S3_READ_TIMEOUT", "2.5")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")

    settings = Settings.from_environment()

    assert settings.LIST_PAGE_SIZE == 25
    assert settings.S3_USE_SSL is False
    assert settings.S3_READ_TIMEOUT == 2.5
    assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"STORAGE_PRESIGN_EXPIRES_SECONDS": 0},
        {"STORAGE_PRESIGN_EXPIRES_SECONDS": 7 * 24 * 60 * 60 + 1},
        {"LIST_PAGE_SIZE": 0},
        {"LIST_PAGE_SIZE": 1001},
        {"DOWNLOAD_CHUNK_SIZE": 0},
        {"ARCHIVE_PREFIX": ""},
        {"ARCHIVE_PREFIX": "/archive/"},
        {"LOG_FORMAT": "xml"},
    ],
)
def test_rejects_out_of_range_values(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)
