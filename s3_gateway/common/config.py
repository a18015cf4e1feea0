from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

MAX_PRESIGN_EXPIRES_SECONDS = 7 * 24 * 60 * 60
MAX_LIST_PAGE_SIZE = 1000
LOG_FORMATS = {"json", "plain"}


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_float(value: str | None) -> float | None:
    if value is None or value.strip() == "":
        return None
    return float(value)


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


@dataclass
class Settings:
    S3_REGION: str = "us-east-1"
    S3_BUCKET: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_ADDRESSING_STYLE: str = "auto"
    S3_USE_SSL: bool = True
    S3_CONNECT_TIMEOUT: float | None = None
    S3_READ_TIMEOUT: float | None = None
    STORAGE_PRESIGN_EXPIRES_SECONDS: int = 3600
    LIST_PAGE_SIZE: int = 100
    DOWNLOAD_CHUNK_SIZE: int = 64 * 1024
    ARCHIVE_PREFIX: str = "archive/"
    ENABLE_METRICS: bool = True
    API_KEY_ENABLED: bool = False
    API_KEY: str | None = None
    CORS_ENABLED: bool = True
    CORS_ORIGINS: list[str] = field(default_factory=list)
    TRACE_HTTP: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    def __post_init__(self) -> None:
        if not 1 <= self.STORAGE_PRESIGN_EXPIRES_SECONDS <= MAX_PRESIGN_EXPIRES_SECONDS:
            raise ValueError(
                "STORAGE_PRESIGN_EXPIRES_SECONDS must be between 1 and "
                f"{MAX_PRESIGN_EXPIRES_SECONDS}."
            )
        if not 1 <= self.LIST_PAGE_SIZE <= MAX_LIST_PAGE_SIZE:
            raise ValueError(
                f"LIST_PAGE_SIZE must be between 1 and {MAX_LIST_PAGE_SIZE}."
            )
        if self.DOWNLOAD_CHUNK_SIZE < 1:
            raise ValueError("DOWNLOAD_CHUNK_SIZE must be a positive integer.")
        if not self.ARCHIVE_PREFIX or self.ARCHIVE_PREFIX.startswith("/"):
            raise ValueError("ARCHIVE_PREFIX must be a non-empty relative prefix.")
        if self.LOG_FORMAT not in LOG_FORMATS:
            raise ValueError(f"LOG_FORMAT must be one of {sorted(LOG_FORMATS)}.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_REGION=_first_env("S3_REGION", "AWS_REGION") or cls.S3_REGION,
            S3_BUCKET=_first_env("S3_BUCKET", "S3_BUCKET_NAME"),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID") or None,
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY") or None,
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_CONNECT_TIMEOUT=_as_float(os.environ.get("S3_CONNECT_TIMEOUT")),
            S3_READ_TIMEOUT=_as_float(os.environ.get("S3_READ_TIMEOUT")),
            STORAGE_PRESIGN_EXPIRES_SECONDS=int(
                os.environ.get(
                    "STORAGE_PRESIGN_EXPIRES_SECONDS",
                    cls.STORAGE_PRESIGN_EXPIRES_SECONDS,
                )
            ),
            LIST_PAGE_SIZE=int(os.environ.get("LIST_PAGE_SIZE", cls.LIST_PAGE_SIZE)),
            DOWNLOAD_CHUNK_SIZE=int(
                os.environ.get("DOWNLOAD_CHUNK_SIZE", cls.DOWNLOAD_CHUNK_SIZE)
            ),
            ARCHIVE_PREFIX=os.environ.get("ARCHIVE_PREFIX", cls.ARCHIVE_PREFIX),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            API_KEY_ENABLED=_as_bool(
                os.environ.get("API_KEY_ENABLED"), cls.API_KEY_ENABLED
            ),
            API_KEY=os.environ.get("API_KEY"),
            CORS_ENABLED=_as_bool(os.environ.get("CORS_ENABLED"), cls.CORS_ENABLED),
            CORS_ORIGINS=_as_list(os.environ.get("CORS_ORIGINS")),
            TRACE_HTTP=_as_bool(os.environ.get("TRACE_HTTP"), cls.TRACE_HTTP),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL),
            LOG_FORMAT=os.environ.get("LOG_FORMAT", cls.LOG_FORMAT).lower(),
            HOST=os.environ.get("HOST", cls.HOST),
            PORT=int(os.environ.get("PORT", cls.PORT)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
