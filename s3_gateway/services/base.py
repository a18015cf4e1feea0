from __future__ import annotations

from s3_gateway.common.config import Settings, get_settings
from s3_gateway.infra.storage.client import StorageClient


class ServiceError(Exception):
    """Base class for application service level exceptions."""


class InvalidRequestError(ServiceError):
    """Raised when required input is missing, before any remote call."""


class BaseService:
    """Provides the storage client and settings shared by application services."""

    def __init__(self, storage: StorageClient, *, settings: Settings | None = None):
        self._storage = storage
        self._settings = settings or get_settings()

    @property
    def storage(self) -> StorageClient:
        return self._storage

    @property
    def settings(self) -> Settings:
        return self._settings

    @staticmethod
    def _require(value: str | None, message: str) -> str:
        if value is None or not str(value).strip():
            raise InvalidRequestError(message)
        return value
