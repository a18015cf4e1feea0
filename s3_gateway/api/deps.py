from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from s3_gateway.common.config import Settings, get_settings
from s3_gateway.infra.storage.client import StorageClient
from s3_gateway.infra.storage.s3_client import S3StorageClient
from s3_gateway.services.bundle import ServiceBundle, get_service_bundle

logger = logging.getLogger("http")


@lru_cache(maxsize=1)
def get_storage_client() -> StorageClient:
    """Process-wide storage client, built on first use."""
    return S3StorageClient(settings=get_settings())


def get_services(
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
) -> ServiceBundle:
    return get_service_bundle(storage, settings)


def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
    settings = get_settings()
    if settings.API_KEY_ENABLED:
        api_key_expected = getattr(settings, "API_KEY", None)
        if not x_api_key or (api_key_expected and x_api_key != api_key_expected):
            preview = f"{x_api_key[:4]}***" if x_api_key else "<missing>"
            logger.warning("api_key_mismatch api_key_preview=%s", preview)
            raise HTTPException(status_code=401, detail="Invalid API key")
