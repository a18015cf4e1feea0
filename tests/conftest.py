from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("S3_REGION", "us-east-1")
os.environ.setdefault("S3_BUCKET", "default-bucket")
os.environ["API_KEY_ENABLED"] = "false"
os.environ["TRACE_HTTP"] = "false"

from s3_gateway.api.deps import get_storage_client  # noqa: E402
from s3_gateway.common.config import get_settings  # noqa: E402
from s3_gateway.main import create_app  # noqa: E402

from tests.services.mock_storage import MockStorageClient  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def client(storage: MockStorageClient):
    app = create_app()
    app.dependency_overrides[get_storage_client] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
