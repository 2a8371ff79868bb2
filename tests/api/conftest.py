"""Shared fixtures for API tests.

Routes run against the in-memory store and the mocked Shopify client from
the root conftest, wired in through ``app.dependency_overrides``.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from fitsync.api.dependencies import get_engine_config, get_shopify_client, get_store
from fitsync.catalog.memory import InMemoryCatalogStore
from fitsync.infrastructure.config import EngineConfig, settings
from fitsync.main import app


@pytest.fixture(autouse=True)
def overrides(
    store: InMemoryCatalogStore,
    shopify: AsyncMock,
    config: EngineConfig,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Point every request at the test store and Shopify mock."""
    monkeypatch.setattr(settings, "store_backend", "memory")
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_shopify_client] = lambda: shopify
    app.dependency_overrides[get_engine_config] = lambda: config
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def auth_client() -> TestClient:
    """Create test client with valid API key authentication."""
    return TestClient(
        app,
        headers={"Authorization": f"Bearer {settings.api_key}"},
    )
