"""Shared fixtures for E2E tests.

These fixtures run the whole app against the in-memory store with a mocked
Shopify Admin API.
"""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from fitsync.api.dependencies import get_engine_config, get_shopify_client, get_store
from fitsync.catalog.memory import InMemoryCatalogStore
from fitsync.infrastructure.config import EngineConfig, settings
from fitsync.main import app


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def overrides(
    store: InMemoryCatalogStore,
    shopify: AsyncMock,
    config: EngineConfig,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    monkeypatch.setattr(settings, "store_backend", "memory")
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_shopify_client] = lambda: shopify
    app.dependency_overrides[get_engine_config] = lambda: config
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication (storefront calls)."""
    return TestClient(app)


@pytest.fixture
def auth_client() -> TestClient:
    """Create test client with valid API key authentication."""
    return TestClient(
        app,
        headers={
            "Authorization": f"Bearer {settings.api_key}",
            "X-Request-ID": "e2e-test-request",
        },
    )


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def metafields(shopify: AsyncMock) -> dict[str, dict[str, str]]:
    """Fake Shopify metafield storage fed by ``write_metafields``.

    ``read_metafield`` reads back from the same dict, so verify calls see
    exactly what the last push wrote.
    """
    stored: dict[str, dict[str, str]] = {}

    async def write(owner_gid, entries):
        stored[owner_gid] = {f"{m.namespace}.{m.key}": m.value for m in entries}

    async def read(owner_gid, namespace, key):
        return stored.get(owner_gid, {}).get(f"{namespace}.{key}")

    shopify.write_metafields.side_effect = write
    shopify.read_metafield.side_effect = read
    return stored
