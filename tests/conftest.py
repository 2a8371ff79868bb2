"""Shared fixtures.

Services run against the in-memory store and a mocked Shopify client, so
no database or network access is needed.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from fitsync.application.linkage_service import LinkageService
from fitsync.application.projection_service import ProjectionSynchronizer
from fitsync.catalog.memory import InMemoryCatalogStore
from fitsync.domain.entities import Category
from fitsync.infrastructure.config import EngineConfig
from fitsync.infrastructure.shopify_client import ShopifyAdminClient


@pytest.fixture
def store() -> InMemoryCatalogStore:
    """Empty in-memory catalog store."""
    return InMemoryCatalogStore()


@pytest.fixture
def config() -> EngineConfig:
    """Engine config without pacing delays."""
    return EngineConfig(
        sync_delay_seconds=0,
        page_sync_delay_seconds=0,
        ingest_delay_seconds=0,
    )


@pytest.fixture
def shopify() -> AsyncMock:
    """Shopify client whose calls all succeed."""
    client = AsyncMock(spec=ShopifyAdminClient)
    client.write_metafields.return_value = None
    client.read_products.return_value = []
    client.read_metafield.return_value = None
    client.ensure_metafield_definition.return_value = True
    client.find_page_id_by_handle.return_value = None
    client.create_page.return_value = "gid://shopify/Page/1"
    client.update_page.return_value = "gid://shopify/Page/1"
    client.create_product.return_value = "gid://shopify/Product/900"
    return client


@pytest.fixture
def synchronizer(
    store: InMemoryCatalogStore, shopify: AsyncMock, config: EngineConfig
) -> ProjectionSynchronizer:
    return ProjectionSynchronizer(store, shopify, config)


@pytest.fixture
def linkage(
    store: InMemoryCatalogStore, synchronizer: ProjectionSynchronizer
) -> LinkageService:
    return LinkageService(store, synchronizer)


@pytest_asyncio.fixture
async def exhaust_tree(store: InMemoryCatalogStore) -> dict[str, Category]:
    """Exhaust > Downpipes, plus an unrelated Intake root."""
    exhaust = await store.add_category(Category(id="cat-exhaust", title="Exhaust", slug="exhaust"))
    downpipes = await store.add_category(
        Category(id="cat-downpipes", title="Downpipes", slug="downpipes", parent_id=exhaust.id)
    )
    intake = await store.add_category(Category(id="cat-intake", title="Intake", slug="intake"))
    return {"exhaust": exhaust, "downpipes": downpipes, "intake": intake}


@pytest.fixture
def last_write(shopify: AsyncMock):
    """Read back the last ``write_metafields`` call as ``(owner, {namespace.key: value})``."""

    def read() -> tuple[str, dict[str, str]]:
        owner, metafields = shopify.write_metafields.call_args.args
        return owner, {f"{m.namespace}.{m.key}": m.value for m in metafields}

    return read
