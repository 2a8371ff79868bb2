"""FastAPI dependencies.

Builds the store, the Shopify client and the application services for a
request. Settings are read here and passed down as explicit config objects.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from fitsync.application.category_service import CategoryService
from fitsync.application.ingestion_service import IngestionService
from fitsync.application.linkage_service import LinkageService
from fitsync.application.page_sync_service import PageSyncService
from fitsync.application.projection_service import ProjectionSynchronizer
from fitsync.application.query_service import QueryEngine
from fitsync.catalog.fit_terms import FitTermHierarchy
from fitsync.catalog.memory import InMemoryCatalogStore
from fitsync.catalog.repository import SqlCatalogStore
from fitsync.catalog.store import CatalogStore
from fitsync.infrastructure.config import EngineConfig, ShopConfig, settings
from fitsync.infrastructure.database import async_session_factory
from fitsync.infrastructure.shopify_client import ShopifyAdminClient

# ============================================================================
# Singletons
# ============================================================================

_memory_store: InMemoryCatalogStore | None = None
_shopify_client: ShopifyAdminClient | None = None


def get_memory_store() -> InMemoryCatalogStore:
    """Get the process-wide in-memory store singleton."""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryCatalogStore()
    return _memory_store


def get_shopify_client() -> ShopifyAdminClient:
    """Get the Shopify client singleton."""
    global _shopify_client
    if _shopify_client is None:
        _shopify_client = ShopifyAdminClient(ShopConfig.from_settings(settings))
    return _shopify_client


async def close_shopify_client() -> None:
    """Close the Shopify client singleton, if created."""
    global _shopify_client
    if _shopify_client is not None:
        await _shopify_client.close()
        _shopify_client = None


def get_engine_config() -> EngineConfig:
    return EngineConfig.from_settings(settings)


async def get_store() -> AsyncGenerator[CatalogStore, None]:
    """Get the catalog store for a request.

    Yields:
        The in-memory singleton, or a SQL store bound to a fresh session.
    """
    if settings.store_backend == "memory":
        yield get_memory_store()
        return

    async with async_session_factory() as session:
        try:
            yield SqlCatalogStore(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


StoreDep = Annotated[CatalogStore, Depends(get_store)]
ShopifyDep = Annotated[ShopifyAdminClient, Depends(get_shopify_client)]
ConfigDep = Annotated[EngineConfig, Depends(get_engine_config)]


# ============================================================================
# Services
# ============================================================================


def get_synchronizer(
    store: StoreDep, shopify: ShopifyDep, config: ConfigDep
) -> ProjectionSynchronizer:
    return ProjectionSynchronizer(store, shopify, config)


SynchronizerDep = Annotated[ProjectionSynchronizer, Depends(get_synchronizer)]


def get_category_service(
    store: StoreDep, synchronizer: SynchronizerDep, config: ConfigDep
) -> CategoryService:
    return CategoryService(store, synchronizer, config.max_hierarchy_depth)


def get_fit_terms(store: StoreDep, config: ConfigDep) -> FitTermHierarchy:
    return FitTermHierarchy(store, config.max_hierarchy_depth)


def get_linkage_service(
    store: StoreDep, synchronizer: SynchronizerDep
) -> LinkageService:
    return LinkageService(store, synchronizer)


def get_query_engine(
    store: StoreDep, shopify: ShopifyDep, config: ConfigDep
) -> QueryEngine:
    return QueryEngine(store, shopify, config)


def get_page_sync_service(
    store: StoreDep, shopify: ShopifyDep, config: ConfigDep
) -> PageSyncService:
    return PageSyncService(store, shopify, config)


def get_ingestion_service(
    store: StoreDep,
    shopify: ShopifyDep,
    linkage: Annotated[LinkageService, Depends(get_linkage_service)],
    config: ConfigDep,
) -> IngestionService:
    return IngestionService(store, shopify, linkage, config)
