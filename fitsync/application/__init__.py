"""Application layer module.

Contains application services (use cases) that orchestrate
catalog logic, the store and the Shopify client.
"""

from fitsync.application.category_service import CategoryService
from fitsync.application.ingestion_service import IngestionService
from fitsync.application.linkage_service import LinkageService
from fitsync.application.page_sync_service import PageSyncService
from fitsync.application.projection_service import ProjectionSynchronizer
from fitsync.application.query_service import QueryEngine

__all__ = [
    "CategoryService",
    "IngestionService",
    "LinkageService",
    "PageSyncService",
    "ProjectionSynchronizer",
    "QueryEngine",
]
