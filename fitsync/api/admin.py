"""Admin operations endpoints.

Bulk and maintenance operations:
- Projection backfill, single-product rebuild and drift check
- Metafield definition setup
- Category page sync
- Distributor category mapping and product ingestion
- Store diagnostics
"""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends

from fitsync.api.dependencies import (
    StoreDep,
    SynchronizerDep,
    get_ingestion_service,
    get_page_sync_service,
)
from fitsync.api.schemas import (
    BackfillRequest,
    CategoryMappingRequest,
    CategoryResponse,
    DiagnosticsResponse,
    ErrorResponse,
    IngestRequest,
    PageSyncRequest,
)
from fitsync.application.ingestion_service import IngestionService
from fitsync.application.page_sync_service import PageSyncService
from fitsync.application.projection_service import BackfillScope
from fitsync.domain.entities import SourceRecord
from fitsync.domain.value_objects import normalize_product_gid

logger = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["Admin"])

PagesDep = Annotated[PageSyncService, Depends(get_page_sync_service)]
IngestionDep = Annotated[IngestionService, Depends(get_ingestion_service)]


# ============================================================================
# Projections
# ============================================================================


@router.get("/backfill", summary="Preview a backfill")
async def backfill_preview(synchronizer: SynchronizerDep) -> dict[str, Any]:
    """Products each backfill scope would cover."""
    counts = {}
    for scope in BackfillScope:
        counts[scope.value] = len(await synchronizer.products_for_scope(scope))
    return {"scopes": counts}


@router.post(
    "/backfill",
    summary="Rebuild projections",
    description=(
        "Rebuild projections one product at a time with a delay between "
        "calls. Failures are collected and do not stop the run."
    ),
)
async def backfill(
    synchronizer: SynchronizerDep, request: BackfillRequest | None = None
) -> dict[str, Any]:
    request = request or BackfillRequest()
    gids = None
    if request.product_gids is not None:
        gids = list(dict.fromkeys(normalize_product_gid(g) for g in request.product_gids))
    report = await synchronizer.backfill(BackfillScope(request.scope), gids)
    return {"ok": report.failed == 0, **report.to_dict()}


@router.post(
    "/projections/{product_id}/rebuild",
    responses={502: {"model": ErrorResponse}},
    summary="Rebuild one projection",
)
async def rebuild_projection(
    product_id: str, synchronizer: SynchronizerDep
) -> dict[str, Any]:
    projection = await synchronizer.rebuild(normalize_product_gid(product_id))
    return {"ok": True, **projection.to_dict()}


@router.get(
    "/projections/{product_id}/verify",
    responses={502: {"model": ErrorResponse}},
    summary="Compare stored metafields with the local state",
)
async def verify_projection(
    product_id: str, synchronizer: SynchronizerDep
) -> dict[str, Any]:
    drift = await synchronizer.verify(normalize_product_gid(product_id))
    return drift.to_dict()


@router.post(
    "/ensure-metafield-definitions",
    summary="Create the projection metafield definitions",
)
async def ensure_metafield_definitions(synchronizer: SynchronizerDep) -> dict[str, Any]:
    results = await synchronizer.ensure_definitions()
    return {"ok": all(r["ok"] for r in results), "results": results}


# ============================================================================
# Category pages
# ============================================================================


@router.get("/sync-pages", summary="Preview category page sync")
async def sync_pages_preview(pages: PagesDep) -> dict[str, Any]:
    categories = await pages.preview()
    return {"count": len(categories), "categories": categories}


@router.post("/sync-pages", summary="Sync category pages")
async def sync_pages(
    pages: PagesDep, request: PageSyncRequest | None = None
) -> dict[str, Any]:
    request = request or PageSyncRequest()
    report = await pages.sync(create_only=request.create_only)
    return {"ok": not report.failures, **report.to_dict()}


# ============================================================================
# Ingestion
# ============================================================================


@router.post(
    "/category-mappings",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Map a distributor category path",
)
async def map_category(
    request: CategoryMappingRequest, ingestion: IngestionDep
) -> dict[str, Any]:
    await ingestion.map_category(request.source_path, request.category_id)
    return {
        "ok": True,
        "sourcePath": request.source_path.strip(),
        "categoryId": request.category_id,
    }


@router.post("/ingest", summary="Ingest distributor records")
async def ingest(request: IngestRequest, ingestion: IngestionDep) -> dict[str, Any]:
    records = [SourceRecord(**r.model_dump()) for r in request.records]
    report = await ingestion.ingest(records)
    return {"ok": report.failed == 0, **report.to_dict()}


# ============================================================================
# Diagnostics
# ============================================================================


@router.get(
    "/diagnostics",
    response_model=DiagnosticsResponse,
    summary="Store row counts",
)
async def diagnostics(store: StoreDep) -> DiagnosticsResponse:
    stats = await store.stats()
    logger.info(
        "diagnostics",
        categories=stats.categories,
        fitments=stats.fitments,
    )
    return DiagnosticsResponse(
        categories=stats.categories,
        product_category_links=stats.product_category_links,
        fitments=stats.fitments,
        fit_terms=stats.fit_terms,
        top_level=[CategoryResponse.from_entity(c) for c in stats.top_level],
    )
