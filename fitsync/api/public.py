"""Public storefront endpoints.

Read-only, unauthenticated queries the theme calls: the category tree,
category counts and category product lists filtered by the selected vehicle.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fitsync.api.dependencies import get_category_service, get_query_engine
from fitsync.api.schemas import (
    CategoryCount,
    CategoryCountsResponse,
    CategoryResponse,
    CategoryTreeNode,
    ErrorResponse,
    FitmentFilterResponse,
    ProductsBySlugResponse,
    ProductSummarySchema,
)
from fitsync.application.category_service import CategoryService
from fitsync.application.query_service import QueryEngine
from fitsync.catalog.matcher import FitmentQuery

router = APIRouter(prefix="/public", tags=["Storefront"])

EngineDep = Annotated[QueryEngine, Depends(get_query_engine)]
CategoriesDep = Annotated[CategoryService, Depends(get_category_service)]


class VehicleParams:
    """Vehicle selection query parameters shared by storefront routes.

    Make/model/trim/chassis may be fit-term IDs (from the YMM picker) or
    plain names.
    """

    def __init__(
        self,
        year: Annotated[int | None, Query(ge=1900, le=2100)] = None,
        make_id: Annotated[str | None, Query(alias="makeId")] = None,
        model_id: Annotated[str | None, Query(alias="modelId")] = None,
        trim_id: Annotated[str | None, Query(alias="trimId")] = None,
        chassis_id: Annotated[str | None, Query(alias="chassisId")] = None,
    ) -> None:
        self.year = year
        self.make_id = make_id
        self.model_id = model_id
        self.trim_id = trim_id
        self.chassis_id = chassis_id

    async def to_query(self, engine: QueryEngine) -> FitmentQuery:
        return await engine.query_from_ids(
            year=self.year,
            make_id=self.make_id,
            model_id=self.model_id,
            trim_id=self.trim_id,
            chassis_id=self.chassis_id,
        )


VehicleDep = Annotated[VehicleParams, Depends()]


def _split(values: list[str]) -> list[str]:
    """Accept both repeated params and comma-separated lists."""
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


@router.get(
    "/categories",
    response_model=list[CategoryTreeNode],
    summary="Category tree for navigation",
)
async def public_categories(service: CategoriesDep) -> list[CategoryTreeNode]:
    return [CategoryTreeNode.from_node(n) for n in await service.forest()]


@router.get(
    "/categories-flat",
    response_model=list[CategoryResponse],
    summary="Flat category list",
)
async def public_categories_flat(service: CategoriesDep) -> list[CategoryResponse]:
    return [CategoryResponse.from_entity(c) for c in await service.flat()]


@router.get(
    "/category-counts",
    response_model=CategoryCountsResponse,
    summary="Product counts per category",
    description="Counts direct links only. Unknown slugs are omitted.",
)
async def category_counts(
    engine: EngineDep,
    vehicle: VehicleDep,
    slugs: Annotated[list[str], Query(alias="slug")] = [],
) -> CategoryCountsResponse:
    query = await vehicle.to_query(engine)
    counts = await engine.counts_per_category(_split(slugs), query)
    return CategoryCountsResponse(
        results=[CategoryCount(slug=slug, count=count) for slug, count in counts.items()]
    )


@router.get(
    "/products-by-slug",
    response_model=ProductsBySlugResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Products in a category fitting a vehicle",
)
async def products_by_slug(
    engine: EngineDep,
    vehicle: VehicleDep,
    slug: str = "",
    limit: Annotated[int | None, Query()] = None,
    hydrate: bool = True,
) -> ProductsBySlugResponse:
    if not slug.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error_code": "VALIDATION_ERROR", "message": "Missing slug"},
        )

    query = await vehicle.to_query(engine)
    gids = await engine.products_in_category(slug, query, limit)
    products = []
    if hydrate:
        products = [ProductSummarySchema(**p.to_dict()) for p in await engine.hydrate(gids)]
    return ProductsBySlugResponse(
        slug=slug.strip(), count=len(gids), product_gids=gids, products=products
    )


@router.get(
    "/fitment-filter",
    response_model=FitmentFilterResponse,
    summary="Filter products by vehicle",
    description="Returns the given products that have a fitment matching the vehicle.",
)
async def fitment_filter(
    engine: EngineDep,
    vehicle: VehicleDep,
    product_gids: Annotated[list[str], Query(alias="productGids")] = [],
) -> FitmentFilterResponse:
    query = await vehicle.to_query(engine)
    allowed = await engine.allowed_product_gids(_split(product_gids), query)
    return FitmentFilterResponse(allowed_product_gids=allowed)
