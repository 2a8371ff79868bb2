"""Product category link endpoints.

Link and unlink products to categories. Every change rebuilds the product's
``taxonomy.category_slugs`` metafield before the response is sent.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from fitsync.api.dependencies import get_linkage_service
from fitsync.api.schemas import (
    ErrorResponse,
    LinkCategoriesRequest,
    LinkCategoriesResponse,
    SyncOutcomeSchema,
    UnlinkCategoriesRequest,
    UnlinkCategoriesResponse,
)
from fitsync.application.linkage_service import (
    LinkageService,
    LinkRequest,
    UnlinkAll,
    UnlinkMany,
    UnlinkOne,
    UnlinkRequest,
)

router = APIRouter(prefix="/product-categories", tags=["Product Categories"])

ServiceDep = Annotated[LinkageService, Depends(get_linkage_service)]


def _unlink_mode(request: UnlinkCategoriesRequest) -> UnlinkRequest:
    if request.all:
        return UnlinkAll()
    refs = [*request.category_ids, *request.slugs]
    if refs:
        return UnlinkMany(refs=tuple(refs))
    ref = request.category_id or request.slug
    if ref:
        return UnlinkOne(ref=ref)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error_code": "VALIDATION_ERROR",
            "message": "Missing all, categoryIds, slugs, categoryId or slug",
        },
    )


@router.post(
    "",
    response_model=LinkCategoriesResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Link product to categories",
    description=(
        "Append links, or with replaceExisting make the given categories the "
        "product's exact link set. Unknown slugs are ignored."
    ),
)
async def link_categories(
    request: LinkCategoriesRequest, service: ServiceDep
) -> LinkCategoriesResponse:
    category_ids = list(request.category_ids)
    if request.category_id:
        category_ids.insert(0, request.category_id)

    result = await service.link_request(
        LinkRequest(
            product_gid=request.product_gid,
            category_ids=category_ids,
            slugs=request.slugs,
            replace=request.replace_existing,
        )
    )
    return LinkCategoriesResponse(
        product_gid=result.product_gid,
        category_ids=result.category_ids,
        replace_existing=result.replace,
        added=result.added,
        removed=result.removed,
        sync=SyncOutcomeSchema.from_outcome(result.sync),
    )


@router.delete(
    "",
    response_model=UnlinkCategoriesResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Unlink product from categories",
    description="Idempotent: unlinking something that is not linked removes 0.",
)
async def unlink_categories(
    request: UnlinkCategoriesRequest, service: ServiceDep
) -> UnlinkCategoriesResponse:
    result = await service.unlink(request.product_gid, _unlink_mode(request))
    return UnlinkCategoriesResponse(
        product_gid=result.product_gid,
        removed=result.removed,
        sync=SyncOutcomeSchema.from_outcome(result.sync),
    )
