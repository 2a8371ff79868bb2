"""Fitment API endpoints.

Admin CRUD over product fitment rows. Each mutation rebuilds the affected
product's ``fitment.ymm`` metafield before the response is sent.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from fitsync.api.dependencies import StoreDep, get_linkage_service, get_query_engine
from fitsync.api.schemas import (
    DeletedResponse,
    ErrorResponse,
    FitmentMutationResponse,
    FitmentRequest,
    FitmentResponse,
    FitmentsByProductsRequest,
    FitmentsByProductsResponse,
    FitmentUpdateRequest,
    SyncOutcomeSchema,
)
from fitsync.application.linkage_service import FitmentInput, FitmentResult, LinkageService
from fitsync.application.query_service import QueryEngine
from fitsync.catalog.matcher import FitmentQuery, matches
from fitsync.domain.value_objects import normalize_product_gid

router = APIRouter(prefix="/fitments", tags=["Fitments"])

ServiceDep = Annotated[LinkageService, Depends(get_linkage_service)]
EngineDep = Annotated[QueryEngine, Depends(get_query_engine)]


def _to_input(request: FitmentRequest) -> FitmentInput:
    return FitmentInput(
        product_gid=request.product_gid,
        make=request.make,
        model=request.model,
        year_from=request.year_from,
        year_to=request.year_to,
        trim=request.trim,
        chassis=request.chassis,
    )


def _mutation_response(result: FitmentResult) -> FitmentMutationResponse:
    return FitmentMutationResponse(
        fitment=FitmentResponse.from_entity(result.fitment) if result.fitment else None,
        created=result.created,
        removed=result.removed,
        syncs=[SyncOutcomeSchema.from_outcome(s) for s in result.syncs],
    )


@router.get(
    "",
    response_model=list[FitmentResponse],
    summary="List fitments",
    description="Text filters are case-insensitive; year matches open-ended ranges.",
)
async def list_fitments(
    store: StoreDep,
    product_gid: Annotated[str | None, Query(alias="productGid")] = None,
    make: str | None = None,
    model: str | None = None,
    year: Annotated[int | None, Query(ge=1900, le=2100)] = None,
    trim: str | None = None,
    chassis: str | None = None,
) -> list[FitmentResponse]:
    gid = normalize_product_gid(product_gid) if product_gid else None
    query = FitmentQuery.build(year=year, make=make, model=model, trim=trim, chassis=chassis)
    rows = await store.list_fitments(product_gid=gid or None)
    return [FitmentResponse.from_entity(f) for f in rows if matches(f, query)]


@router.post(
    "",
    response_model=FitmentMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": FitmentMutationResponse}, 400: {"model": ErrorResponse}},
    summary="Add fitment",
    description="Returns 200 with created=false when the identical row already exists.",
)
async def add_fitment(
    request: FitmentRequest, service: ServiceDep, response: Response
) -> FitmentMutationResponse:
    result = await service.upsert_fitment(_to_input(request))
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return _mutation_response(result)


@router.post(
    "/by-products",
    response_model=FitmentsByProductsResponse,
    summary="Fitments of several products",
)
async def fitments_by_products(
    request: FitmentsByProductsRequest, engine: EngineDep
) -> FitmentsByProductsResponse:
    grouped = await engine.fitments_by_products(request.product_gids)
    return FitmentsByProductsResponse(
        fitments={
            gid: [FitmentResponse.from_entity(f) for f in rows]
            for gid, rows in grouped.items()
        }
    )


@router.put(
    "/{fitment_id}",
    response_model=FitmentMutationResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Edit fitment",
)
async def update_fitment(
    fitment_id: str, request: FitmentUpdateRequest, service: ServiceDep
) -> FitmentMutationResponse:
    changes = request.model_dump(exclude_unset=True)
    return _mutation_response(await service.update_fitment(fitment_id, changes))


@router.delete(
    "/{fitment_id}",
    response_model=FitmentMutationResponse,
    summary="Delete fitment",
    description="Unknown IDs succeed with removed=0.",
)
async def delete_fitment(fitment_id: str, service: ServiceDep) -> FitmentMutationResponse:
    return _mutation_response(await service.delete_fitment(fitment_id))


@router.delete(
    "",
    response_model=DeletedResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Delete fitment by key",
    description="Delete the row matching every key field; no match removes 0.",
)
async def delete_fitment_by_key(
    request: FitmentRequest, service: ServiceDep
) -> DeletedResponse:
    result = await service.delete_fitment_by_key(_to_input(request))
    return DeletedResponse(removed=result.removed)
