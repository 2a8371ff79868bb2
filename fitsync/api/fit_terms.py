"""Fit term API endpoints.

Admin CRUD over the Make/Model/Trim/Chassis hierarchy, plus the ancestry
queries YMM pickers use to reset dependent selections.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from fitsync.api.dependencies import get_fit_terms
from fitsync.api.schemas import (
    DeletedResponse,
    DescendantResponse,
    ErrorResponse,
    FitTermCreateRequest,
    FitTermResponse,
    FitTermTreeNode,
    FitTermUpdateRequest,
    ResetSelectionRequest,
    YmmSelectionSchema,
)
from fitsync.catalog.fit_terms import FitTermHierarchy
from fitsync.catalog.tree import flatten
from fitsync.domain.entities import FitTermType, YmmSelection

router = APIRouter(prefix="/fit-terms", tags=["Fit Terms"])

HierarchyDep = Annotated[FitTermHierarchy, Depends(get_fit_terms)]


TypeQuery = Annotated[
    str | None, Query(description="Restrict to MAKE, MODEL, TRIM or CHASSIS")
]


@router.get(
    "",
    response_model=list[FitTermTreeNode],
    responses={400: {"model": ErrorResponse}},
    summary="Fit term tree",
    description="MAKE roots and orphan CHASSIS roots with their descendants, ordered by name.",
)
async def list_fit_terms(
    hierarchy: HierarchyDep, type: TypeQuery = None
) -> list[FitTermTreeNode]:
    term_type = FitTermType.parse(type) if type else None
    return [FitTermTreeNode.from_node(n) for n in await hierarchy.tree(term_type)]


@router.get(
    "/flat",
    response_model=list[FitTermResponse],
    responses={400: {"model": ErrorResponse}},
    summary="Flat fit term list",
)
async def list_fit_terms_flat(
    hierarchy: HierarchyDep, type: TypeQuery = None
) -> list[FitTermResponse]:
    term_type = FitTermType.parse(type) if type else None
    return [FitTermResponse.from_entity(t) for t in flatten(await hierarchy.tree(term_type))]


@router.post(
    "",
    response_model=FitTermResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create fit term",
    description=(
        "MODEL needs a MAKE parent, TRIM needs a MODEL parent, CHASSIS may hang "
        "under a MAKE or MODEL or stand alone, and MAKE is always a root."
    ),
)
async def create_fit_term(
    request: FitTermCreateRequest, hierarchy: HierarchyDep
) -> FitTermResponse:
    term = await hierarchy.create(request.type, request.name, request.parent_id)
    return FitTermResponse.from_entity(term)


@router.put(
    "/{term_id}",
    response_model=FitTermResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update fit term",
)
async def update_fit_term(
    term_id: str, request: FitTermUpdateRequest, hierarchy: HierarchyDep
) -> FitTermResponse:
    term = await hierarchy.update(
        term_id,
        name=request.name,
        parent_id=request.parent_id,
        clear_parent=request.clear_parent,
    )
    return FitTermResponse.from_entity(term)


@router.delete(
    "/{term_id}",
    response_model=DeletedResponse,
    responses={409: {"model": ErrorResponse}},
    summary="Delete fit term",
)
async def delete_fit_term(term_id: str, hierarchy: HierarchyDep) -> DeletedResponse:
    deleted = await hierarchy.delete(term_id)
    return DeletedResponse(removed=1 if deleted else 0)


@router.get(
    "/{node_id}/descendant-of/{ancestor_id}",
    response_model=DescendantResponse,
    summary="Ancestry check",
)
async def descendant_of(
    node_id: str, ancestor_id: str, hierarchy: HierarchyDep
) -> DescendantResponse:
    return DescendantResponse(
        node_id=node_id,
        ancestor_id=ancestor_id,
        is_descendant=await hierarchy.is_descendant_of(node_id, ancestor_id),
    )


@router.post(
    "/reset-selection",
    response_model=YmmSelectionSchema,
    summary="Apply a MAKE selection",
    description="Clears selected MODEL/TRIM/CHASSIS that do not belong to the new MAKE.",
)
async def reset_selection(
    request: ResetSelectionRequest, hierarchy: HierarchyDep
) -> YmmSelectionSchema:
    current = YmmSelection(
        make_id=request.selection.make_id,
        model_id=request.selection.model_id,
        trim_id=request.selection.trim_id,
        chassis_id=request.selection.chassis_id,
    )
    updated = await hierarchy.reset_dependents(current, request.make_id)
    return YmmSelectionSchema(
        make_id=updated.make_id,
        model_id=updated.model_id,
        trim_id=updated.trim_id,
        chassis_id=updated.chassis_id,
    )
