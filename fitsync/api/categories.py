"""Category API endpoints.

Admin CRUD over the category tree.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from fitsync.api.dependencies import get_category_service
from fitsync.api.schemas import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdateRequest,
    CategoryUpdateResponse,
    DeletedResponse,
    ErrorResponse,
    SyncOutcomeSchema,
)
from fitsync.application.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

ServiceDep = Annotated[CategoryService, Depends(get_category_service)]


@router.get(
    "",
    response_model=list[CategoryTreeNode],
    summary="Category tree",
    description="Category forest, siblings ordered by title.",
)
async def list_categories(service: ServiceDep) -> list[CategoryTreeNode]:
    return [CategoryTreeNode.from_node(n) for n in await service.forest()]


@router.get(
    "/flat",
    response_model=list[CategoryResponse],
    summary="Flat category list",
    description="Categories in pre-order over the title-sorted forest.",
)
async def list_categories_flat(service: ServiceDep) -> list[CategoryResponse]:
    return [CategoryResponse.from_entity(c) for c in await service.flat()]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Create category",
)
async def create_category(
    request: CategoryCreateRequest, service: ServiceDep
) -> CategoryResponse:
    category = await service.create(
        title=request.title,
        slug=request.slug,
        parent_id=request.parent_id,
        image=request.image,
        description=request.description,
    )
    return CategoryResponse.from_entity(category)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get category",
)
async def get_category(category_id: str, service: ServiceDep) -> CategoryResponse:
    return CategoryResponse.from_entity(await service.get(category_id))


@router.put(
    "/{category_id}",
    response_model=CategoryUpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Update category",
    description=(
        "Rename, re-slug or move a category. Moves that would create a cycle are "
        "rejected. Products under a moved or re-slugged subtree get their "
        "projections rebuilt."
    ),
)
async def update_category(
    category_id: str, request: CategoryUpdateRequest, service: ServiceDep
) -> CategoryUpdateResponse:
    result = await service.update(
        category_id,
        title=request.title,
        slug=request.slug,
        parent_id=request.parent_id,
        clear_parent=request.clear_parent,
        image=request.image,
        description=request.description,
    )
    return CategoryUpdateResponse(
        category=CategoryResponse.from_entity(result.category),
        syncs=[SyncOutcomeSchema.from_outcome(s) for s in result.syncs],
    )


@router.delete(
    "/{category_id}",
    response_model=DeletedResponse,
    responses={409: {"model": ErrorResponse}},
    summary="Delete category",
    description="Delete a childless, unlinked category. Unknown IDs succeed with removed=0.",
)
async def delete_category(category_id: str, service: ServiceDep) -> DeletedResponse:
    if not category_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error_code": "VALIDATION_ERROR", "message": "Missing id"},
        )
    deleted = await service.delete(category_id)
    return DeletedResponse(removed=1 if deleted else 0)
