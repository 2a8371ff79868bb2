"""API schemas for fitsync.

Pydantic models for request/response validation and serialization. The
wire format is camelCase (the storefront theme reads these payloads);
requests also accept snake_case field names.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from fitsync.catalog.tree import TreeNode
from fitsync.domain.entities import Category, FitTerm, FitTermType, ProductFitment


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class SyncOutcomeSchema(CamelModel):
    """Outcome of a write-through projection push."""

    product_gid: str
    ok: bool
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: Any) -> "SyncOutcomeSchema":
        return cls(product_gid=outcome.product_gid, ok=outcome.ok, error=outcome.error)


class DeletedResponse(CamelModel):
    """Result of an idempotent delete."""

    ok: bool = True
    removed: int


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryCreateRequest(CamelModel):
    """Request to create a category."""

    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255)
    parent_id: str | None = None
    image: str | None = None
    description: str | None = None


class CategoryUpdateRequest(CamelModel):
    """Request to edit a category. Omitted fields stay unchanged."""

    title: str | None = Field(default=None, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    parent_id: str | None = None
    clear_parent: bool = Field(default=False, description="Make the category a root")
    image: str | None = None
    description: str | None = None


class CategoryResponse(CamelModel):
    """Category representation."""

    id: str
    title: str
    slug: str
    parent_id: str | None = None
    image: str | None = None
    description: str | None = None
    shopify_page_id: str | None = None
    last_synced_at: datetime | None = None

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            title=category.title,
            slug=category.slug,
            parent_id=category.parent_id,
            image=category.image,
            description=category.description,
            shopify_page_id=category.shopify_page_id,
            last_synced_at=category.last_synced_at,
        )


class CategoryTreeNode(CategoryResponse):
    """Category with nested children."""

    children: list["CategoryTreeNode"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: TreeNode[Category]) -> "CategoryTreeNode":
        base = CategoryResponse.from_entity(node.item).model_dump()
        return cls(**base, children=[cls.from_node(c) for c in node.children])


class CategoryUpdateResponse(CamelModel):
    """Edited category plus any projection rebuilds it caused."""

    category: CategoryResponse
    syncs: list[SyncOutcomeSchema] = Field(default_factory=list)


# ============================================================================
# Fit Term Schemas
# ============================================================================


class FitTermCreateRequest(CamelModel):
    """Request to create a fit term."""

    type: FitTermType
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _upper_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("type"), str):
            data = {**data, "type": data["type"].strip().upper()}
        return data


class FitTermUpdateRequest(CamelModel):
    """Request to rename or move a fit term."""

    name: str | None = Field(default=None, max_length=255)
    parent_id: str | None = None
    clear_parent: bool = False


class FitTermResponse(CamelModel):
    """Fit term representation."""

    id: str
    type: FitTermType
    name: str
    parent_id: str | None = None

    @classmethod
    def from_entity(cls, term: FitTerm) -> "FitTermResponse":
        return cls(id=term.id, type=term.type, name=term.name, parent_id=term.parent_id)


class FitTermTreeNode(FitTermResponse):
    """Fit term with nested children."""

    children: list["FitTermTreeNode"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: TreeNode[FitTerm]) -> "FitTermTreeNode":
        base = FitTermResponse.from_entity(node.item).model_dump()
        return cls(**base, children=[cls.from_node(c) for c in node.children])


class DescendantResponse(CamelModel):
    """Answer to an ancestry question."""

    node_id: str
    ancestor_id: str
    is_descendant: bool


class YmmSelectionSchema(CamelModel):
    """Fit-term IDs selected in a YMM picker."""

    make_id: str | None = None
    model_id: str | None = None
    trim_id: str | None = None
    chassis_id: str | None = None


class ResetSelectionRequest(CamelModel):
    """Apply a new MAKE to a picker selection."""

    selection: YmmSelectionSchema = Field(default_factory=YmmSelectionSchema)
    make_id: str | None = None


# ============================================================================
# Product Category Schemas
# ============================================================================


class LinkCategoriesRequest(CamelModel):
    """Link a product to categories by ID and/or slug."""

    product_gid: str = Field(
        ...,
        validation_alias=AliasChoices("productGid", "productId", "product_gid"),
    )
    category_id: str | None = None
    category_ids: list[str] = Field(default_factory=list)
    slugs: list[str] = Field(default_factory=list)
    replace_existing: bool = False


class UnlinkCategoriesRequest(CamelModel):
    """Unlink categories. Priority: ``all``, then ``refs``/``slugs``/``categoryIds``, then one ref."""

    product_gid: str = Field(
        ...,
        validation_alias=AliasChoices("productGid", "productId", "product_gid"),
    )
    all: bool = False
    category_ids: list[str] = Field(default_factory=list)
    slugs: list[str] = Field(default_factory=list)
    category_id: str | None = None
    slug: str | None = None


class LinkCategoriesResponse(CamelModel):
    """Result of linking."""

    ok: bool = True
    product_gid: str
    category_ids: list[str]
    replace_existing: bool
    added: int
    removed: int
    sync: SyncOutcomeSchema


class UnlinkCategoriesResponse(CamelModel):
    """Result of unlinking."""

    ok: bool = True
    product_gid: str
    removed: int
    sync: SyncOutcomeSchema


# ============================================================================
# Fitment Schemas
# ============================================================================


class FitmentRequest(CamelModel):
    """Fitment fields; identifies a row by its full key."""

    product_gid: str = Field(
        ...,
        validation_alias=AliasChoices("productGid", "productId", "product_gid"),
    )
    make: str
    model: str
    year_from: int | None = Field(default=None, ge=1900, le=2100)
    year_to: int | None = Field(default=None, ge=1900, le=2100)
    trim: str | None = None
    chassis: str | None = None


class FitmentUpdateRequest(CamelModel):
    """Partial fitment edit."""

    product_gid: str | None = None
    make: str | None = None
    model: str | None = None
    year_from: int | None = Field(default=None, ge=1900, le=2100)
    year_to: int | None = Field(default=None, ge=1900, le=2100)
    trim: str | None = None
    chassis: str | None = None


class FitmentResponse(CamelModel):
    """Fitment row."""

    id: str
    product_gid: str
    make: str
    model: str
    year_from: int | None = None
    year_to: int | None = None
    trim: str | None = None
    chassis: str | None = None

    @classmethod
    def from_entity(cls, fitment: ProductFitment) -> "FitmentResponse":
        return cls(
            id=fitment.id,
            product_gid=fitment.product_gid,
            make=fitment.make,
            model=fitment.model,
            year_from=fitment.year_from,
            year_to=fitment.year_to,
            trim=fitment.trim,
            chassis=fitment.chassis,
        )


class FitmentMutationResponse(CamelModel):
    """Result of a fitment mutation."""

    ok: bool = True
    fitment: FitmentResponse | None = None
    created: bool = False
    removed: int = 0
    syncs: list[SyncOutcomeSchema] = Field(default_factory=list)


class FitmentsByProductsRequest(CamelModel):
    """Products to fetch fitments for."""

    product_gids: list[str] = Field(..., max_length=1000)


class FitmentsByProductsResponse(CamelModel):
    """Fitment rows grouped by product GID."""

    fitments: dict[str, list[FitmentResponse]]


# ============================================================================
# Public (storefront) Schemas
# ============================================================================


class CategoryCount(CamelModel):
    """Product count of one category."""

    slug: str
    count: int


class CategoryCountsResponse(CamelModel):
    """Counts per known slug."""

    results: list[CategoryCount]


class ProductSummarySchema(CamelModel):
    """Hydrated product."""

    id: str
    handle: str | None = None
    title: str
    image: str | None = None
    price: str | None = None


class ProductsBySlugResponse(CamelModel):
    """Products of a category matching a vehicle."""

    slug: str
    count: int
    product_gids: list[str]
    products: list[ProductSummarySchema] = Field(default_factory=list)


class FitmentFilterResponse(CamelModel):
    """Subset of the given products that fit the vehicle."""

    allowed_product_gids: list[str]


# ============================================================================
# Admin Schemas
# ============================================================================


class BackfillRequest(CamelModel):
    """Backfill options."""

    scope: str = Field(default="all", pattern="^(categories|fitments|all)$")
    product_gids: list[str] | None = None


class PageSyncRequest(CamelModel):
    """Page sync options."""

    create_only: bool = False


class CategoryMappingRequest(CamelModel):
    """Map a distributor category path to a local category."""

    source_path: str = Field(..., min_length=1, max_length=500)
    category_id: str | None = None


class SourceRecordSchema(CamelModel):
    """Normalized distributor record."""

    sku: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    price: str | None = None
    image_url: str | None = None
    category_path: str | None = None
    make: str | None = None
    model: str | None = None
    year_from: int | None = None
    year_to: int | None = None
    vendor: str | None = None
    tags: list[str] = Field(default_factory=list)


class IngestRequest(CamelModel):
    """Records to ingest."""

    records: list[SourceRecordSchema] = Field(..., max_length=500)


class DiagnosticsResponse(CamelModel):
    """Store row counts."""

    categories: int
    product_category_links: int
    fitments: int
    fit_terms: int
    top_level: list[CategoryResponse]
