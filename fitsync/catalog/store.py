"""Catalog store interface.

Abstracts persistence of the two self-referential trees (categories and
fit terms) and the two link tables (product categories and product
fitments), plus the ingestion lookup tables.

Implementations:
    - ``SqlCatalogStore`` (async SQLAlchemy) in ``fitsync.catalog.repository``
    - ``InMemoryCatalogStore`` in ``fitsync.catalog.memory``

Mutating methods stage changes; ``commit`` makes them durable. Application
services always commit before pushing projections to Shopify.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from fitsync.domain.entities import (
    Category,
    FitmentKey,
    FitTerm,
    FitTermType,
    ProductFitment,
    StoreStats,
)


class CatalogStore(ABC):
    """Persistence operations used by the taxonomy and fitment engine."""

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @abstractmethod
    async def commit(self) -> None:
        """Commit staged changes."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard staged changes."""

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_category(self, category_id: str) -> Category | None:
        """Get a category by ID."""

    @abstractmethod
    async def get_category_by_slug(self, slug: str) -> Category | None:
        """Get a category by slug."""

    @abstractmethod
    async def get_categories_by_slugs(self, slugs: Sequence[str]) -> list[Category]:
        """Get every category whose slug is in ``slugs``."""

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """List all categories ordered by title."""

    @abstractmethod
    async def count_category_children(self, category_id: str) -> int:
        """Count direct children of a category."""

    @abstractmethod
    async def add_category(self, category: Category) -> Category:
        """Insert a category. Raises ``DuplicateError`` on a taken slug."""

    @abstractmethod
    async def update_category(self, category: Category) -> Category:
        """Overwrite a category's fields. Raises ``DuplicateError`` on a taken slug."""

    @abstractmethod
    async def delete_category(self, category_id: str) -> bool:
        """Delete a category. Returns False if it did not exist."""

    @abstractmethod
    async def mark_category_synced(
        self, category_id: str, page_id: str, synced_at: datetime
    ) -> None:
        """Record the storefront page a category was synced to."""

    # ------------------------------------------------------------------
    # Fit terms
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_fit_term(self, term_id: str) -> FitTerm | None:
        """Get a fit term by ID."""

    @abstractmethod
    async def find_fit_term(
        self, term_type: FitTermType, name: str, parent_id: str | None
    ) -> FitTerm | None:
        """Find a fit term by its unique ``(type, name, parent_id)`` tuple."""

    @abstractmethod
    async def list_fit_terms(self, term_type: FitTermType | None = None) -> list[FitTerm]:
        """List fit terms ordered by type then name."""

    @abstractmethod
    async def count_fit_term_children(self, term_id: str) -> int:
        """Count direct children of a fit term."""

    @abstractmethod
    async def add_fit_term(self, term: FitTerm) -> FitTerm:
        """Insert a fit term."""

    @abstractmethod
    async def update_fit_term(self, term: FitTerm) -> FitTerm:
        """Overwrite a fit term's name and parent."""

    @abstractmethod
    async def delete_fit_term(self, term_id: str) -> bool:
        """Delete a fit term. Returns False if it did not exist."""

    # ------------------------------------------------------------------
    # Product ↔ category links
    # ------------------------------------------------------------------

    @abstractmethod
    async def linked_category_ids(self, product_gid: str) -> list[str]:
        """Category IDs directly linked to a product."""

    @abstractmethod
    async def add_links(self, product_gid: str, category_ids: Sequence[str]) -> int:
        """Insert links, skipping ones that already exist. Returns rows inserted."""

    @abstractmethod
    async def remove_links(
        self, product_gid: str, category_ids: Sequence[str] | None = None
    ) -> int:
        """Delete links (all of the product's when ``category_ids`` is None). Returns rows deleted."""

    @abstractmethod
    async def product_gids_for_category(
        self, category_id: str, limit: int | None = None
    ) -> list[str]:
        """Products linked to a category, in link insertion order."""

    @abstractmethod
    async def count_category_links(self, category_id: str) -> int:
        """Number of products linked to a category."""

    @abstractmethod
    async def linked_product_gids(self) -> list[str]:
        """Distinct products with at least one category link, sorted."""

    # ------------------------------------------------------------------
    # Product fitments
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_fitment(self, fitment_id: str) -> ProductFitment | None:
        """Get a fitment row by ID."""

    @abstractmethod
    async def find_fitment(self, key: FitmentKey) -> ProductFitment | None:
        """Find a fitment by its full unique tuple (nulls compare equal)."""

    @abstractmethod
    async def fitments_for_products(
        self, product_gids: Sequence[str]
    ) -> list[ProductFitment]:
        """Fitment rows of the given products, ordered by make, model, year_from."""

    @abstractmethod
    async def list_fitments(
        self,
        product_gid: str | None = None,
        make: str | None = None,
        model: str | None = None,
    ) -> list[ProductFitment]:
        """List fitment rows with optional exact-match filters."""

    @abstractmethod
    async def add_fitment(self, key: FitmentKey) -> ProductFitment:
        """Insert a fitment row."""

    @abstractmethod
    async def update_fitment(self, fitment: ProductFitment) -> ProductFitment:
        """Overwrite a fitment row."""

    @abstractmethod
    async def delete_fitment(self, fitment_id: str) -> bool:
        """Delete a fitment row. Returns False if it did not exist."""

    @abstractmethod
    async def fitment_product_gids(self) -> list[str]:
        """Distinct products with at least one fitment row, sorted."""

    # ------------------------------------------------------------------
    # Ingestion lookups
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_product_gid_for_sku(self, sku: str) -> str | None:
        """Product GID previously recorded for a distributor SKU."""

    @abstractmethod
    async def save_sku(self, sku: str, product_gid: str, title: str) -> None:
        """Record (or overwrite) the product GID for a distributor SKU."""

    @abstractmethod
    async def get_category_mapping(self, source_path: str) -> str | None:
        """Local category ID mapped to a distributor category path."""

    @abstractmethod
    async def save_category_mapping(
        self, source_path: str, category_id: str | None
    ) -> None:
        """Map (or unmap, with None) a distributor category path."""

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @abstractmethod
    async def stats(self) -> StoreStats:
        """Row counts and a sample of top-level categories."""
