"""In-memory catalog store.

Used by the test suite and for local runs with ``STORE_BACKEND=memory``.
Mirrors the uniqueness rules of the database schema. Changes are applied
immediately, so ``commit`` and ``rollback`` are no-ops.
"""

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from uuid import uuid4

from fitsync.catalog.store import CatalogStore
from fitsync.domain.entities import (
    Category,
    FitmentKey,
    FitTerm,
    FitTermType,
    ProductFitment,
    StoreStats,
)
from fitsync.domain.exceptions import DuplicateError


class InMemoryCatalogStore(CatalogStore):
    """Dict-backed implementation of ``CatalogStore``.

    Example usage:
        store = InMemoryCatalogStore()
        exhaust = await store.add_category(Category(id="", title="Exhaust", slug="exhaust"))
    """

    def __init__(self) -> None:
        """Initialize empty tables."""
        self._categories: dict[str, Category] = {}
        self._fit_terms: dict[str, FitTerm] = {}
        # (product_gid, category_id) pairs in insertion order
        self._links: list[tuple[str, str]] = []
        self._fitments: dict[str, ProductFitment] = {}
        self._skus: dict[str, str] = {}
        self._category_mappings: dict[str, str | None] = {}
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        return None

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_category(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    async def get_category_by_slug(self, slug: str) -> Category | None:
        return next((c for c in self._categories.values() if c.slug == slug), None)

    async def get_categories_by_slugs(self, slugs: Sequence[str]) -> list[Category]:
        wanted = set(slugs)
        return [c for c in self._categories.values() if c.slug in wanted]

    async def list_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.title)

    async def count_category_children(self, category_id: str) -> int:
        return sum(1 for c in self._categories.values() if c.parent_id == category_id)

    def _check_slug(self, slug: str, category_id: str | None) -> None:
        existing = next((c for c in self._categories.values() if c.slug == slug), None)
        if existing is not None and existing.id != category_id:
            raise DuplicateError("Slug must be unique", details={"slug": slug})

    async def add_category(self, category: Category) -> Category:
        self._check_slug(category.slug, None)
        stored = replace(category, id=category.id or str(uuid4()))
        self._categories[stored.id] = stored
        return stored

    async def update_category(self, category: Category) -> Category:
        self._check_slug(category.slug, category.id)
        self._categories[category.id] = category
        return category

    async def delete_category(self, category_id: str) -> bool:
        return self._categories.pop(category_id, None) is not None

    async def mark_category_synced(
        self, category_id: str, page_id: str, synced_at: datetime
    ) -> None:
        category = self._categories.get(category_id)
        if category is not None:
            self._categories[category_id] = replace(
                category, shopify_page_id=page_id, last_synced_at=synced_at
            )

    # ------------------------------------------------------------------
    # Fit terms
    # ------------------------------------------------------------------

    async def get_fit_term(self, term_id: str) -> FitTerm | None:
        return self._fit_terms.get(term_id)

    async def find_fit_term(
        self, term_type: FitTermType, name: str, parent_id: str | None
    ) -> FitTerm | None:
        return next(
            (
                t
                for t in self._fit_terms.values()
                if t.type == term_type and t.name == name and t.parent_id == parent_id
            ),
            None,
        )

    async def list_fit_terms(self, term_type: FitTermType | None = None) -> list[FitTerm]:
        terms = [
            t for t in self._fit_terms.values() if term_type is None or t.type == term_type
        ]
        return sorted(terms, key=lambda t: (t.type.value, t.name))

    async def count_fit_term_children(self, term_id: str) -> int:
        return sum(1 for t in self._fit_terms.values() if t.parent_id == term_id)

    async def add_fit_term(self, term: FitTerm) -> FitTerm:
        stored = replace(term, id=term.id or str(uuid4()))
        self._fit_terms[stored.id] = stored
        return stored

    async def update_fit_term(self, term: FitTerm) -> FitTerm:
        self._fit_terms[term.id] = term
        return term

    async def delete_fit_term(self, term_id: str) -> bool:
        return self._fit_terms.pop(term_id, None) is not None

    # ------------------------------------------------------------------
    # Product ↔ category links
    # ------------------------------------------------------------------

    async def linked_category_ids(self, product_gid: str) -> list[str]:
        return [c for g, c in self._links if g == product_gid]

    async def add_links(self, product_gid: str, category_ids: Sequence[str]) -> int:
        added = 0
        for category_id in dict.fromkeys(category_ids):
            pair = (product_gid, category_id)
            if pair not in self._links:
                self._links.append(pair)
                added += 1
        return added

    async def remove_links(
        self, product_gid: str, category_ids: Sequence[str] | None = None
    ) -> int:
        wanted = None if category_ids is None else set(category_ids)
        kept = [
            (g, c)
            for g, c in self._links
            if not (g == product_gid and (wanted is None or c in wanted))
        ]
        removed = len(self._links) - len(kept)
        self._links = kept
        return removed

    async def product_gids_for_category(
        self, category_id: str, limit: int | None = None
    ) -> list[str]:
        gids = [g for g, c in self._links if c == category_id]
        return gids if limit is None else gids[:limit]

    async def count_category_links(self, category_id: str) -> int:
        return sum(1 for _, c in self._links if c == category_id)

    async def linked_product_gids(self) -> list[str]:
        return sorted({g for g, _ in self._links})

    # ------------------------------------------------------------------
    # Product fitments
    # ------------------------------------------------------------------

    async def get_fitment(self, fitment_id: str) -> ProductFitment | None:
        return self._fitments.get(fitment_id)

    async def find_fitment(self, key: FitmentKey) -> ProductFitment | None:
        return next((f for f in self._fitments.values() if f.key == key), None)

    @staticmethod
    def _ordered(rows: list[ProductFitment]) -> list[ProductFitment]:
        return sorted(
            rows,
            key=lambda f: (
                f.make,
                f.model,
                f.year_from is None,
                f.year_from or 0,
            ),
        )

    async def fitments_for_products(
        self, product_gids: Sequence[str]
    ) -> list[ProductFitment]:
        wanted = set(product_gids)
        return self._ordered([f for f in self._fitments.values() if f.product_gid in wanted])

    async def list_fitments(
        self,
        product_gid: str | None = None,
        make: str | None = None,
        model: str | None = None,
    ) -> list[ProductFitment]:
        rows = [
            f
            for f in self._fitments.values()
            if (product_gid is None or f.product_gid == product_gid)
            and (make is None or f.make == make)
            and (model is None or f.model == model)
        ]
        return self._ordered(rows)

    async def add_fitment(self, key: FitmentKey) -> ProductFitment:
        if await self.find_fitment(key) is not None:
            raise DuplicateError("Fitment already exists", details={"product_gid": key.product_gid})
        fitment = ProductFitment(
            id=str(uuid4()),
            product_gid=key.product_gid,
            make=key.make,
            model=key.model,
            year_from=key.year_from,
            year_to=key.year_to,
            trim=key.trim,
            chassis=key.chassis,
        )
        self._fitments[fitment.id] = fitment
        return fitment

    async def update_fitment(self, fitment: ProductFitment) -> ProductFitment:
        self._fitments[fitment.id] = fitment
        return fitment

    async def delete_fitment(self, fitment_id: str) -> bool:
        return self._fitments.pop(fitment_id, None) is not None

    async def fitment_product_gids(self) -> list[str]:
        return sorted({f.product_gid for f in self._fitments.values()})

    # ------------------------------------------------------------------
    # Ingestion lookups
    # ------------------------------------------------------------------

    async def get_product_gid_for_sku(self, sku: str) -> str | None:
        return self._skus.get(sku)

    async def save_sku(self, sku: str, product_gid: str, title: str) -> None:
        self._skus[sku] = product_gid

    async def get_category_mapping(self, source_path: str) -> str | None:
        return self._category_mappings.get(source_path)

    async def save_category_mapping(
        self, source_path: str, category_id: str | None
    ) -> None:
        self._category_mappings[source_path] = category_id

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def stats(self) -> StoreStats:
        top_level = [c for c in await self.list_categories() if c.parent_id is None]
        return StoreStats(
            categories=len(self._categories),
            product_category_links=len(self._links),
            fitments=len(self._fitments),
            fit_terms=len(self._fit_terms),
            top_level=top_level[:10],
        )
