"""Query engine.

Answers storefront questions from the local store (the source of truth),
not from the pushed projections:

- products in a category that fit a vehicle
- product counts per category under a vehicle filter
- which of a given list of products fit a vehicle

Shopify is only used to hydrate result lists for display.
"""

from collections.abc import Sequence

import structlog

from fitsync.catalog.fit_terms import FitTermHierarchy
from fitsync.catalog.matcher import FitmentQuery, matching_product_gids
from fitsync.catalog.store import CatalogStore
from fitsync.domain.entities import ProductFitment
from fitsync.domain.value_objects import normalize_product_gid
from fitsync.infrastructure.config import EngineConfig
from fitsync.infrastructure.shopify_client import ProductSummary, ShopifyAdminClient

logger = structlog.get_logger()


class QueryEngine:
    """Category and fitment queries.

    Example usage:
        engine = QueryEngine(store, shopify, EngineConfig())
        gids = await engine.products_in_category(
            "downpipes", FitmentQuery(year=2018, make="Honda"), limit=24
        )
    """

    def __init__(
        self,
        store: CatalogStore,
        shopify: ShopifyAdminClient | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        """Initialize query engine.

        Args:
            store: Catalog store.
            shopify: Shopify client used for hydration.
            config: Engine configuration (limits, over-fetch).
        """
        self.store = store
        self.shopify = shopify
        self.config = config or EngineConfig()
        self.fit_terms = FitTermHierarchy(store, self.config.max_hierarchy_depth)

    async def query_from_ids(
        self,
        year: int | None = None,
        make_id: str | None = None,
        model_id: str | None = None,
        trim_id: str | None = None,
        chassis_id: str | None = None,
    ) -> FitmentQuery:
        """Build a query from picker selections given as fit-term IDs or names."""
        names = await self.fit_terms.resolve_names(
            make=make_id, model=model_id, trim=trim_id, chassis=chassis_id
        )
        return FitmentQuery.build(
            year=year,
            make=names.make,
            model=names.model,
            trim=names.trim,
            chassis=names.chassis,
        )

    async def _filter(self, product_gids: list[str], query: FitmentQuery) -> list[str]:
        """Keep the products with at least one matching fitment, order preserved."""
        if query.is_empty or not product_gids:
            return product_gids
        fitments = await self.store.fitments_for_products(product_gids)
        allowed = matching_product_gids(fitments, query)
        return [gid for gid in product_gids if gid in allowed]

    async def products_in_category(
        self,
        slug: str,
        query: FitmentQuery | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """Products directly linked to a category that fit ``query``.

        Args:
            slug: Category slug. An unknown slug gives an empty list.
            query: Vehicle filter; empty or None skips fitment filtering.
            limit: Page size, clamped to ``1..max_limit``.

        Returns:
            Product GIDs in link order, at most ``limit`` of them.
        """
        limit = self.config.clamp_limit(limit)
        category = await self.store.get_category_by_slug(slug.strip())
        if category is None:
            return []

        candidates = await self.store.product_gids_for_category(
            category.id, limit=limit * self.config.overfetch_multiplier
        )
        allowed = await self._filter(candidates, query or FitmentQuery())

        logger.debug(
            "products_in_category",
            slug=slug,
            candidates=len(candidates),
            allowed=len(allowed),
        )
        return allowed[:limit]

    async def products_in_category_hydrated(
        self,
        slug: str,
        query: FitmentQuery | None = None,
        limit: int | None = None,
    ) -> list[ProductSummary]:
        """Like ``products_in_category`` but hydrated from Shopify.

        Raises:
            ShopifyClientError: If hydration fails.
        """
        return await self.hydrate(await self.products_in_category(slug, query, limit))

    async def hydrate(self, gids: list[str]) -> list[ProductSummary]:
        """Product summaries for ``gids``, in the same order; missing products are skipped."""
        if not gids or self.shopify is None:
            return []
        products = await self.shopify.read_products(gids)
        by_id = {p.id: p for p in products}
        return [by_id[gid] for gid in gids if gid in by_id]

    async def counts_per_category(
        self,
        slugs: Sequence[str],
        query: FitmentQuery | None = None,
    ) -> dict[str, int]:
        """Distinct product counts per category slug.

        Only direct links count. Unknown slugs are left out of the result.
        With a non-empty query only products with a matching fitment count.
        """
        query = query or FitmentQuery()
        categories = await self.store.get_categories_by_slugs(
            list(dict.fromkeys(s.strip() for s in slugs if s.strip()))
        )

        counts: dict[str, int] = {}
        for category in categories:
            if query.is_empty:
                counts[category.slug] = await self.store.count_category_links(category.id)
                continue
            gids = list(dict.fromkeys(await self.store.product_gids_for_category(category.id)))
            counts[category.slug] = len(await self._filter(gids, query))
        return counts

    async def allowed_product_gids(
        self, product_gids: Sequence[str], query: FitmentQuery | None = None
    ) -> list[str]:
        """Filter a caller-supplied product list by fitment, order preserved."""
        gids = list(
            dict.fromkeys(normalize_product_gid(g) for g in product_gids if str(g).strip())
        )
        return await self._filter(gids, query or FitmentQuery())

    async def fitments_by_products(
        self, product_gids: Sequence[str]
    ) -> dict[str, list[ProductFitment]]:
        """Fitment rows grouped by product, in input order."""
        gids = list(dict.fromkeys(normalize_product_gid(g) for g in product_gids if str(g).strip()))
        grouped: dict[str, list[ProductFitment]] = {gid: [] for gid in gids}
        for fitment in await self.store.fitments_for_products(gids):
            grouped[fitment.product_gid].append(fitment)
        return grouped
