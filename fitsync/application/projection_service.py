"""Projection synchronizer.

Recomputes the denormalized per-product views and pushes them to Shopify
as metafields:

- ``taxonomy.category_slugs``: slug closure of every linked category
- ``fitment.ymm``: every fitment row of the product

Both are written in one ``metafieldsSet`` call as a full overwrite, so a
retry with unchanged local state is a no-op on the Shopify side. A failed
push never undoes the local change that triggered it.
"""

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from fitsync.catalog.store import CatalogStore
from fitsync.catalog.tree import CategoryTree
from fitsync.domain.exceptions import ExternalWriteError
from fitsync.infrastructure.config import EngineConfig
from fitsync.infrastructure.shopify_client import (
    MetafieldInput,
    ShopifyAdminClient,
    ShopifyClientError,
)

logger = structlog.get_logger()


# ============================================================================
# Metafield Definitions
# ============================================================================

CATEGORY_SLUGS_NAMESPACE = "taxonomy"
CATEGORY_SLUGS_KEY = "category_slugs"
CATEGORY_SLUGS_TYPE = "list.single_line_text_field"

YMM_NAMESPACE = "fitment"
YMM_KEY = "ymm"
YMM_TYPE = "json"

METAFIELD_DEFINITIONS: list[dict[str, str]] = [
    {
        "namespace": CATEGORY_SLUGS_NAMESPACE,
        "key": CATEGORY_SLUGS_KEY,
        "type_name": CATEGORY_SLUGS_TYPE,
        "name": "Category slugs",
        "description": "Slugs of the product's categories and all their ancestors.",
    },
    {
        "namespace": YMM_NAMESPACE,
        "key": YMM_KEY,
        "type_name": YMM_TYPE,
        "name": "Fitment (YMM JSON)",
        "description": (
            "Year/Make/Model (optional Trim/Chassis) entries for storefront filtering."
        ),
    },
]


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


# ============================================================================
# Result Types
# ============================================================================


@dataclass
class Projection:
    """Denormalized view of one product."""

    product_gid: str
    category_slugs: list[str]
    ymm: list[dict[str, Any]]

    def metafields(self) -> list[MetafieldInput]:
        """Metafield inputs for a full overwrite."""
        return [
            MetafieldInput(
                namespace=CATEGORY_SLUGS_NAMESPACE,
                key=CATEGORY_SLUGS_KEY,
                type=CATEGORY_SLUGS_TYPE,
                value=_compact(self.category_slugs),
            ),
            MetafieldInput(
                namespace=YMM_NAMESPACE,
                key=YMM_KEY,
                type=YMM_TYPE,
                value=_compact(self.ymm),
            ),
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "productGid": self.product_gid,
            "categorySlugs": self.category_slugs,
            "ymm": self.ymm,
        }


@dataclass
class SyncOutcome:
    """Outcome of a best-effort projection push."""

    product_gid: str
    ok: bool = True
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"productGid": self.product_gid, "ok": self.ok, "error": self.error}


class BackfillScope(str, Enum):
    """Which products a backfill covers."""

    CATEGORIES = "categories"
    FITMENTS = "fitments"
    ALL = "all"


@dataclass
class BackfillReport:
    """Summary of a sequential backfill run."""

    total_products: int = 0
    updated: int = 0
    failed: int = 0
    failures: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "updated": self.updated,
            "failed": self.failed,
            "failures": self.failures,
        }


@dataclass
class ProjectionDrift:
    """Difference between the stored metafields and the recomputed projection."""

    product_gid: str
    expected: Projection
    remote_category_slugs: list[str] | None
    remote_ymm: list[dict[str, Any]] | None

    @property
    def category_slugs_in_sync(self) -> bool:
        return self.remote_category_slugs is not None and sorted(
            self.remote_category_slugs
        ) == sorted(self.expected.category_slugs)

    @property
    def ymm_in_sync(self) -> bool:
        return self.remote_ymm is not None and _ymm_set(self.remote_ymm) == _ymm_set(
            self.expected.ymm
        )

    @property
    def in_sync(self) -> bool:
        return self.category_slugs_in_sync and self.ymm_in_sync

    def to_dict(self) -> dict[str, Any]:
        return {
            "productGid": self.product_gid,
            "inSync": self.in_sync,
            "categorySlugs": {
                "inSync": self.category_slugs_in_sync,
                "expected": self.expected.category_slugs,
                "remote": self.remote_category_slugs,
            },
            "ymm": {
                "inSync": self.ymm_in_sync,
                "expected": self.expected.ymm,
                "remote": self.remote_ymm,
            },
        }


def _ymm_set(entries: list[dict[str, Any]]) -> set[str]:
    return {json.dumps(e, sort_keys=True) for e in entries}


def _parse_json_list(raw: str | None) -> list[Any] | None:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, list) else None


# ============================================================================
# Synchronizer
# ============================================================================


class ProjectionSynchronizer:
    """Recompute and push per-product projections.

    Example usage:
        sync = ProjectionSynchronizer(store, shopify, EngineConfig())
        await sync.rebuild("gid://shopify/Product/1")
        report = await sync.backfill(BackfillScope.ALL)
    """

    def __init__(
        self,
        store: CatalogStore,
        shopify: ShopifyAdminClient,
        config: EngineConfig | None = None,
    ) -> None:
        """Initialize synchronizer.

        Args:
            store: Catalog store (source of truth).
            shopify: Shopify Admin client used for pushes.
            config: Engine configuration (pacing, depth bound).
        """
        self.store = store
        self.shopify = shopify
        self.config = config or EngineConfig()
        self.tree = CategoryTree(store, self.config.max_hierarchy_depth)

    async def compute(self, product_gid: str) -> Projection:
        """Recompute a product's projection from the local store.

        Raises:
            CorruptHierarchyError: If a linked category's parent chain is cyclic.
        """
        category_ids = await self.store.linked_category_ids(product_gid)
        slugs = await self.tree.ancestor_slugs_for(category_ids)
        fitments = await self.store.fitments_for_products([product_gid])
        return Projection(
            product_gid=product_gid,
            category_slugs=sorted(slugs),
            ymm=[f.to_projection() for f in fitments],
        )

    async def rebuild(self, product_gid: str) -> Projection:
        """Recompute and push a product's projection.

        Returns:
            The projection that was written.

        Raises:
            ExternalWriteError: If Shopify rejects the write.
        """
        projection = await self.compute(product_gid)
        try:
            await self.shopify.write_metafields(product_gid, projection.metafields())
        except ShopifyClientError as e:
            raise ExternalWriteError(product_gid, e.message) from e

        logger.info(
            "projection_pushed",
            product_gid=product_gid,
            category_slugs=len(projection.category_slugs),
            ymm=len(projection.ymm),
        )
        return projection

    async def try_rebuild(self, product_gid: str) -> SyncOutcome:
        """Rebuild, reporting a push failure instead of raising it."""
        try:
            await self.rebuild(product_gid)
        except ExternalWriteError as e:
            logger.warning(
                "projection_push_failed",
                product_gid=product_gid,
                error=e.reason,
            )
            return SyncOutcome(product_gid=product_gid, ok=False, error=e.reason)
        return SyncOutcome(product_gid=product_gid)

    async def products_for_scope(self, scope: BackfillScope) -> list[str]:
        """Products covered by a backfill scope, sorted."""
        if scope == BackfillScope.CATEGORIES:
            return await self.store.linked_product_gids()
        if scope == BackfillScope.FITMENTS:
            return await self.store.fitment_product_gids()
        gids = set(await self.store.linked_product_gids())
        gids.update(await self.store.fitment_product_gids())
        return sorted(gids)

    async def backfill(
        self,
        scope: BackfillScope = BackfillScope.ALL,
        product_gids: list[str] | None = None,
    ) -> BackfillReport:
        """Rebuild many products one at a time.

        Calls are spaced by ``sync_delay_seconds``. A failing product is
        recorded in the report and the run continues.

        Args:
            scope: Product set to cover when ``product_gids`` is not given.
            product_gids: Explicit products to rebuild.

        Returns:
            Backfill report.
        """
        gids = product_gids if product_gids is not None else await self.products_for_scope(scope)
        report = BackfillReport(total_products=len(gids))

        logger.info("backfill_started", scope=scope.value, total_products=len(gids))

        for i, gid in enumerate(gids):
            if i > 0 and self.config.sync_delay_seconds > 0:
                await asyncio.sleep(self.config.sync_delay_seconds)
            outcome = await self.try_rebuild(gid)
            if outcome.ok:
                report.updated += 1
            else:
                report.failed += 1
                report.failures.append({"productGid": gid, "error": outcome.error or ""})

        logger.info(
            "backfill_finished",
            scope=scope.value,
            updated=report.updated,
            failed=report.failed,
        )
        return report

    async def verify(self, product_gid: str) -> ProjectionDrift:
        """Compare the metafields stored in Shopify with the recomputed projection.

        Raises:
            ShopifyClientError: If the metafields cannot be read.
        """
        expected = await self.compute(product_gid)
        raw_slugs = await self.shopify.read_metafield(
            product_gid, CATEGORY_SLUGS_NAMESPACE, CATEGORY_SLUGS_KEY
        )
        raw_ymm = await self.shopify.read_metafield(product_gid, YMM_NAMESPACE, YMM_KEY)
        return ProjectionDrift(
            product_gid=product_gid,
            expected=expected,
            remote_category_slugs=_parse_json_list(raw_slugs),
            remote_ymm=_parse_json_list(raw_ymm),
        )

    async def ensure_definitions(self) -> list[dict[str, Any]]:
        """Make sure both metafield definitions exist in Shopify.

        Returns:
            One ``{namespace, key, ok, created, error}`` entry per definition.
        """
        results = []
        for definition in METAFIELD_DEFINITIONS:
            entry: dict[str, Any] = {
                "namespace": definition["namespace"],
                "key": definition["key"],
            }
            try:
                created = await self.shopify.ensure_metafield_definition(**definition)
                entry.update(ok=True, created=created, error=None)
            except ShopifyClientError as e:
                logger.warning(
                    "metafield_definition_failed",
                    namespace=definition["namespace"],
                    key=definition["key"],
                    error=e.message,
                )
                entry.update(ok=False, created=False, error=e.message)
            results.append(entry)
        return results
