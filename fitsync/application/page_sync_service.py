"""Category page sync.

Upserts one Shopify online-store page per category so the storefront has
a landing page for every slug. Pages use the category slug as handle and
the ``category`` template suffix.
"""

import asyncio
import html
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from fitsync.catalog.store import CatalogStore
from fitsync.catalog.tree import CategoryTree, flatten
from fitsync.domain.entities import Category
from fitsync.infrastructure.config import EngineConfig
from fitsync.infrastructure.shopify_client import ShopifyAdminClient, ShopifyClientError

logger = structlog.get_logger()

PAGE_TEMPLATE_SUFFIX = "category"


@dataclass
class PageSyncReport:
    """Summary of a page sync run."""

    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failures: list[dict[str, str]] = field(default_factory=list)
    actions: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": len(self.failures),
            "failures": self.failures,
            "actions": self.actions,
        }


def page_body(category: Category) -> str:
    """HTML body of a category page."""
    if not category.description:
        return ""
    return f"<p>{html.escape(category.description)}</p>"


class PageSyncService:
    """Synchronize category landing pages to Shopify.

    Example usage:
        service = PageSyncService(store, shopify, EngineConfig())
        preview = await service.preview()
        report = await service.sync(create_only=True)
    """

    def __init__(
        self,
        store: CatalogStore,
        shopify: ShopifyAdminClient,
        config: EngineConfig | None = None,
    ) -> None:
        self.store = store
        self.shopify = shopify
        self.config = config or EngineConfig()
        self.tree = CategoryTree(store, self.config.max_hierarchy_depth)

    async def _ordered_categories(self) -> list[Category]:
        return flatten(await self.tree.forest())

    async def preview(self) -> list[dict[str, Any]]:
        """Categories that would be synced, in sync order."""
        return [
            {
                "id": c.id,
                "title": c.title,
                "handle": c.slug,
                "shopifyPageId": c.shopify_page_id,
                "lastSyncedAt": c.last_synced_at.isoformat() if c.last_synced_at else None,
            }
            for c in await self._ordered_categories()
        ]

    async def sync(self, create_only: bool = False) -> PageSyncReport:
        """Create or update every category page, one at a time.

        Args:
            create_only: Leave existing pages untouched.

        Returns:
            Page sync report; one failing page never stops the run.
        """
        categories = await self._ordered_categories()
        report = PageSyncReport(total=len(categories))

        for i, category in enumerate(categories):
            if i > 0 and self.config.page_sync_delay_seconds > 0:
                await asyncio.sleep(self.config.page_sync_delay_seconds)
            try:
                action, page_id = await self._sync_one(category, create_only)
            except ShopifyClientError as e:
                logger.warning("page_sync_failed", slug=category.slug, error=e.message)
                report.failures.append({"slug": category.slug, "error": e.message})
                continue

            report.actions.append({"slug": category.slug, "action": action})
            if action == "create":
                report.created += 1
            elif action == "update":
                report.updated += 1
            else:
                report.skipped += 1

            if page_id is not None:
                await self.store.mark_category_synced(
                    category.id, page_id, datetime.now(timezone.utc)
                )
                await self.store.commit()

        logger.info(
            "page_sync_finished",
            created=report.created,
            updated=report.updated,
            skipped=report.skipped,
            failed=len(report.failures),
        )
        return report

    async def _sync_one(
        self, category: Category, create_only: bool
    ) -> tuple[str, str | None]:
        page_id = await self.shopify.find_page_id_by_handle(category.slug)
        body = page_body(category)

        if page_id is None:
            page_id = await self.shopify.create_page(
                title=category.title,
                handle=category.slug,
                template_suffix=PAGE_TEMPLATE_SUFFIX,
                body=body,
            )
            return "create", page_id

        if create_only:
            return "skip (exists)", page_id

        await self.shopify.update_page(
            page_id,
            title=category.title,
            template_suffix=PAGE_TEMPLATE_SUFFIX,
            body=body,
        )
        return "update", page_id
