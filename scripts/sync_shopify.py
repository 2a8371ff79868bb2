#!/usr/bin/env python3
"""Shopify sync script.

Runs the long sequential jobs outside the API process: projection
backfills, metafield definition setup and category page sync.

Usage:
    python scripts/sync_shopify.py definitions
    python scripts/sync_shopify.py projections --scope fitments
    python scripts/sync_shopify.py projections --product 123 --product 456
    python scripts/sync_shopify.py pages --create-only
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fitsync.application.page_sync_service import PageSyncService
from fitsync.application.projection_service import BackfillScope, ProjectionSynchronizer
from fitsync.catalog.repository import SqlCatalogStore
from fitsync.domain.value_objects import normalize_product_gid
from fitsync.infrastructure.config import EngineConfig, ShopConfig, settings
from fitsync.infrastructure.database import async_session_factory
from fitsync.infrastructure.logging_config import configure_logging
from fitsync.infrastructure.shopify_client import ShopifyAdminClient


async def run_definitions(shopify: ShopifyAdminClient, config: EngineConfig) -> bool:
    async with async_session_factory() as session:
        synchronizer = ProjectionSynchronizer(SqlCatalogStore(session), shopify, config)
        results = await synchronizer.ensure_definitions()

    for entry in results:
        mark = "✓" if entry["ok"] else "✗"
        state = "created" if entry["created"] else (entry["error"] or "exists")
        print(f"  {mark} {entry['namespace']}.{entry['key']}: {state}")
    return all(entry["ok"] for entry in results)


async def run_projections(
    shopify: ShopifyAdminClient,
    config: EngineConfig,
    scope: str,
    products: list[str],
) -> bool:
    gids = [normalize_product_gid(p) for p in products] or None
    async with async_session_factory() as session:
        synchronizer = ProjectionSynchronizer(SqlCatalogStore(session), shopify, config)
        report = await synchronizer.backfill(BackfillScope(scope), gids)

    print(f"  ✓ Products: {report.total_products}")
    print(f"  ✓ Updated: {report.updated}")
    print(f"  ✗ Failed: {report.failed}")
    for failure in report.failures:
        print(f"    - {failure['productGid']}: {failure['error']}")
    return report.failed == 0


async def run_pages(
    shopify: ShopifyAdminClient, config: EngineConfig, create_only: bool
) -> bool:
    async with async_session_factory() as session:
        service = PageSyncService(SqlCatalogStore(session), shopify, config)
        report = await service.sync(create_only=create_only)

    print(f"  ✓ Created: {report.created}")
    print(f"  ✓ Updated: {report.updated}")
    print(f"  ✓ Skipped: {report.skipped}")
    for failure in report.failures:
        print(f"  ✗ {failure['slug']}: {failure['error']}")
    return not report.failures


async def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Push local catalog state to Shopify")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("definitions", help="Create the projection metafield definitions")

    projections = subparsers.add_parser("projections", help="Rebuild product projections")
    projections.add_argument(
        "--scope",
        choices=[s.value for s in BackfillScope],
        default=BackfillScope.ALL.value,
        help="Products with category links, with fitments, or both (default: all)",
    )
    projections.add_argument(
        "--product",
        action="append",
        default=[],
        help="Rebuild only this product (GID or numeric ID); repeatable",
    )

    pages = subparsers.add_parser("pages", help="Create or update category pages")
    pages.add_argument(
        "--create-only",
        action="store_true",
        help="Don't update pages that already exist",
    )

    args = parser.parse_args()

    configure_logging(settings.log_level)
    shop = ShopConfig.from_settings(settings)
    config = EngineConfig.from_settings(settings)
    if not shop.is_configured:
        print("SHOPIFY_SHOP and SHOPIFY_ADMIN_TOKEN must be set")
        return 2

    print("=" * 60)
    print(f"fitsync: {args.command} -> {shop.domain}")
    print("=" * 60)

    shopify = ShopifyAdminClient(shop)
    try:
        if args.command == "definitions":
            ok = await run_definitions(shopify, config)
        elif args.command == "projections":
            ok = await run_projections(shopify, config, args.scope, args.product)
        else:
            ok = await run_pages(shopify, config, args.create_only)
    finally:
        await shopify.close()

    print("=" * 60)
    print("Done." if ok else "Finished with failures.")
    print("=" * 60)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
