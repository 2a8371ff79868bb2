"""Ingestion application service.

Turns normalized distributor records into Shopify products and local
links. Records are processed one at a time:

1. Find the product already created for the SKU, or create it in Shopify
2. Record the SKU → product mapping
3. Link the category mapped from the record's category path (append)
4. Upsert a fitment row when make and model are present

Steps 3 and 4 go through ``LinkageService``, so projections are rebuilt
as usual.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import structlog

from fitsync.application.linkage_service import FitmentInput, LinkageService
from fitsync.catalog.store import CatalogStore
from fitsync.domain.entities import SourceRecord
from fitsync.domain.exceptions import DomainError, NotFoundError, ValidationError
from fitsync.infrastructure.config import EngineConfig
from fitsync.infrastructure.shopify_client import ShopifyAdminClient, ShopifyClientError

logger = structlog.get_logger()

DEFAULT_TAGS = ["imported"]


@dataclass
class IngestItemResult:
    """Outcome of ingesting one record."""

    sku: str
    success: bool
    product_gid: str | None = None
    created: bool = False
    linked_category_id: str | None = None
    fitment_created: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sku": self.sku,
            "success": self.success,
            "productGid": self.product_gid,
            "created": self.created,
            "linkedCategoryId": self.linked_category_id,
            "fitmentCreated": self.fitment_created,
            "error": self.error,
        }


@dataclass
class IngestReport:
    """Summary of an ingestion run."""

    results: list[IngestItemResult] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.results),
            "imported": self.imported,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class IngestionService:
    """Upsert distributor records by SKU.

    Example usage:
        service = IngestionService(store, shopify, linkage)
        report = await service.ingest([SourceRecord(sku="VR-1", title="Downpipe")])
    """

    def __init__(
        self,
        store: CatalogStore,
        shopify: ShopifyAdminClient,
        linkage: LinkageService,
        config: EngineConfig | None = None,
    ) -> None:
        self.store = store
        self.shopify = shopify
        self.linkage = linkage
        self.config = config or EngineConfig()

    async def map_category(self, source_path: str, category_id: str | None) -> None:
        """Map (or unmap) a distributor category path to a local category.

        Raises:
            ValidationError: If the path is blank.
            NotFoundError: If the category does not exist.
        """
        source_path = (source_path or "").strip()
        if not source_path:
            raise ValidationError("Category path is required")
        if category_id and await self.store.get_category(category_id) is None:
            raise NotFoundError("Category", category_id)
        await self.store.save_category_mapping(source_path, category_id or None)
        await self.store.commit()
        logger.info("category_mapped", source_path=source_path, category_id=category_id)

    async def ingest(self, records: list[SourceRecord]) -> IngestReport:
        """Ingest records sequentially, collecting per-SKU failures."""
        report = IngestReport()
        for i, record in enumerate(records):
            if i > 0 and self.config.ingest_delay_seconds > 0:
                await asyncio.sleep(self.config.ingest_delay_seconds)
            try:
                result = await self.ingest_one(record)
            except (ShopifyClientError, DomainError) as e:
                await self.store.rollback()
                message = e.message
                logger.warning("ingest_failed", sku=record.sku, error=message)
                result = IngestItemResult(sku=record.sku, success=False, error=message)
            report.results.append(result)

        logger.info("ingest_finished", imported=report.imported, failed=report.failed)
        return report

    async def ingest_one(self, record: SourceRecord) -> IngestItemResult:
        """Ingest a single record.

        Raises:
            ValidationError: If the SKU or title is blank.
            ShopifyClientError: If the product cannot be created.
        """
        sku = (record.sku or "").strip()
        if not sku or not (record.title or "").strip():
            raise ValidationError("sku and title are required", details={"sku": sku})

        result = IngestItemResult(sku=sku, success=True)

        product_gid = await self.store.get_product_gid_for_sku(sku)
        if product_gid is None:
            product_gid = await self.shopify.create_product(
                title=record.title.strip(),
                description_html=record.description,
                vendor=record.vendor,
                tags=list(dict.fromkeys([*DEFAULT_TAGS, *record.tags])),
            )
            result.created = True
        await self.store.save_sku(sku, product_gid, record.title.strip())
        await self.store.commit()
        result.product_gid = product_gid

        if record.category_path:
            category_id = await self.store.get_category_mapping(record.category_path.strip())
            if category_id:
                await self.linkage.link(product_gid, [category_id], replace=False)
                result.linked_category_id = category_id

        if (record.make or "").strip() and (record.model or "").strip():
            fitment = await self.linkage.upsert_fitment(
                FitmentInput(
                    product_gid=product_gid,
                    make=record.make or "",
                    model=record.model or "",
                    year_from=record.year_from,
                    year_to=record.year_to,
                )
            )
            result.fitment_created = fitment.created

        logger.info(
            "record_ingested",
            sku=sku,
            product_gid=product_gid,
            created=result.created,
        )
        return result
