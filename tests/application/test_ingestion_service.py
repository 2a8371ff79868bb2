"""Tests for distributor ingestion."""

import pytest

from fitsync.application.ingestion_service import IngestionService
from fitsync.domain.entities import SourceRecord
from fitsync.domain.exceptions import NotFoundError, ValidationError
from fitsync.infrastructure.shopify_client import ShopifyClientError


@pytest.fixture
def ingestion(store, shopify, linkage, config) -> IngestionService:
    return IngestionService(store, shopify, linkage, config)


class TestCategoryMapping:
    """Tests for distributor category mappings."""

    @pytest.mark.asyncio
    async def test_map_and_validate(self, ingestion, store, exhaust_tree) -> None:
        await ingestion.map_category(" Exhaust > Downpipes ", "cat-downpipes")
        assert await store.get_category_mapping("Exhaust > Downpipes") == "cat-downpipes"

        with pytest.raises(ValidationError):
            await ingestion.map_category("  ", "cat-downpipes")
        with pytest.raises(NotFoundError):
            await ingestion.map_category("Intake", "missing")


class TestIngest:
    """Tests for SKU upserts."""

    @pytest.mark.asyncio
    async def test_new_record_creates_links_and_fits(self, ingestion, store, shopify, exhaust_tree) -> None:
        await ingestion.map_category("Exhaust > Downpipes", "cat-downpipes")
        record = SourceRecord(
            sku="VR-1",
            title="Catless Downpipe",
            category_path="Exhaust > Downpipes",
            make="Honda",
            model="Civic",
            year_from=2017,
            year_to=2021,
            tags=["sale"],
        )

        report = await ingestion.ingest([record])

        assert report.imported == 1
        item = report.results[0]
        assert item.created is True
        assert item.product_gid == "gid://shopify/Product/900"
        assert item.linked_category_id == "cat-downpipes"
        assert item.fitment_created is True
        assert shopify.create_product.await_args.kwargs["tags"] == ["imported", "sale"]
        assert await store.linked_category_ids("gid://shopify/Product/900") == ["cat-downpipes"]

    @pytest.mark.asyncio
    async def test_known_sku_is_not_recreated(self, ingestion, shopify) -> None:
        record = SourceRecord(sku="VR-1", title="Downpipe")
        await ingestion.ingest([record])
        report = await ingestion.ingest([record])

        assert shopify.create_product.await_count == 1
        assert report.results[0].created is False
        assert report.results[0].product_gid == "gid://shopify/Product/900"

    @pytest.mark.asyncio
    async def test_failures_are_per_record(self, ingestion, shopify) -> None:
        shopify.create_product.side_effect = [
            ShopifyClientError("productCreate userErrors: title invalid"),
            "gid://shopify/Product/901",
        ]

        report = await ingestion.ingest(
            [
                SourceRecord(sku="BAD", title="x"),
                SourceRecord(sku="", title="no sku"),
                SourceRecord(sku="OK", title="Fine"),
            ]
        )

        assert report.imported == 1
        assert report.failed == 2
        assert report.results[0].error == "productCreate userErrors: title invalid"
        assert report.to_dict()["total"] == 3
