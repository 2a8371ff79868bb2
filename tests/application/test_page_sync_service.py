"""Tests for category page sync."""

import pytest

from fitsync.application.page_sync_service import PageSyncService, page_body
from fitsync.domain.entities import Category
from fitsync.infrastructure.shopify_client import ShopifyClientError


@pytest.fixture
def pages(store, shopify, config) -> PageSyncService:
    return PageSyncService(store, shopify, config)


def test_page_body_escapes_description() -> None:
    category = Category(id="c", title="T", slug="t", description="Pipes & <more>")
    assert page_body(category) == "<p>Pipes &amp; &lt;more&gt;</p>"
    assert page_body(Category(id="c", title="T", slug="t")) == ""


class TestSync:
    """Tests for page create/update runs."""

    @pytest.mark.asyncio
    async def test_preview_in_tree_order(self, pages, exhaust_tree) -> None:
        preview = await pages.preview()
        assert [p["handle"] for p in preview] == ["exhaust", "downpipes", "intake"]

    @pytest.mark.asyncio
    async def test_creates_missing_pages(self, pages, store, shopify, exhaust_tree) -> None:
        report = await pages.sync()

        assert report.created == 3
        assert shopify.create_page.await_count == 3
        first = shopify.create_page.await_args_list[0].kwargs
        assert first["handle"] == "exhaust"
        assert first["template_suffix"] == "category"

        exhaust = await store.get_category("cat-exhaust")
        assert exhaust.shopify_page_id == "gid://shopify/Page/1"
        assert exhaust.last_synced_at is not None

    @pytest.mark.asyncio
    async def test_updates_or_skips_existing(self, pages, shopify, exhaust_tree) -> None:
        shopify.find_page_id_by_handle.return_value = "gid://shopify/Page/7"

        report = await pages.sync()
        assert report.updated == 3
        shopify.update_page.assert_awaited()

        shopify.update_page.reset_mock()
        report = await pages.sync(create_only=True)
        assert report.skipped == 3
        assert {a["action"] for a in report.actions} == {"skip (exists)"}
        shopify.update_page.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_run(self, pages, shopify, exhaust_tree) -> None:
        shopify.create_page.side_effect = [
            "gid://shopify/Page/1",
            ShopifyClientError("pageCreate userErrors: handle taken"),
            "gid://shopify/Page/3",
        ]

        report = await pages.sync()

        assert report.created == 2
        assert report.failures == [
            {"slug": "downpipes", "error": "pageCreate userErrors: handle taken"}
        ]
        assert report.to_dict()["failed"] == 1
