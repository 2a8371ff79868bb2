"""Tests for admin operations endpoints."""

from fastapi.testclient import TestClient

from fitsync.infrastructure.shopify_client import ShopifyClientError


def _seed(client: TestClient) -> str:
    category = client.post("/categories", json={"title": "Intake", "slug": "intake"}).json()
    client.post("/product-categories", json={"productId": "1", "categoryId": category["id"]})
    client.post("/fitments", json={"productId": "2", "make": "Honda", "model": "Civic"})
    return category["id"]


class TestProjections:
    """Tests for backfill, rebuild and verify."""

    def test_requires_auth(self, client: TestClient) -> None:
        assert client.post("/admin/backfill").status_code == 401

    def test_backfill_preview_and_run(self, auth_client: TestClient, shopify) -> None:
        _seed(auth_client)
        shopify.write_metafields.reset_mock()

        preview = auth_client.get("/admin/backfill").json()
        assert preview == {"scopes": {"categories": 1, "fitments": 1, "all": 2}}

        report = auth_client.post("/admin/backfill", json={"scope": "all"}).json()
        assert report["ok"] is True
        assert report["totalProducts"] == 2
        assert shopify.write_metafields.await_count == 2

    def test_backfill_explicit_products(self, auth_client: TestClient, shopify) -> None:
        report = auth_client.post("/admin/backfill", json={"productGids": ["5", "5"]}).json()

        assert report["totalProducts"] == 1
        assert shopify.write_metafields.call_args.args[0] == "gid://shopify/Product/5"

    def test_backfill_collects_failures(self, auth_client: TestClient, shopify) -> None:
        _seed(auth_client)
        shopify.write_metafields.side_effect = ShopifyClientError("throttled")

        report = auth_client.post("/admin/backfill").json()

        assert report["ok"] is False
        assert report["failed"] == 2

    def test_rebuild_failure_returns_502(self, auth_client: TestClient, shopify) -> None:
        shopify.write_metafields.side_effect = ShopifyClientError("Admin GraphQL HTTP 500: boom", 500)

        response = auth_client.post("/admin/projections/1/rebuild")

        assert response.status_code == 502
        assert response.json()["error_code"] == "EXTERNAL_WRITE_FAILED"

    def test_rebuild_and_verify(self, auth_client: TestClient, shopify) -> None:
        _seed(auth_client)

        rebuilt = auth_client.post("/admin/projections/1/rebuild").json()
        assert rebuilt["ok"] is True
        assert rebuilt["categorySlugs"] == ["intake"]

        drift = auth_client.get("/admin/projections/1/verify").json()
        assert drift["inSync"] is False

    def test_ensure_definitions(self, auth_client: TestClient, shopify) -> None:
        response = auth_client.post("/admin/ensure-metafield-definitions").json()
        assert response["ok"] is True
        assert len(response["results"]) == 2


class TestPagesAndIngestion:
    """Tests for page sync, category mapping and ingestion."""

    def test_sync_pages(self, auth_client: TestClient, shopify) -> None:
        _seed(auth_client)

        preview = auth_client.get("/admin/sync-pages").json()
        assert preview["count"] == 1

        report = auth_client.post("/admin/sync-pages", json={"createOnly": True}).json()
        assert report["ok"] is True
        assert report["created"] == 1
        assert shopify.create_page.await_args.kwargs["handle"] == "intake"

    def test_mapping_and_ingest(self, auth_client: TestClient, shopify) -> None:
        category_id = _seed(auth_client)

        response = auth_client.post(
            "/admin/category-mappings",
            json={"sourcePath": " Air Intakes ", "categoryId": category_id},
        )
        assert response.json() == {"ok": True, "sourcePath": "Air Intakes", "categoryId": category_id}
        assert (
            auth_client.post(
                "/admin/category-mappings", json={"sourcePath": "X", "categoryId": "missing"}
            ).status_code
            == 404
        )

        report = auth_client.post(
            "/admin/ingest",
            json={
                "records": [
                    {
                        "sku": "AI-1",
                        "title": "Cold Air Intake",
                        "categoryPath": "Air Intakes",
                        "make": "Honda",
                        "model": "Civic",
                    }
                ]
            },
        ).json()

        assert report["ok"] is True
        assert report["results"][0]["productGid"] == "gid://shopify/Product/900"
        assert report["results"][0]["linkedCategoryId"] == category_id

    def test_diagnostics(self, auth_client: TestClient) -> None:
        _seed(auth_client)

        stats = auth_client.get("/admin/diagnostics").json()

        assert stats["categories"] == 1
        assert stats["productCategoryLinks"] == 1
        assert stats["fitments"] == 1
        assert [c["slug"] for c in stats["topLevel"]] == ["intake"]
