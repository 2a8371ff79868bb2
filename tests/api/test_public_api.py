"""Tests for storefront endpoints."""

import pytest
from fastapi.testclient import TestClient

from fitsync.infrastructure.shopify_client import ProductSummary


@pytest.fixture
def catalog(auth_client: TestClient) -> dict[str, str]:
    """Downpipes with a Civic part and a Camry part, plus the Honda terms."""
    exhaust = auth_client.post("/categories", json={"title": "Exhaust", "slug": "exhaust"}).json()
    auth_client.post(
        "/categories", json={"title": "Downpipes", "slug": "downpipes", "parentId": exhaust["id"]}
    )
    auth_client.post("/categories", json={"title": "Intake", "slug": "intake"})

    honda = auth_client.post("/fit-terms", json={"type": "MAKE", "name": "Honda"}).json()
    civic = auth_client.post(
        "/fit-terms", json={"type": "MODEL", "name": "Civic", "parentId": honda["id"]}
    ).json()

    auth_client.post("/product-categories", json={"productId": "1", "slugs": ["downpipes"]})
    auth_client.post("/product-categories", json={"productId": "2", "slugs": ["downpipes", "intake"]})
    auth_client.post(
        "/fitments",
        json={"productId": "1", "make": "Honda", "model": "Civic", "yearFrom": 2016, "yearTo": 2020},
    )
    auth_client.post("/fitments", json={"productId": "2", "make": "Toyota", "model": "Camry"})
    return {"honda": honda["id"], "civic": civic["id"]}


class TestPublicCategories:
    """Tests for navigation data."""

    def test_tree_and_flat_without_auth(self, client: TestClient, catalog) -> None:
        tree = client.get("/public/categories").json()
        assert [n["slug"] for n in tree] == ["exhaust", "intake"]

        flat = client.get("/public/categories-flat").json()
        assert [c["slug"] for c in flat] == ["exhaust", "downpipes", "intake"]


class TestCategoryCounts:
    """Tests for per-category counts."""

    def test_counts_without_vehicle(self, client: TestClient, catalog) -> None:
        response = client.get("/public/category-counts", params={"slug": "downpipes,intake,ghost"})
        assert response.json()["results"] == [
            {"slug": "downpipes", "count": 2},
            {"slug": "intake", "count": 1},
        ]

    def test_counts_for_selected_vehicle(self, client: TestClient, catalog) -> None:
        response = client.get(
            "/public/category-counts",
            params=[
                ("slug", "downpipes"),
                ("slug", "intake"),
                ("year", "2018"),
                ("makeId", catalog["honda"]),
                ("modelId", catalog["civic"]),
            ],
        )
        assert response.json()["results"] == [
            {"slug": "downpipes", "count": 1},
            {"slug": "intake", "count": 0},
        ]


class TestProductsBySlug:
    """Tests for filtered category listings."""

    def test_vehicle_filter(self, client: TestClient, catalog) -> None:
        response = client.get(
            "/public/products-by-slug",
            params={"slug": "downpipes", "year": 2018, "makeId": "Honda", "hydrate": "false"},
        )
        body = response.json()
        assert body["productGids"] == ["gid://shopify/Product/1"]
        assert body["count"] == 1
        assert body["products"] == []

    def test_year_outside_range(self, client: TestClient, catalog) -> None:
        response = client.get(
            "/public/products-by-slug",
            params={"slug": "downpipes", "year": 2021, "makeId": catalog["honda"], "hydrate": "false"},
        )
        assert response.json()["productGids"] == []

    def test_hydrated_products(self, client: TestClient, catalog, shopify) -> None:
        shopify.read_products.return_value = [
            ProductSummary(
                id="gid://shopify/Product/2", handle="camry-dp", title="Camry DP", image=None, price=None
            ),
            ProductSummary(
                id="gid://shopify/Product/1", handle="civic-dp", title="Civic DP", image=None, price="1.0 USD"
            ),
        ]

        body = client.get("/public/products-by-slug", params={"slug": "downpipes"}).json()

        assert [p["handle"] for p in body["products"]] == ["civic-dp", "camry-dp"]

    def test_missing_slug(self, client: TestClient) -> None:
        response = client.get("/public/products-by-slug", params={"slug": " "})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestFitmentFilter:
    """Tests for filtering arbitrary product lists."""

    def test_filter_by_vehicle(self, client: TestClient, catalog) -> None:
        response = client.get(
            "/public/fitment-filter",
            params={"productGids": "1,2,3", "makeId": catalog["honda"], "modelId": catalog["civic"]},
        )
        assert response.json() == {"allowedProductGids": ["gid://shopify/Product/1"]}

    def test_no_vehicle_allows_everything(self, client: TestClient) -> None:
        response = client.get("/public/fitment-filter", params={"productGids": "3"})
        assert response.json()["allowedProductGids"] == ["gid://shopify/Product/3"]
