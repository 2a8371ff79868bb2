"""Tests for category endpoints."""

import json

from fastapi.testclient import TestClient


def _create(client: TestClient, title: str, slug: str, parent_id: str | None = None) -> dict:
    response = client.post("/categories", json={"title": title, "slug": slug, "parentId": parent_id})
    assert response.status_code == 201
    return response.json()


class TestCategoryCrud:
    """Tests for category CRUD."""

    def test_create_and_list_tree(self, auth_client: TestClient) -> None:
        exhaust = _create(auth_client, "Exhaust", "exhaust")
        _create(auth_client, "Downpipes", "downpipes", exhaust["id"])
        _create(auth_client, "Brakes", "brakes")

        tree = auth_client.get("/categories").json()
        assert [n["slug"] for n in tree] == ["brakes", "exhaust"]
        assert [c["slug"] for c in tree[1]["children"]] == ["downpipes"]
        assert tree[1]["children"][0]["parentId"] == exhaust["id"]

        flat = auth_client.get("/categories/flat").json()
        assert [c["slug"] for c in flat] == ["brakes", "exhaust", "downpipes"]

    def test_get_unknown_returns_404(self, auth_client: TestClient) -> None:
        response = auth_client.get("/categories/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_duplicate_slug_returns_409(self, auth_client: TestClient) -> None:
        _create(auth_client, "Exhaust", "exhaust")
        response = auth_client.post("/categories", json={"title": "Other", "slug": "exhaust"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE"

    def test_cycle_returns_400(self, auth_client: TestClient) -> None:
        exhaust = _create(auth_client, "Exhaust", "exhaust")
        downpipes = _create(auth_client, "Downpipes", "downpipes", exhaust["id"])

        response = auth_client.put(f"/categories/{exhaust['id']}", json={"parentId": downpipes["id"]})

        assert response.status_code == 400
        assert response.json()["error_code"] == "CYCLE_DETECTED"

    def test_delete_guards(self, auth_client: TestClient) -> None:
        exhaust = _create(auth_client, "Exhaust", "exhaust")
        downpipes = _create(auth_client, "Downpipes", "downpipes", exhaust["id"])
        auth_client.post("/product-categories", json={"productId": "1", "categoryId": downpipes["id"]})

        assert auth_client.delete(f"/categories/{exhaust['id']}").json()["error_code"] == "HAS_CHILDREN"
        response = auth_client.delete(f"/categories/{downpipes['id']}")
        assert response.status_code == 409
        assert response.json()["error_code"] == "IN_USE"

        assert auth_client.delete("/categories/missing").json() == {"ok": True, "removed": 0}


class TestSubtreeResync:
    """Moving or re-slugging a category re-pushes linked products."""

    def test_reslug_parent_updates_child_projection(
        self, auth_client: TestClient, shopify, last_write
    ) -> None:
        exhaust = _create(auth_client, "Exhaust", "exhaust")
        downpipes = _create(auth_client, "Downpipes", "downpipes", exhaust["id"])
        auth_client.post("/product-categories", json={"productId": "1", "categoryId": downpipes["id"]})

        response = auth_client.put(f"/categories/{exhaust['id']}", json={"slug": "exhaust-systems"})

        assert response.status_code == 200
        body = response.json()
        assert body["category"]["slug"] == "exhaust-systems"
        assert body["syncs"] == [
            {"productGid": "gid://shopify/Product/1", "ok": True, "error": None}
        ]
        _, values = last_write()
        assert json.loads(values["taxonomy.category_slugs"]) == ["downpipes", "exhaust-systems"]
