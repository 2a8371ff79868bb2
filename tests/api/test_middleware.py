"""Tests for API middleware."""

from fastapi.testclient import TestClient

from fitsync.infrastructure.config import settings


class TestRequestIdMiddleware:
    """Tests for request ID correlation middleware."""

    def test_generates_request_id_if_not_provided(self, client: TestClient) -> None:
        """Should generate request ID if not in request headers."""
        response = client.get("/health")
        assert response.status_code == 200
        # UUID format
        assert len(response.headers["X-Request-ID"]) == 36

    def test_uses_provided_request_id(self, client: TestClient) -> None:
        """Should use request ID from request headers."""
        custom_id = "custom-request-id-12345"
        response = client.get("/health", headers={"X-Request-ID": custom_id})
        assert response.headers["X-Request-ID"] == custom_id

    def test_error_body_carries_request_id(self, auth_client: TestClient) -> None:
        response = auth_client.get("/categories/missing", headers={"X-Request-ID": "req-1"})
        assert response.status_code == 404
        assert response.json()["request_id"] == "req-1"


class TestApiKeyMiddleware:
    """Tests for API key authentication middleware."""

    def test_public_endpoints_dont_require_auth(self, client: TestClient) -> None:
        """Health and storefront endpoints work without authentication."""
        assert client.get("/health").status_code == 200
        assert client.get("/ready").status_code == 200
        assert client.get("/public/categories").status_code == 200

    def test_protected_endpoints_require_auth(self, client: TestClient) -> None:
        response = client.post("/categories", json={"title": "Exhaust", "slug": "exhaust"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_invalid_auth_format_rejected(self, client: TestClient) -> None:
        response = client.get("/categories", headers={"Authorization": "InvalidFormat"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_invalid_api_key_rejected(self, client: TestClient) -> None:
        response = client.get("/categories", headers={"Authorization": "Bearer invalid-key"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_API_KEY"

    def test_valid_api_key_accepted(self, client: TestClient) -> None:
        response = client.get(
            "/categories",
            headers={"Authorization": f"Bearer {settings.api_key}"},
        )
        assert response.status_code == 200
        assert response.json() == []
