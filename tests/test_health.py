"""Tests for health check endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from fitsync.infrastructure.config import settings
from fitsync.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


def test_health_check(client: TestClient) -> None:
    """Test health endpoint returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "fitsync"
    assert "version" in data


def test_readiness_with_memory_store(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "store_backend", "memory")
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "store": "memory"}


def test_readiness_database_down(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "store_backend", "sql")
    with patch(
        "fitsync.api.health.check_connection",
        new=AsyncMock(side_effect=OSError("connection refused")),
    ):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "unavailable"
