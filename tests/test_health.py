"""Tests for health and root endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Test basic health check."""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_detailed_health_without_redis(client: AsyncClient):
    """Test that Redis is reported as disabled when not configured."""
    response = await client.get("/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["redis"] == "disabled"
    assert data["database"] == "healthy"


@pytest.mark.asyncio
async def test_ping(client: AsyncClient):
    """Test ping endpoint."""
    response = await client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    """Test root endpoint."""
    response = await client.get("/")

    assert response.status_code == 200
    assert "docs" in response.json()


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    """Test that the request id is echoed back."""
    response = await client.get("/ping", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient):
    """Test that framework 404s share the error shape."""
    response = await client.get("/nope")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["path"] == "/nope"
