"""
Health check endpoint tests.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_ready_check(client: AsyncClient):
    """Ready endpoint should report database and Redis as reachable."""
    with patch("app.main.redis_is_ready", AsyncMock(return_value=True)):
        response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": True, "redis": True}}


@pytest.mark.asyncio
async def test_ready_check_redis_down(client: AsyncClient):
    """Ready endpoint should return 503 when Redis does not answer."""
    with patch("app.main.redis_is_ready", AsyncMock(return_value=False)):
        response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json()["checks"] == {"database": True, "redis": False}


@pytest.mark.asyncio
async def test_api_root(client: AsyncClient):
    """API v1 root should return version and endpoint list."""
    response = await client.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/submissions" in data["endpoints"]
