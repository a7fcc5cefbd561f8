"""Tests for the health endpoint."""
from httpx import AsyncClient


async def test_health_reports_database(async_client: AsyncClient):
    response = await async_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}
