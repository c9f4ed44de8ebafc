"""Tests for the /health and index endpoints."""

import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    """GET /health should return healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["status"] == "healthy"
    assert data["postgres"] == "ok"
    assert data["redis"] == "ok"


@pytest.mark.asyncio
async def test_index_lists_endpoints(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert "POST /api/jobs/upload" in response.json()["endpoints"]


@pytest.mark.asyncio
async def test_unknown_route_uses_the_error_envelope(client):
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Route not found"}
