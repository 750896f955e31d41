"""
Tests for operational endpoints and request middleware.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["gate"]["type"] == "LocalRoomGate"
    assert data["redis"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient):
    generated = await client.get("/")
    assert generated.headers["X-Request-ID"]
    assert generated.headers["X-Response-Time"].endswith("ms")

    echoed = await client.get("/", headers={"X-Request-ID": "abc123"})
    assert echoed.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient, directory):
    await client.get("/api/v1/holds/")

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_duration_seconds" in response.text
    assert "room_gate_wait_seconds" in response.text
