"""Tests for the health endpoint."""

from unittest.mock import AsyncMock, patch

import pytest


@pytest.mark.asyncio
async def test_health_ok(async_client):
    with patch("socialhub.api.health.check_db_connection", AsyncMock(return_value=True)):
        response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


@pytest.mark.asyncio
async def test_health_database_down(async_client):
    with patch("socialhub.api.health.check_db_connection", AsyncMock(return_value=False)):
        response = await async_client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_health_counts_online_users(async_client, user_factory):
    from socialhub.main import app

    user = await user_factory()
    app.state.connections.add(user.id, "conn-1")
    app.state.connections.add(user.id, "conn-2")

    with patch("socialhub.api.health.check_db_connection", AsyncMock(return_value=True)):
        response = await async_client.get("/health")
    assert response.json()["online_users"] == 1
