# tests/v1/test_system.py
"""Tests for statistics endpoints."""

import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_stats(client: AsyncClient) -> None:
    """Counters reflect posted messages and replies."""
    r = await client.post("/api/v1/messages/", json={"username": "bob", "content": "hi"})
    message_id = r.json()["id"]
    await client.post(
        f"/api/v1/messages/{message_id}/replies", json={"username": "carol", "content": "hey"}
    )

    r = await client.get("/api/v1/system/stats")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"total_messages": 1, "today_messages": 1, "total_replies": 1}


@pytest.mark.asyncio
async def test_activity(client: AsyncClient) -> None:
    await client.post("/api/v1/messages/", json={"username": "bob", "content": "hi"})

    r = await client.get("/api/v1/system/activity", params={"days": 5})
    assert r.status_code == status.HTTP_200_OK
    points = r.json()
    assert len(points) == 5
    assert points[-1]["messages"] == 1
    assert sum(p["messages"] for p in points) == 1


@pytest.mark.asyncio
async def test_activity_range(client: AsyncClient) -> None:
    r = await client.get("/api/v1/system/activity", params={"days": 0})
    assert r.status_code == 422
