# tests/test_health.py
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from guestbook.db.session import drop_tables
from guestbook.main import app as fastapi_app


@pytest.mark.asyncio
async def test_root_responds(client: Any) -> None:
    """Verify that the root endpoint describes the API."""
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "Guestbook API"


@pytest.mark.asyncio
async def test_health_ok(client: Any) -> None:
    r = await client.get("/health")
    assert r.json() == {"status": "ok", "database": "ok"}


@pytest.mark.asyncio
async def test_health_reports_missing_tables(client: Any, engine: Any) -> None:
    await drop_tables(engine)

    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "degraded", "database": "missing_relation"}


@pytest.mark.asyncio
async def test_unconfigured_app_is_unavailable() -> None:
    """Before startup builds a context, API calls answer 503."""
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as bare:
        r = await bare.get("/api/v1/messages/")
    assert r.status_code == 503
