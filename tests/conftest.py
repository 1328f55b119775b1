# tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from guestbook.api.v1.dependencies import get_context
from guestbook.core.settings import Settings
from guestbook.db.session import (
    create_engine_for_url,
    create_sessionmaker,
    create_tables,
    drop_tables,
)
from guestbook.main import app as fastapi_app
from guestbook.repositories.message_repo import MessageRepository
from guestbook.schemas.message import MessageOut
from guestbook.services.context import GuestbookContext
from guestbook.services.feed import FeedAggregator
from guestbook.services.identity import MemoryIdentityStore
from guestbook.services.realtime import ChangeNotifier

TEST_USERNAME = "alice"

MessageFactory = Callable[..., Awaitable[MessageOut]]


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file per test."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'guestbook.db'}",
        identity_file=str(tmp_path / "identity.json"),
        page_size=10,
        max_content_length=200,
        popular_limit=5,
        storage_access_key=None,
        storage_secret_key=None,
    )


@pytest_asyncio.fixture()
async def engine(test_settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine_for_url(test_settings.database_url)
    await create_tables(engine)
    try:
        yield engine
    finally:
        await drop_tables(engine)
        await engine.dispose()


@pytest.fixture()
def repository(engine: AsyncEngine) -> MessageRepository:
    return MessageRepository(create_sessionmaker(engine))


@pytest.fixture()
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture()
def context(
    test_settings: Settings,
    repository: MessageRepository,
    notifier: ChangeNotifier,
) -> GuestbookContext:
    """Context acting for TEST_USERNAME."""
    return GuestbookContext(
        settings=test_settings,
        repository=repository,
        notifier=notifier,
        identity=MemoryIdentityStore(TEST_USERNAME),
    )


@pytest.fixture()
def feed(context: GuestbookContext) -> FeedAggregator:
    return FeedAggregator(context)


@pytest.fixture()
def anonymous_feed(context: GuestbookContext) -> FeedAggregator:
    """Aggregator for a visitor who has not chosen a display name."""
    return FeedAggregator(context.with_identity(MemoryIdentityStore()))


@pytest.fixture()
def make_message(feed: FeedAggregator) -> MessageFactory:
    """Return a coroutine factory that posts messages through the aggregator."""
    counter = iter(range(1, 10_000))

    async def _make(
        content: str | None = None, username: str = "visitor", **kwargs: object
    ) -> MessageOut:
        body = content if content is not None else f"Message {next(counter)}"
        return await feed.create_message(username, body, **kwargs)

    return _make


@pytest.fixture()
def app(context: GuestbookContext) -> Iterator[FastAPI]:
    fastapi_app.dependency_overrides[get_context] = lambda: context
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.pop(get_context, None)


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
