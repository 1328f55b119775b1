# tests/services/test_stats.py
"""Tests for guestbook statistics."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from guestbook.models import Message
from guestbook.repositories.message_repo import MessageRepository
from guestbook.services.errors import ValidationFailure
from guestbook.services.feed import FeedAggregator
from guestbook.services.stats import MAX_ACTIVITY_DAYS, StatsService


async def _backdate(repository: MessageRepository, message_id: int, days: int) -> None:
    async with repository.sessionmaker() as session, session.begin():
        await session.execute(
            update(Message)
            .where(Message.id == message_id)
            .values(created_at=datetime.now(timezone.utc) - timedelta(days=days))
        )


@pytest.mark.asyncio
async def test_summary_counts(feed: FeedAggregator, repository: MessageRepository) -> None:
    old = await feed.create_message("bob", "last week")
    fresh = await feed.create_message("carol", "today")
    await feed.add_reply(fresh.id, "dave", "welcome")
    await _backdate(repository, old.id, 3)

    summary = await StatsService(repository).summary()

    assert summary.total_messages == 2
    assert summary.today_messages == 1
    assert summary.total_replies == 1


@pytest.mark.asyncio
async def test_activity_is_oldest_first(feed: FeedAggregator, repository: MessageRepository) -> None:
    old = await feed.create_message("bob", "two days ago")
    fresh = await feed.create_message("carol", "today")
    await feed.add_reply(fresh.id, "dave", "welcome")
    await _backdate(repository, old.id, 2)

    points = await StatsService(repository).activity(days=3)

    today = datetime.now(timezone.utc).date()
    assert [p.date for p in points] == [
        (today - timedelta(days=offset)).isoformat() for offset in (2, 1, 0)
    ]
    assert [p.messages for p in points] == [1, 0, 1]
    assert [p.replies for p in points] == [0, 0, 1]
    assert points[-1].label == today.strftime("%m/%d")


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [0, MAX_ACTIVITY_DAYS + 1])
async def test_activity_rejects_bad_range(repository: MessageRepository, days: int) -> None:
    with pytest.raises(ValidationFailure):
        await StatsService(repository).activity(days=days)
