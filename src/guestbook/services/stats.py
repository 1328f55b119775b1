"""Guestbook activity counters."""

from __future__ import annotations

import asyncio
from datetime import datetime, time, timedelta, timezone

from guestbook.repositories.message_repo import MessageRepository
from guestbook.schemas.feed import ActivityPoint, StatsSummary
from guestbook.services.errors import BACKEND_ERRORS, QueryFailure, ValidationFailure, persistence_failure

MAX_ACTIVITY_DAYS = 90


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)


class StatsService:
    """Counts messages and replies overall and per UTC day."""

    def __init__(self, repository: MessageRepository) -> None:
        self.repository = repository

    async def summary(self, now: datetime | None = None) -> StatsSummary:
        """Return total messages, messages posted today and total replies."""
        today = _start_of_day(now or datetime.now(timezone.utc))
        try:
            total_messages = await self.repository.count_messages()
            today_messages = await self.repository.count_messages(since=today)
            total_replies = await self.repository.count_replies()
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Loading statistics", exc, QueryFailure) from exc
        return StatsSummary(
            total_messages=total_messages,
            today_messages=today_messages,
            total_replies=total_replies,
        )

    async def activity(self, days: int = 7, now: datetime | None = None) -> list[ActivityPoint]:
        """Return per-day message and reply counts, oldest day first."""
        if not 1 <= days <= MAX_ACTIVITY_DAYS:
            raise ValidationFailure(f"days must be between 1 and {MAX_ACTIVITY_DAYS}")
        today = _start_of_day(now or datetime.now(timezone.utc))
        starts = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

        async def _day(start: datetime) -> ActivityPoint:
            end = start + timedelta(days=1)
            messages, replies = await asyncio.gather(
                self.repository.count_messages(since=start, until=end),
                self.repository.count_replies(since=start, until=end),
            )
            return ActivityPoint(
                label=start.strftime("%m/%d"),
                date=start.date().isoformat(),
                messages=messages,
                replies=replies,
            )

        try:
            return list(await asyncio.gather(*(_day(start) for start in starts)))
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Loading activity", exc, QueryFailure) from exc
