# src/guestbook/schemas/feed.py
"""Feed page and statistics schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .message import MessageOut


class EnrichmentFailure(BaseModel):
    """Record of a reply or like-status lookup that failed for one message."""

    message_id: int
    step: str = Field(..., description="Either 'replies' or 'like_status'")
    cause: str


class PageResult(BaseModel):
    """One page of the message feed with pagination metadata."""

    items: list[MessageOut]
    total: int
    page: int
    page_size: int
    total_pages: int
    degraded: list[EnrichmentFailure] = Field(default_factory=list)

    def contains(self, message_id: int) -> bool:
        """Return True if ``message_id`` is one of the items on this page."""
        return any(item.id == message_id for item in self.items)


class StatsSummary(BaseModel):
    """Headline counters for the guestbook."""

    total_messages: int
    today_messages: int
    total_replies: int


class ActivityPoint(BaseModel):
    """Messages and replies created on one UTC day."""

    label: str = Field(..., description="Day formatted as MM/DD")
    date: str
    messages: int
    replies: int
