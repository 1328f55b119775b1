"""Message feed aggregation, pagination and mutations.

:class:`FeedAggregator` turns one paged message query plus per-message
replies and like status into a :class:`~guestbook.schemas.feed.PageResult`.
Enrichment is best effort: a failed reply or like lookup degrades that one
item instead of failing the page.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Final, TypeVar

from guestbook.models import Message
from guestbook.schemas.feed import EnrichmentFailure, PageResult
from guestbook.schemas.message import Attachment, LikeToggle, MessageOut, ReplyOut
from guestbook.services.context import GuestbookContext
from guestbook.services.errors import (
    BACKEND_ERRORS,
    QueryFailure,
    ValidationFailure,
    classify_failure,
    persistence_failure,
)
from guestbook.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    TABLE_MESSAGES,
    TABLE_REPLIES,
    ChangeEvent,
)
from guestbook.utils.text import is_blank

logger = logging.getLogger(__name__)

T = TypeVar("T")

SORT_FIELDS: Final[tuple[str, ...]] = ("created_at", "likes")
SORT_ORDERS: Final[tuple[str, ...]] = ("asc", "desc")
FILTER_ALL: Final[str] = "all"
FILTER_POPULAR: Final[str] = "popular"
FILTER_LATEST: Final[str] = "latest"
FILTER_TYPES: Final[tuple[str, ...]] = (FILTER_ALL, FILTER_POPULAR, FILTER_LATEST)

STEP_REPLIES: Final[str] = "replies"
STEP_LIKE_STATUS: Final[str] = "like_status"


@dataclass(frozen=True)
class FeedOptions:
    """Paging, sorting and filtering parameters for :meth:`FeedAggregator.fetch_page`.

    ``page_size`` of None means the configured default.
    """

    page: int = 1
    page_size: int | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    search_term: str = ""
    filter_type: str = FILTER_ALL

    def effective_sort(self) -> tuple[str, str]:
        """Return ``(sort_by, sort_order)`` after applying the filter preset."""
        if self.filter_type == FILTER_POPULAR:
            return "likes", "desc"
        if self.filter_type == FILTER_LATEST:
            return "created_at", "desc"
        return self.sort_by, self.sort_order


class FeedAggregator:
    """Builds feed pages and performs the mutations that change them."""

    def __init__(self, context: GuestbookContext) -> None:
        self.context = context
        self.settings = context.settings
        self.repository = context.repository

    @property
    def current_username(self) -> str | None:
        """Display name of the visitor this aggregator acts for."""
        return self.context.identity.get_username()

    # ------------------------------------------------------------------ reads

    async def fetch_page(self, options: FeedOptions | None = None) -> PageResult:
        """Return one enriched page of messages.

        Raises:
            ValidationFailure: If paging, sort or filter parameters are invalid.
            QueryFailure: If the base message query fails.
        """
        options = options or FeedOptions()
        page_size = self._validate_options(options)
        sort_by, sort_order = options.effective_sort()
        search = options.search_term.strip()

        try:
            rows, total = await self.repository.list_page(
                sort_by=sort_by,
                descending=sort_order == "desc",
                search=search or None,
                offset=(options.page - 1) * page_size,
                limit=page_size,
            )
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Fetching messages", exc, QueryFailure) from exc

        logger.debug(
            "Fetched %d of %d messages (page=%d, size=%d, sort=%s %s, search=%r)",
            len(rows), total, options.page, page_size, sort_by, sort_order, search,
        )
        if total == 0:
            return PageResult(items=[], total=0, page=options.page, page_size=page_size, total_pages=0)

        degraded: list[EnrichmentFailure] = []
        items = await self._enrich_all(rows, degraded)
        return PageResult(
            items=items,
            total=total,
            page=options.page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
            degraded=degraded,
        )

    async def get_message(self, message_id: int) -> MessageOut | None:
        """Return a single enriched message, or None if it does not exist."""
        try:
            message = await self.repository.get_by_id(message_id)
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Fetching message", exc, QueryFailure) from exc
        if message is None:
            return None
        items = await self._enrich_all([message], [])
        return items[0]

    async def get_replies(self, message_id: int) -> list[ReplyOut]:
        """Return replies for a message, oldest first; empty if it is gone."""
        try:
            replies = await self.repository.list_replies(message_id)
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Fetching replies", exc, QueryFailure) from exc
        return [ReplyOut.model_validate(reply) for reply in replies]

    async def get_popular(self, limit: int | None = None) -> list[MessageOut]:
        """Return the most liked messages without replies or like status."""
        limit = self.settings.popular_limit if limit is None else limit
        if limit < 1:
            raise ValidationFailure("limit must be at least 1")
        try:
            rows = await self.repository.list_popular(limit)
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Fetching popular messages", exc, QueryFailure) from exc
        return [MessageOut.model_validate(row) for row in rows]

    # -------------------------------------------------------------- mutations

    async def create_message(
        self, username: str, content: str, attachment: Attachment | None = None
    ) -> MessageOut:
        """Validate and insert a new message.

        Raises:
            ValidationFailure: If the name or content is blank or too long.
            PersistenceFailure: If the insert fails.
        """
        username = self._require_username(username)
        self._validate_content(content)
        try:
            message = await self.repository.create_message(
                username=username,
                content=content,
                file_name=attachment.name if attachment else None,
                file_url=attachment.url if attachment else None,
                file_size=attachment.size if attachment else None,
                file_type=attachment.type if attachment else None,
            )
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Creating message", exc) from exc

        self._publish(TABLE_MESSAGES, EVENT_INSERT, message.id)
        return MessageOut.model_validate(message)

    async def update_message(self, message_id: int, content: str) -> bool:
        """Replace the body of a message.

        Returns:
            False if no message has ``message_id``.
        """
        self._validate_content(content)
        try:
            updated = await self.repository.update_content(message_id, content)
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Updating message", exc) from exc
        if updated:
            self._publish(TABLE_MESSAGES, EVENT_UPDATE, message_id)
        return updated

    async def delete_message(self, message_id: int) -> bool:
        """Delete a message along with its replies and likes.

        Deleting a message that is already gone is a successful no-op.
        """
        try:
            deleted = await self.repository.delete_message(message_id)
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Deleting message", exc) from exc
        if deleted:
            self._publish(TABLE_MESSAGES, EVENT_DELETE, message_id)
        else:
            logger.debug("Message %s already absent; nothing to delete", message_id)
        return True

    async def toggle_like(self, message_id: int, identity: str | None = None) -> LikeToggle:
        """Like or unlike a message for ``identity`` (default: the current visitor).

        Raises:
            ValidationFailure: If no display name is available.
            MessageNotFound: If the message does not exist.
            PersistenceFailure: If either write fails; neither is kept.
        """
        username = identity if identity is not None else self.current_username
        if is_blank(username):
            raise ValidationFailure("A display name is required to like messages")
        try:
            likes, liked = await self.repository.toggle_like(message_id, username.strip())
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Toggling like", exc) from exc

        self._publish(TABLE_MESSAGES, EVENT_UPDATE, message_id)
        return LikeToggle(likes=likes, has_liked=liked)

    async def add_reply(self, message_id: int, username: str, content: str) -> ReplyOut:
        """Validate and insert a reply to an existing message."""
        username = self._require_username(username)
        self._validate_content(content)
        try:
            reply = await self.repository.create_reply(
                message_id=message_id, username=username, content=content
            )
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Adding reply", exc) from exc

        self._publish(TABLE_REPLIES, EVENT_INSERT, reply.id)
        return ReplyOut.model_validate(reply)

    async def delete_reply(self, reply_id: int) -> bool:
        """Delete a reply; deleting a missing reply is a successful no-op."""
        try:
            deleted = await self.repository.delete_reply(reply_id)
        except BACKEND_ERRORS as exc:
            raise persistence_failure("Deleting reply", exc) from exc
        if deleted:
            self._publish(TABLE_REPLIES, EVENT_DELETE, reply_id)
        return True

    # ---------------------------------------------------------------- helpers

    def _validate_options(self, options: FeedOptions) -> int:
        page_size = self.settings.page_size if options.page_size is None else options.page_size
        if options.page < 1:
            raise ValidationFailure("page must be at least 1")
        if page_size < 1:
            raise ValidationFailure("page_size must be at least 1")
        if options.sort_by not in SORT_FIELDS:
            raise ValidationFailure(f"Cannot sort by {options.sort_by!r}")
        if options.sort_order not in SORT_ORDERS:
            raise ValidationFailure(f"Unknown sort order {options.sort_order!r}")
        if options.filter_type not in FILTER_TYPES:
            raise ValidationFailure(f"Unknown filter {options.filter_type!r}")
        return page_size

    def _require_username(self, username: str | None) -> str:
        if is_blank(username):
            raise ValidationFailure("Username must not be empty")
        return username.strip()

    def _validate_content(self, content: str | None) -> None:
        if is_blank(content):
            raise ValidationFailure("Content must not be empty")
        limit = self.settings.max_content_length
        if len(content) > limit:
            raise ValidationFailure(f"Content must be at most {limit} characters")

    def _publish(self, table: str, event: str, affected_id: int) -> None:
        self.context.notifier.publish(ChangeEvent(table, event, affected_id))

    async def _enrich_all(
        self, rows: list[Message], degraded: list[EnrichmentFailure]
    ) -> list[MessageOut]:
        semaphore = asyncio.Semaphore(self.settings.enrichment_concurrency)
        username = self.current_username
        return list(
            await asyncio.gather(
                *(self._enrich(row, username, semaphore, degraded) for row in rows)
            )
        )

    async def _enrich(
        self,
        row: Message,
        username: str | None,
        semaphore: asyncio.Semaphore,
        degraded: list[EnrichmentFailure],
    ) -> MessageOut:
        message = MessageOut.model_validate(row)
        replies_call = self._bounded(semaphore, self.repository.list_replies(row.id))
        if username is None:
            replies_result = (await asyncio.gather(replies_call, return_exceptions=True))[0]
            liked_result: object = False
        else:
            like_call = self._bounded(semaphore, self.repository.has_liked(row.id, username))
            replies_result, liked_result = await asyncio.gather(
                replies_call, like_call, return_exceptions=True
            )

        replies: list[ReplyOut] = []
        if isinstance(replies_result, BaseException):
            self._degrade(degraded, row.id, STEP_REPLIES, replies_result)
        else:
            replies = [ReplyOut.model_validate(reply) for reply in replies_result]

        has_liked = False
        if isinstance(liked_result, BaseException):
            self._degrade(degraded, row.id, STEP_LIKE_STATUS, liked_result)
        else:
            has_liked = bool(liked_result)

        return message.model_copy(update={"replies": replies, "has_liked": has_liked})

    @staticmethod
    async def _bounded(semaphore: asyncio.Semaphore, call: Awaitable[T]) -> T:
        async with semaphore:
            return await call

    @staticmethod
    def _degrade(
        degraded: list[EnrichmentFailure], message_id: int, step: str, exc: BaseException
    ) -> None:
        if not isinstance(exc, Exception):
            raise exc
        cause = classify_failure(exc)
        logger.warning(
            "Could not load %s for message %s (%s): %s", step, message_id, cause.value, exc
        )
        degraded.append(EnrichmentFailure(message_id=message_id, step=step, cause=cause.value))


def refresh_page_for(change: ChangeEvent, options: FeedOptions, view: PageResult) -> int | None:
    """Decide which page, if any, a caller showing ``view`` should re-fetch.

    Returns:
        The page number to load, or None when the change cannot affect it.
    """
    if change.table == TABLE_REPLIES:
        return view.page

    sort_by, sort_order = options.effective_sort()
    if change.event == EVENT_INSERT:
        if sort_by == "created_at" and sort_order == "desc":
            return 1
        return view.page

    on_page = view.contains(change.affected_id)
    if change.event == EVENT_DELETE:
        if on_page and len(view.items) == 1 and view.page > 1:
            return view.page - 1
        # Removing a row from an earlier page shifts this one up.
        if on_page or view.page > 1:
            return view.page
        return None

    # A like count change can move any row onto or off this page.
    if sort_by == "likes" or on_page:
        return view.page
    return None
