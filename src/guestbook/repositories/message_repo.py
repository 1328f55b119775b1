"""Data access helpers for messages, replies and likes."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from guestbook.models import Like, Message, Reply
from guestbook.services.errors import MessageNotFound
from guestbook.utils.text import LIKE_ESCAPE_CHAR, contains_pattern

__all__ = ["MessageRepository", "SORTABLE_COLUMNS"]

SORTABLE_COLUMNS = {
    "created_at": Message.created_at,
    "likes": Message.likes,
}


def _search_clause(term: str) -> ColumnElement[bool]:
    pattern = contains_pattern(term)
    return or_(
        Message.username.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
        Message.content.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
    )


class MessageRepository:
    """Thin wrapper around database access for guestbook entities.

    Each call opens its own session so independent reads can run concurrently.
    SQLAlchemy errors propagate unchanged; the service layer classifies them.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the repository with an async session factory."""
        self.sessionmaker = sessionmaker

    async def ping(self) -> None:
        """Run a trivial query against the messages table."""
        async with self.sessionmaker() as session:
            await session.execute(select(Message.id).limit(1))

    async def list_page(
        self,
        *,
        sort_by: str,
        descending: bool,
        search: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Message], int]:
        """Return one window of messages and the exact total for the same filter."""
        column = SORTABLE_COLUMNS[sort_by]
        if descending:
            ordering = (column.desc(), Message.id.desc())
        else:
            ordering = (column.asc(), Message.id.asc())

        stmt = select(Message)
        count_stmt = select(func.count()).select_from(Message)
        if search:
            clause = _search_clause(search)
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)

        async with self.sessionmaker() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            if total == 0:
                return [], 0
            result = await session.execute(stmt.order_by(*ordering).offset(offset).limit(limit))
            return list(result.scalars()), int(total)

    async def get_by_id(self, message_id: int) -> Message | None:
        """Return a message by identifier."""
        async with self.sessionmaker() as session:
            return await session.get(Message, message_id)

    async def list_popular(self, limit: int) -> list[Message]:
        """Return the most liked messages."""
        async with self.sessionmaker() as session:
            result = await session.execute(
                select(Message).order_by(Message.likes.desc(), Message.id.desc()).limit(limit)
            )
            return list(result.scalars())

    async def create_message(
        self,
        *,
        username: str,
        content: str,
        file_name: str | None = None,
        file_url: str | None = None,
        file_size: int | None = None,
        file_type: str | None = None,
    ) -> Message:
        """Insert a new message and return the persisted row."""
        message = Message(
            username=username,
            content=content,
            likes=0,
            file_name=file_name,
            file_url=file_url,
            file_size=file_size,
            file_type=file_type,
        )
        async with self.sessionmaker() as session, session.begin():
            session.add(message)
            await session.flush()
            # created_at is assigned by the database.
            await session.refresh(message)
        return message

    async def update_content(self, message_id: int, content: str) -> bool:
        """Replace a message body; return False if no such message exists."""
        async with self.sessionmaker() as session, session.begin():
            result = await session.execute(
                update(Message)
                .where(Message.id == message_id)
                .values(content=content)
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount > 0
        return updated

    async def delete_message(self, message_id: int) -> bool:
        """Delete a message; replies and likes go with it via ON DELETE CASCADE.

        Returns True if a row was removed.
        """
        async with self.sessionmaker() as session, session.begin():
            result = await session.execute(
                delete(Message)
                .where(Message.id == message_id)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount > 0
        return deleted

    async def list_replies(self, message_id: int) -> list[Reply]:
        """Return replies for a message, oldest first."""
        async with self.sessionmaker() as session:
            result = await session.execute(
                select(Reply)
                .where(Reply.message_id == message_id)
                .order_by(Reply.created_at.asc(), Reply.id.asc())
            )
            return list(result.scalars())

    async def create_reply(self, *, message_id: int, username: str, content: str) -> Reply:
        """Insert a reply after checking the parent message exists."""
        reply = Reply(message_id=message_id, username=username, content=content)
        async with self.sessionmaker() as session, session.begin():
            if await session.get(Message, message_id) is None:
                raise MessageNotFound(message_id)
            session.add(reply)
            await session.flush()
            await session.refresh(reply)
        return reply

    async def delete_reply(self, reply_id: int) -> bool:
        """Delete a reply; return True if a row was removed."""
        async with self.sessionmaker() as session, session.begin():
            result = await session.execute(
                delete(Reply).where(Reply.id == reply_id).execution_options(synchronize_session=False)
            )
            deleted = result.rowcount > 0
        return deleted

    async def has_liked(self, message_id: int, username: str) -> bool:
        """Return True if ``username`` has a like row for the message."""
        async with self.sessionmaker() as session:
            result = await session.execute(
                select(Like.id)
                .where(Like.message_id == message_id, Like.username == username)
                .limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def toggle_like(self, message_id: int, username: str) -> tuple[int, bool]:
        """Flip the like row for ``(message_id, username)`` and adjust the counter.

        Both writes share one transaction, so a failed counter update also
        rolls back the like row. The counter moves by a relative delta.

        Returns:
            The new like count and whether the identity now likes the message.

        Raises:
            MessageNotFound: If the message does not exist.
        """
        async with self.sessionmaker() as session, session.begin():
            removed = await session.execute(
                delete(Like)
                .where(Like.message_id == message_id, Like.username == username)
                .execution_options(synchronize_session=False)
            )
            if removed.rowcount:
                delta, liked = -1, False
            else:
                if await session.get(Message, message_id) is None:
                    raise MessageNotFound(message_id)
                session.add(Like(message_id=message_id, username=username))
                await session.flush()
                delta, liked = 1, True

            result = await session.execute(
                update(Message)
                .where(Message.id == message_id)
                .values(likes=Message.likes + delta)
                .returning(Message.likes)
                .execution_options(synchronize_session=False)
            )
            likes = result.scalar_one_or_none()
            if likes is None:
                raise MessageNotFound(message_id)
        return int(likes), liked

    async def count_messages(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> int:
        """Count messages created in ``[since, until)``."""
        return await self._count(Message, since, until)

    async def count_replies(
        self, since: datetime | None = None, until: datetime | None = None
    ) -> int:
        """Count replies created in ``[since, until)``."""
        return await self._count(Reply, since, until)

    async def _count(
        self, model: type[Message] | type[Reply], since: datetime | None, until: datetime | None
    ) -> int:
        stmt = select(func.count()).select_from(model)
        if since is not None:
            stmt = stmt.where(model.created_at >= since)
        if until is not None:
            stmt = stmt.where(model.created_at < until)
        async with self.sessionmaker() as session:
            return int((await session.execute(stmt)).scalar_one())
