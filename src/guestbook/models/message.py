# src/guestbook/models/message.py
"""SQLAlchemy models for guestbook messages and their replies."""

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from guestbook.db.session import Base
from guestbook.db.time import Timestamp


class Message(Base):
    """Top-level guestbook entry.

    Attachment metadata lives on the same row so it is written atomically with
    the message and never needs reconciling afterwards.
    """

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_created_at", "created_at"),
        Index("ix_messages_likes", "likes"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, nullable=False, server_default=func.now()
    )
    # Denormalized count of rows in `likes`; only toggle_like changes it.
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    file_type: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Reply(Base):
    """Response to exactly one message; removed with its parent."""

    __tablename__ = "replies"
    __table_args__ = (Index("ix_replies_message_id_created_at", "message_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
    )
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, nullable=False, server_default=func.now()
    )
