# src/guestbook/models/like.py
"""Model recording that one identity liked one message."""

from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from guestbook.db.session import Base
from guestbook.db.time import Timestamp


class Like(Base):
    """Join row between a message and a display name.

    Row existence is the only source of truth for "has liked".
    """

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("message_id", "username", name="uq_likes_message_id_username"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("messages.id", ondelete="CASCADE"),
        nullable=False,
    )
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, nullable=False, server_default=func.now()
    )
