# src/guestbook/models/__init__.py
"""SQLAlchemy models for the guestbook."""

from .like import Like
from .message import Message, Reply

__all__ = ["Like", "Message", "Reply"]
