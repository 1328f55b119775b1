# src/guestbook/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    attachments_router,
    messages_router,
    replies_router,
    system_router,
)

__all__ = [
    "attachments_router",
    "messages_router",
    "replies_router",
    "system_router",
]
