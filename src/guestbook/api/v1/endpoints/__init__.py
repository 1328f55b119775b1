# src/guestbook/api/v1/endpoints/__init__.py
"""API v1 endpoint routers."""

from .attachments import router as attachments_router
from .messages import router as messages_router
from .replies import router as replies_router
from .system import router as system_router

__all__ = ["attachments_router", "messages_router", "replies_router", "system_router"]
