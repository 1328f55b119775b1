"""Core configuration for the guestbook service."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
