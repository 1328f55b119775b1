"""Stores for the self-reported display name of the current visitor.

The name is trusted at face value; two visitors using the same name are the
same identity as far as likes are concerned.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

USERNAME_KEY = "username"


def _normalize(username: str | None) -> str | None:
    if username is None:
        return None
    username = username.strip()
    return username or None


class IdentityStore(Protocol):
    """Persistent slot holding the current display name."""

    def get_username(self) -> str | None: ...

    def set_username(self, username: str | None) -> None: ...


class MemoryIdentityStore:
    """Identity held for the lifetime of one object (e.g. one HTTP request)."""

    def __init__(self, username: str | None = None) -> None:
        self._username = _normalize(username)

    def get_username(self) -> str | None:
        return self._username

    def set_username(self, username: str | None) -> None:
        self._username = _normalize(username)


class FileIdentityStore:
    """Identity persisted as a small JSON document so it survives restarts."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get_username(self) -> str | None:
        """Return the stored name, or None if missing, blank or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read identity file %s: %s", self.path, exc)
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed identity file %s", self.path)
            return None
        if not isinstance(data, dict):
            return None
        value = data.get(USERNAME_KEY)
        return _normalize(value) if isinstance(value, str) else None

    def set_username(self, username: str | None) -> None:
        """Store ``username``; a blank value clears the slot."""
        username = _normalize(username)
        if username is None:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({USERNAME_KEY: username}), encoding="utf-8")
