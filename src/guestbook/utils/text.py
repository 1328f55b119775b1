# src/guestbook/utils/text.py
"""Text helpers shared by validation and search."""

from __future__ import annotations

LIKE_ESCAPE_CHAR = "\\"


def is_blank(value: str | None) -> bool:
    """Return True for None, empty, or whitespace-only strings."""
    return value is None or not value.strip()


def escape_like(term: str, escape_char: str = LIKE_ESCAPE_CHAR) -> str:
    """Escape LIKE wildcards so ``term`` matches literally.

    The escape character itself is escaped first so that a user-supplied
    backslash cannot be used to re-enable a wildcard.
    """
    escaped = term.replace(escape_char, escape_char * 2)
    return escaped.replace("%", f"{escape_char}%").replace("_", f"{escape_char}_")


def contains_pattern(term: str) -> str:
    """Return a LIKE pattern matching any value containing ``term``."""
    return f"%{escape_like(term)}%"
