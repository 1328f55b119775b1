# src/guestbook/utils/files.py
"""Attachment type and size helpers."""

from __future__ import annotations

from collections.abc import Iterable

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def is_allowed_type(content_type: str | None, supported_types: Iterable[str]) -> bool:
    """Return True if ``content_type`` is one of the supported MIME types."""
    return content_type is not None and content_type in set(supported_types)


def is_allowed_size(size: int, max_size: int) -> bool:
    """Return True if ``size`` bytes fits within ``max_size``."""
    return 0 <= size <= max_size


def is_image(content_type: str | None) -> bool:
    return bool(content_type) and content_type.startswith("image/")


def format_file_size(size: int) -> str:
    """Render a byte count for humans, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    index = 0
    while size >= 1024 ** (index + 1) and index < len(_SIZE_UNITS) - 1:
        index += 1
    value = round(size / 1024**index, 2)
    # Drop trailing zeros so 2048 renders as "2 KB" rather than "2.0 KB".
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"
