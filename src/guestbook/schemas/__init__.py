"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .feed import ActivityPoint, EnrichmentFailure, PageResult, StatsSummary
from .message import (
    Attachment,
    LikeToggle,
    MessageCreate,
    MessageOut,
    MessageUpdate,
    ReplyCreate,
    ReplyOut,
)

__all__ = [
    "ActivityPoint", "EnrichmentFailure", "PageResult", "StatsSummary",
    "Attachment", "LikeToggle",
    "MessageCreate", "MessageOut", "MessageUpdate",
    "ReplyCreate", "ReplyOut",
]
