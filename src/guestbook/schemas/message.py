# src/guestbook/schemas/message.py
"""Message and reply Pydantic schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from guestbook.db.time import as_utc

# SQLite hands back naive values; every timestamp leaves the API in UTC.
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class Attachment(BaseModel):
    """File stored alongside a message."""

    name: str
    url: str
    size: int = Field(..., ge=0)
    type: str
    path: str | None = Field(None, description="Storage key, present right after upload")


class ReplyOut(BaseModel):
    """Reply as returned to callers."""

    id: int
    message_id: int
    username: str
    content: str
    created_at: UtcDatetime

    model_config = ConfigDict(from_attributes=True)


class MessageOut(BaseModel):
    """Message enriched with its replies and the viewer's like status."""

    id: int
    username: str
    content: str
    created_at: UtcDatetime
    likes: int = 0
    attachment: Attachment | None = None
    replies: list[ReplyOut] = Field(default_factory=list)
    has_liked: bool = False

    @model_validator(mode="before")
    @classmethod
    def _collect_attachment(cls, data: object) -> object:
        if not isinstance(data, dict):
            extracted: dict[str, object | None] = {}
            for field_name in ("id", "username", "content", "created_at", "likes"):
                extracted[field_name] = getattr(data, field_name, None)
            for column in ("file_name", "file_url", "file_size", "file_type"):
                extracted[column] = getattr(data, column, None)
            data = extracted
        else:
            data = dict(data)

        file_url = data.pop("file_url", None)
        file_name = data.pop("file_name", None)
        file_size = data.pop("file_size", None)
        file_type = data.pop("file_type", None)
        if file_url and data.get("attachment") is None:
            data["attachment"] = {
                "name": file_name or "",
                "url": file_url,
                "size": file_size or 0,
                "type": file_type or "application/octet-stream",
            }
        return data


class MessageCreate(BaseModel):
    """Schema for posting a new message."""

    username: str = Field(..., description="Display name of the author")
    content: str = Field(..., description="Message body")
    attachment: Attachment | None = None


class MessageUpdate(BaseModel):
    """Schema for editing a message body."""

    content: str


class ReplyCreate(BaseModel):
    """Schema for replying to a message."""

    username: str
    content: str


class LikeToggle(BaseModel):
    """Outcome of toggling a like."""

    likes: int
    has_liked: bool
