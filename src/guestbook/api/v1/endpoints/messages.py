# src/guestbook/api/v1/endpoints/messages.py
"""Message, like and reply endpoints for the guestbook API."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Response, status

from guestbook.schemas.feed import PageResult
from guestbook.schemas.message import (
    LikeToggle,
    MessageCreate,
    MessageOut,
    MessageUpdate,
    ReplyCreate,
    ReplyOut,
)
from guestbook.services.errors import GuestbookError
from guestbook.services.feed import FeedOptions

from ..dependencies import FeedDep, http_error

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/", response_model=PageResult)
async def list_messages(
    feed: FeedDep,
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int | None = Query(None, ge=1, le=100, description="Messages per page"),
    sort_by: Literal["created_at", "likes"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    search: str = Query("", description="Case-insensitive text to look for"),
    filter_type: Literal["all", "popular", "latest"] = Query("all", alias="filter"),
) -> PageResult:
    """Return one page of messages with replies and the caller's like status."""
    options = FeedOptions(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        search_term=search,
        filter_type=filter_type,
    )
    try:
        return await feed.fetch_page(options)
    except GuestbookError as exc:
        raise http_error(exc) from exc


@router.post("/", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def create_message(payload: MessageCreate, feed: FeedDep) -> MessageOut:
    """Post a new message, optionally with an already uploaded attachment."""
    try:
        return await feed.create_message(payload.username, payload.content, payload.attachment)
    except GuestbookError as exc:
        raise http_error(exc) from exc


@router.get("/popular", response_model=list[MessageOut])
async def list_popular(
    feed: FeedDep,
    limit: int | None = Query(None, ge=1, le=50),
) -> list[MessageOut]:
    """Return the most liked messages."""
    try:
        return await feed.get_popular(limit)
    except GuestbookError as exc:
        raise http_error(exc) from exc


@router.get("/{message_id}", response_model=MessageOut)
async def get_message(message_id: int, feed: FeedDep) -> MessageOut:
    """Get a specific message by ID."""
    try:
        message = await feed.get_message(message_id)
    except GuestbookError as exc:
        raise http_error(exc) from exc
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


@router.patch("/{message_id}")
async def update_message(
    message_id: int, payload: MessageUpdate, feed: FeedDep
) -> dict[str, str]:
    """Edit the body of a message."""
    try:
        updated = await feed.update_message(message_id, payload.content)
    except GuestbookError as exc:
        raise http_error(exc) from exc
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return {"status": "success"}


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(message_id: int, feed: FeedDep) -> Response:
    """Delete a message and everything attached to it; repeat calls succeed."""
    try:
        await feed.delete_message(message_id)
    except GuestbookError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{message_id}/like", response_model=LikeToggle)
async def toggle_like(message_id: int, feed: FeedDep) -> LikeToggle:
    """Like the message for the caller, or take the like back."""
    try:
        return await feed.toggle_like(message_id)
    except GuestbookError as exc:
        raise http_error(exc) from exc


@router.get("/{message_id}/replies", response_model=list[ReplyOut])
async def list_replies(message_id: int, feed: FeedDep) -> list[ReplyOut]:
    """Return replies to a message, oldest first."""
    try:
        return await feed.get_replies(message_id)
    except GuestbookError as exc:
        raise http_error(exc) from exc


@router.post(
    "/{message_id}/replies",
    response_model=ReplyOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(message_id: int, payload: ReplyCreate, feed: FeedDep) -> ReplyOut:
    """Reply to a message."""
    try:
        return await feed.add_reply(message_id, payload.username, payload.content)
    except GuestbookError as exc:
        raise http_error(exc) from exc
