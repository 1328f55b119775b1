# src/guestbook/api/v1/endpoints/replies.py
"""Reply endpoints that do not hang off a message."""

from fastapi import APIRouter, Response, status

from guestbook.services.errors import GuestbookError

from ..dependencies import FeedDep, http_error

router = APIRouter(prefix="/replies", tags=["replies"])


@router.delete("/{reply_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reply(reply_id: int, feed: FeedDep) -> Response:
    """Delete a reply; deleting one that is already gone also succeeds."""
    try:
        await feed.delete_reply(reply_id)
    except GuestbookError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
