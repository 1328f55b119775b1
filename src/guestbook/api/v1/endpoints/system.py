# src/guestbook/api/v1/endpoints/system.py
"""Statistics endpoints."""

from fastapi import APIRouter, Query

from guestbook.schemas.feed import ActivityPoint, StatsSummary
from guestbook.services.errors import GuestbookError
from guestbook.services.stats import MAX_ACTIVITY_DAYS

from ..dependencies import StatsDep, http_error

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/stats", response_model=StatsSummary)
async def get_stats(stats: StatsDep) -> StatsSummary:
    """Return total messages, today's messages and total replies."""
    try:
        return await stats.summary()
    except GuestbookError as exc:
        raise http_error(exc) from exc


@router.get("/activity", response_model=list[ActivityPoint])
async def get_activity(
    stats: StatsDep,
    days: int = Query(7, ge=1, le=MAX_ACTIVITY_DAYS),
) -> list[ActivityPoint]:
    """Return per-day message and reply counts, oldest first."""
    try:
        return await stats.activity(days)
    except GuestbookError as exc:
        raise http_error(exc) from exc
