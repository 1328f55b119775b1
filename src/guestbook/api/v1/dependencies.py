"""Shared API dependencies and error translation."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from guestbook.services.context import GuestbookContext
from guestbook.services.errors import (
    FailureCause,
    GuestbookError,
    MessageNotFound,
    PersistenceFailure,
    ValidationFailure,
)
from guestbook.services.feed import FeedAggregator
from guestbook.services.identity import MemoryIdentityStore
from guestbook.services.stats import StatsService
from guestbook.services.storage import AttachmentStorage, StorageDisabledError, StorageError

# Header carrying the visitor's self-reported display name
IDENTITY_HEADER = "X-Guestbook-Username"

_UNAVAILABLE_CAUSES = {FailureCause.MISSING_RELATION, FailureCause.CONNECTION}


def get_context(request: Request) -> GuestbookContext:
    """Return the context built at application startup."""
    context: GuestbookContext | None = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return context


ContextDep = Annotated[GuestbookContext, Depends(get_context)]


def get_feed(
    context: ContextDep,
    username: Annotated[str | None, Header(alias=IDENTITY_HEADER)] = None,
) -> FeedAggregator:
    """Return an aggregator acting for the requesting visitor."""
    return FeedAggregator(context.with_identity(MemoryIdentityStore(username)))


def get_stats(context: ContextDep) -> StatsService:
    return StatsService(context.repository)


def get_storage(context: ContextDep) -> AttachmentStorage:
    """Return attachment storage, or 503 when it is not configured."""
    if context.storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="File storage is not configured",
        )
    return context.storage


FeedDep = Annotated[FeedAggregator, Depends(get_feed)]
StatsDep = Annotated[StatsService, Depends(get_stats)]
StorageDep = Annotated[AttachmentStorage, Depends(get_storage)]


def http_error(exc: GuestbookError) -> HTTPException:
    """Translate a service failure into an HTTP error response.

    Args:
        exc: Failure raised by a guestbook service.

    Returns:
        HTTPException with a status code matching the failure type.
    """
    if isinstance(exc, ValidationFailure):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, MessageNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    if isinstance(exc, StorageDisabledError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, StorageError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, PersistenceFailure) and exc.cause in _UNAVAILABLE_CAUSES:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc) or "Internal error",
    )
