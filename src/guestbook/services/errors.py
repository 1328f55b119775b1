"""Typed failures raised by guestbook services.

Every operation reports problems through one of these exceptions so callers
can tell bad input apart from a backend that could not do its job.
"""

from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)

# SQLSTATE codes reported by Postgres drivers
SQLSTATE_UNDEFINED_TABLE = "42P01"
SQLSTATE_INSUFFICIENT_PRIVILEGE = "42501"

# Exceptions that mean the backend, not the caller, is at fault.
BACKEND_ERRORS = (SQLAlchemyError, OSError)


class FailureCause(Enum):
    """Diagnostic category attached to persistence failures."""

    MISSING_RELATION = "missing_relation"
    PERMISSION_DENIED = "permission_denied"
    CONNECTION = "connection"
    CONSTRAINT = "constraint"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class GuestbookError(RuntimeError):
    """Base exception for guestbook service failures."""


class ValidationFailure(GuestbookError, ValueError):
    """Input failed a local constraint; nothing was sent to the database."""


class PersistenceFailure(GuestbookError):
    """The persistence layer rejected or could not complete an operation."""

    def __init__(self, message: str, cause: FailureCause = FailureCause.UNKNOWN) -> None:
        super().__init__(message)
        self.cause = cause


class QueryFailure(PersistenceFailure):
    """A read against the persistence layer failed."""


class MessageNotFound(PersistenceFailure):
    """A mutation targeted a message that does not exist."""

    def __init__(self, message_id: int) -> None:
        super().__init__(f"Message {message_id} not found", FailureCause.NOT_FOUND)
        self.message_id = message_id


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    # psycopg exposes `sqlstate`, asyncpg and psycopg2 expose `pgcode`.
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def classify_failure(exc: BaseException) -> FailureCause:
    """Map a SQLAlchemy exception onto a :class:`FailureCause`."""
    if isinstance(exc, PersistenceFailure):
        return exc.cause
    if isinstance(exc, OSError):
        return FailureCause.CONNECTION
    if not isinstance(exc, SQLAlchemyError):
        return FailureCause.UNKNOWN

    text = str(exc).lower()
    if isinstance(exc, DBAPIError):
        code = _sqlstate(exc)
        if code == SQLSTATE_UNDEFINED_TABLE or "no such table" in text:
            return FailureCause.MISSING_RELATION
        if code == SQLSTATE_INSUFFICIENT_PRIVILEGE or "permission denied" in text:
            return FailureCause.PERMISSION_DENIED
        if isinstance(exc, IntegrityError):
            return FailureCause.CONSTRAINT
        if isinstance(exc, (OperationalError, InterfaceError)) or exc.connection_invalidated:
            return FailureCause.CONNECTION
    return FailureCause.UNKNOWN


def persistence_failure(
    action: str, exc: BaseException, failure_cls: type[PersistenceFailure] = PersistenceFailure
) -> PersistenceFailure:
    """Build a typed failure for ``exc`` and log its diagnosis."""
    cause = classify_failure(exc)
    if cause is FailureCause.MISSING_RELATION:
        logger.error("%s failed: table missing, run the migrations first (%s)", action, exc)
    elif cause is FailureCause.PERMISSION_DENIED:
        logger.error("%s failed: insufficient database privileges (%s)", action, exc)
    elif cause is FailureCause.CONNECTION:
        logger.error("%s failed: database connection problem (%s)", action, exc)
    else:
        logger.error("%s failed: %s", action, exc)
    failure = failure_cls(f"{action} failed", cause)
    failure.__cause__ = exc
    return failure
