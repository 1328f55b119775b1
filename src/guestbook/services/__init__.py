# src/guestbook/services/__init__.py
"""Business logic services for the guestbook.

Import concrete services from their modules (``guestbook.services.feed`` and
friends); only the dependency-free pieces are re-exported here.
"""

from .errors import (
    FailureCause,
    GuestbookError,
    MessageNotFound,
    PersistenceFailure,
    QueryFailure,
    ValidationFailure,
)
from .identity import FileIdentityStore, IdentityStore, MemoryIdentityStore
from .realtime import ChangeEvent, ChangeNotifier, Subscription

__all__ = [
    "FailureCause", "GuestbookError", "MessageNotFound",
    "PersistenceFailure", "QueryFailure", "ValidationFailure",
    "FileIdentityStore", "IdentityStore", "MemoryIdentityStore",
    "ChangeEvent", "ChangeNotifier", "Subscription",
]
