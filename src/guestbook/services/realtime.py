"""In-process change notifications for guestbook tables.

Callers register interest in a table and event class and receive the affected
row id, so they can decide whether their current view needs re-fetching.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

logger = logging.getLogger(__name__)

EVENT_INSERT: Final[str] = "INSERT"
EVENT_UPDATE: Final[str] = "UPDATE"
EVENT_DELETE: Final[str] = "DELETE"
EVENT_ANY: Final[str] = "*"
_EVENTS: Final[frozenset[str]] = frozenset({EVENT_INSERT, EVENT_UPDATE, EVENT_DELETE, EVENT_ANY})

TABLE_MESSAGES: Final[str] = "messages"
TABLE_REPLIES: Final[str] = "replies"

ChangeCallback = Callable[[str, str, int], None]


@dataclass(frozen=True)
class ChangeEvent:
    """A committed change to one row."""

    table: str
    event: str
    affected_id: int


@dataclass(frozen=True)
class Subscription:
    """Handle returned by :meth:`ChangeNotifier.subscribe`."""

    id: int
    table: str
    event: str
    callback: ChangeCallback

    def matches(self, change: ChangeEvent) -> bool:
        return self.table == change.table and self.event in (EVENT_ANY, change.event)


class ChangeNotifier:
    """Registry of change callbacks keyed by table and event class."""

    def __init__(self) -> None:
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, table: str, event: str, callback: ChangeCallback) -> Subscription:
        """Invoke ``callback(table, event, affected_id)`` on matching changes."""
        event = event.upper()
        if event not in _EVENTS:
            raise ValueError(f"Unknown event type: {event}")
        with self._lock:
            subscription = Subscription(next(self._ids), table, event, callback)
            self._subscriptions[subscription.id] = subscription
        logger.debug("Subscribed %s to %s on %s", subscription.id, event, table)
        return subscription

    def unsubscribe(self, subscription: Subscription | None) -> None:
        """Remove a subscription; unknown handles are ignored."""
        if subscription is None:
            return
        with self._lock:
            self._subscriptions.pop(subscription.id, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, change: ChangeEvent) -> int:
        """Deliver ``change`` to every matching subscriber.

        A failing callback is logged and skipped; it never reaches the
        publisher or other subscribers.

        Returns:
            Number of callbacks that ran without raising.
        """
        with self._lock:
            targets = [sub for sub in self._subscriptions.values() if sub.matches(change)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.callback(change.table, change.event, change.affected_id)
            except Exception:
                logger.exception(
                    "Change callback %s failed for %s %s #%s",
                    subscription.id,
                    change.event,
                    change.table,
                    change.affected_id,
                )
            else:
                delivered += 1
        return delivered
