# tests/services/test_realtime.py
"""Tests for change notifications and page refresh decisions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from guestbook.schemas.feed import PageResult
from guestbook.schemas.message import MessageOut
from guestbook.services.feed import FeedOptions, refresh_page_for
from guestbook.services.realtime import ChangeEvent, ChangeNotifier


def _page(ids: list[int], page: int = 1) -> PageResult:
    items = [
        MessageOut(id=i, username="bob", content="hi", created_at=datetime.now(timezone.utc))
        for i in ids
    ]
    return PageResult(items=items, total=20, page=page, page_size=10, total_pages=2)


def test_subscriber_receives_matching_events() -> None:
    notifier = ChangeNotifier()
    received: list[tuple[str, str, int]] = []
    notifier.subscribe("messages", "insert", lambda *args: received.append(args))

    notifier.publish(ChangeEvent("messages", "INSERT", 1))
    notifier.publish(ChangeEvent("messages", "DELETE", 2))
    notifier.publish(ChangeEvent("replies", "INSERT", 3))

    assert received == [("messages", "INSERT", 1)]


def test_wildcard_subscription() -> None:
    notifier = ChangeNotifier()
    received: list[str] = []
    notifier.subscribe("replies", "*", lambda table, event, _id: received.append(event))

    for event in ("INSERT", "UPDATE", "DELETE"):
        notifier.publish(ChangeEvent("replies", event, 1))

    assert received == ["INSERT", "UPDATE", "DELETE"]


def test_unknown_event_is_rejected() -> None:
    with pytest.raises(ValueError):
        ChangeNotifier().subscribe("messages", "TRUNCATE", lambda *args: None)


def test_unsubscribe_stops_delivery() -> None:
    notifier = ChangeNotifier()
    received: list[Any] = []
    subscription = notifier.subscribe("messages", "*", lambda *args: received.append(args))

    notifier.unsubscribe(subscription)
    notifier.unsubscribe(subscription)
    notifier.unsubscribe(None)

    assert notifier.publish(ChangeEvent("messages", "INSERT", 1)) == 0
    assert received == []
    assert notifier.subscriber_count == 0


def test_failing_callback_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    """A raising subscriber is logged and the others still run."""
    notifier = ChangeNotifier()
    received: list[int] = []

    def broken(*_args: Any) -> None:
        raise RuntimeError("boom")

    notifier.subscribe("messages", "*", broken)
    notifier.subscribe("messages", "*", lambda _t, _e, affected_id: received.append(affected_id))

    with caplog.at_level("ERROR", logger="guestbook.services.realtime"):
        delivered = notifier.publish(ChangeEvent("messages", "UPDATE", 7))

    assert delivered == 1
    assert received == [7]
    assert "Change callback" in caplog.text


class TestRefreshPageFor:
    """Which page a viewer should reload after a change."""

    def test_insert_on_newest_first_goes_to_first_page(self) -> None:
        view = _page([20, 19], page=2)
        change = ChangeEvent("messages", "INSERT", 21)

        assert refresh_page_for(change, FeedOptions(page=2), view) == 1

    def test_insert_with_other_sort_reloads_current_page(self) -> None:
        view = _page([1, 2], page=2)
        options = FeedOptions(page=2, sort_order="asc")

        assert refresh_page_for(ChangeEvent("messages", "INSERT", 21), options, view) == 2

    def test_update_off_page_is_ignored(self) -> None:
        view = _page([5, 4])

        assert refresh_page_for(ChangeEvent("messages", "UPDATE", 99), FeedOptions(), view) is None

    def test_update_on_page_reloads_it(self) -> None:
        view = _page([5, 4])

        assert refresh_page_for(ChangeEvent("messages", "UPDATE", 4), FeedOptions(), view) == 1

    def test_deleting_last_item_steps_back(self) -> None:
        view = _page([11], page=2)

        assert refresh_page_for(ChangeEvent("messages", "DELETE", 11), FeedOptions(page=2), view) == 1

    def test_deleting_only_item_on_first_page_stays(self) -> None:
        view = _page([1])

        assert refresh_page_for(ChangeEvent("messages", "DELETE", 1), FeedOptions(), view) == 1

    def test_delete_on_earlier_page_reloads_later_page(self) -> None:
        """Page 2 shifts up when a row on page 1 disappears."""
        view = _page([2, 1], page=2)

        assert refresh_page_for(ChangeEvent("messages", "DELETE", 4), FeedOptions(page=2), view) == 2

    def test_delete_off_first_page_is_ignored(self) -> None:
        view = _page([4, 3])

        assert refresh_page_for(ChangeEvent("messages", "DELETE", 1), FeedOptions(), view) is None

    @pytest.mark.parametrize(
        "options",
        [FeedOptions(filter_type="popular"), FeedOptions(sort_by="likes", sort_order="asc")],
    )
    def test_like_off_page_reloads_when_sorted_by_likes(self, options: FeedOptions) -> None:
        view = _page([3])

        assert refresh_page_for(ChangeEvent("messages", "UPDATE", 1), options, view) == 1

    def test_reply_changes_reload_current_page(self) -> None:
        view = _page([3], page=2)

        assert refresh_page_for(ChangeEvent("replies", "DELETE", 77), FeedOptions(page=2), view) == 2


@pytest.mark.asyncio
async def test_refresh_plan_follows_live_feed(feed: Any, make_message: Any) -> None:
    """Whenever the reloaded page differs from the shown one, a reload is planned."""
    ids = [(await make_message()).id for _ in range(4)]
    options = FeedOptions(page=2, page_size=2)
    view = await feed.fetch_page(options)

    await feed.delete_message(ids[-1])
    fresh = await feed.fetch_page(options)

    assert [m.id for m in fresh.items] != [m.id for m in view.items]
    assert refresh_page_for(ChangeEvent("messages", "DELETE", ids[-1]), options, view) == 2

    popular = FeedOptions(page=1, page_size=1, filter_type="popular")
    shown = await feed.fetch_page(popular)
    await feed.toggle_like(ids[0], identity="bob")
    fresh = await feed.fetch_page(popular)

    assert [m.id for m in fresh.items] == [ids[0]]
    assert shown.items[0].id != ids[0]
    assert refresh_page_for(ChangeEvent("messages", "UPDATE", ids[0]), popular, shown) == 1
