"""In-process feed client backed by snapshots held in memory.

Used by the CLI to replay JSON snapshots and by tests to drive the
controller.  ``publish`` and ``fail`` push to every live subscriber of a
feed, synchronously.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from deployhistory.feeds.base import FeedCallback, FeedClient, FeedKind

_log = structlog.get_logger(component="feeds.static")


class StaticFeedClient(FeedClient):
    """Serves the latest published snapshot of each (feed, app) pair."""

    def __init__(self) -> None:
        self._snapshots: dict[tuple[FeedKind, str], Any] = {}
        self._subscribers: dict[tuple[FeedKind, str], dict[int, FeedCallback]] = {}
        self._next_id = 0
        self.subscribe_calls: list[tuple[FeedKind, str]] = []

    def subscribe(self, feed: FeedKind, app_name: str, callback: FeedCallback) -> Callable[[], None]:
        key = (feed, app_name)
        sub_id = self._next_id
        self._next_id += 1
        self._subscribers.setdefault(key, {})[sub_id] = callback
        self.subscribe_calls.append(key)
        _log.debug("subscribed", feed=feed.value, app=app_name, subscription=sub_id)
        if key in self._snapshots:
            callback(self._snapshots[key], None)

        def _cancel() -> None:
            self._subscribers.get(key, {}).pop(sub_id, None)
            _log.debug("unsubscribed", feed=feed.value, app=app_name, subscription=sub_id)

        return _cancel

    def publish(self, feed: FeedKind, app_name: str, snapshot: Any) -> None:
        """Store *snapshot* and deliver it to current subscribers."""
        key = (feed, app_name)
        self._snapshots[key] = snapshot
        for callback in list(self._subscribers.get(key, {}).values()):
            callback(snapshot, None)

    def fail(self, feed: FeedKind, app_name: str, error: Exception) -> None:
        """Deliver *error* to current subscribers without touching the snapshot."""
        for callback in list(self._subscribers.get((feed, app_name), {}).values()):
            callback(None, error)

    def active_subscriptions(self, feed: FeedKind, app_name: str) -> int:
        return len(self._subscribers.get((feed, app_name), {}))
