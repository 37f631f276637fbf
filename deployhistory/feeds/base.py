"""Feed client contract and subscription handles.

FeedClient        -- ABC every transport must implement.
SubscriptionHandle -- Wraps a transport's cancel function; cancel() may be
                      called any number of times and runs it at most once.
FeedError         -- Error delivered by a feed, tagged with the feed kind.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import StrEnum
from typing import Any

import structlog

_log = structlog.get_logger(component="feeds")

FeedCallback = Callable[[Any, Exception | None], None]


class FeedKind(StrEnum):
    """Upstream feeds the history view subscribes to."""

    RELEASES = "releases"
    SCALE_REQUESTS = "scale_requests"
    FORMATION = "formation"


class FeedError(Exception):
    """Raised (or delivered to an error handler) when a feed reports an error."""

    def __init__(self, feed: FeedKind, cause: Exception) -> None:
        super().__init__(f"Feed '{feed}' failed: {cause}")
        self.feed = feed
        self.cause = cause


class FeedClient(ABC):
    """Push-based source of release, scale request and formation snapshots.

    ``subscribe`` delivers the full current snapshot on every update, or an
    error, never both.  Release and scale request snapshots are sequences
    ordered newest first; formation snapshots are a single ``Formation``.
    """

    @abstractmethod
    def subscribe(self, feed: FeedKind, app_name: str, callback: FeedCallback) -> Callable[[], None]:
        """Start streaming *feed* for *app_name*; return its cancel function."""


class SubscriptionHandle:
    """Idempotent wrapper around a transport cancel function."""

    def __init__(self, feed: FeedKind, cancel_fn: Callable[[], None]) -> None:
        self.feed = feed
        self._cancel_fn: Callable[[], None] | None = cancel_fn

    @property
    def active(self) -> bool:
        return self._cancel_fn is not None

    def cancel(self) -> None:
        """Stop the subscription.  Safe to call when already cancelled."""
        cancel_fn = self._cancel_fn
        if cancel_fn is None:
            return
        self._cancel_fn = None
        try:
            cancel_fn()
        except Exception as exc:  # noqa: BLE001
            _log.warning("subscription_cancel_failed", feed=self.feed.value, error=str(exc))
