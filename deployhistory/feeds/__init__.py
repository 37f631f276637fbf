"""Feed subscriptions for the release history view.

Submodules:
    base       -- FeedClient contract, FeedKind, FeedError, SubscriptionHandle.
    static     -- StaticFeedClient: in-memory snapshots, pushed synchronously.
    controller -- HistoryController: subscription ownership and view state.
"""

from deployhistory.feeds.base import FeedClient, FeedError, FeedKind, SubscriptionHandle
from deployhistory.feeds.controller import HistoryController, HistoryView
from deployhistory.feeds.static import StaticFeedClient

__all__ = [
    "FeedClient",
    "FeedError",
    "FeedKind",
    "HistoryController",
    "HistoryView",
    "StaticFeedClient",
    "SubscriptionHandle",
]
