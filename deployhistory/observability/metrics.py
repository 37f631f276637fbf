"""Prometheus counters for deployhistory."""

from __future__ import annotations

from prometheus_client import Counter

feed_updates_total = Counter(
    "deployhistory_feed_updates_total",
    "Snapshots received per feed",
    ["feed"],
)

feed_errors_total = Counter(
    "deployhistory_feed_errors_total",
    "Errors delivered per feed",
    ["feed"],
)

merge_truncations_total = Counter(
    "deployhistory_merge_truncations_total",
    "Timeline merges that halted on an item without a timestamp",
)

submissions_total = Counter(
    "deployhistory_submissions_total",
    "Submitted selections per action",
    ["action"],
)
