"""Chronological history of releases and scale requests.

Submodules:
    filters -- Release predicates (code / env) and their OR-combinator.
    tokens  -- Query-parameter filter tokens, toggling and feed planning.
    merger  -- Newest-first merge of releases and scale requests.
"""

from deployhistory.timeline.filters import (
    ReleaseFilterFunc,
    accepts_any,
    is_code_release,
    is_env_release,
)
from deployhistory.timeline.merger import merge_history
from deployhistory.timeline.tokens import (
    DEFAULT_FILTER_TOKENS,
    FeedPlan,
    FilterToken,
    feed_plan,
    parse_filter_tokens,
    release_filters,
    scale_enabled,
    toggle_filter,
)

__all__ = [
    "DEFAULT_FILTER_TOKENS",
    "FeedPlan",
    "FilterToken",
    "ReleaseFilterFunc",
    "accepts_any",
    "feed_plan",
    "is_code_release",
    "is_env_release",
    "merge_history",
    "parse_filter_tokens",
    "release_filters",
    "scale_enabled",
    "toggle_filter",
]
