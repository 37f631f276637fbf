"""Filter tokens carried in the history view's query parameter.

The parameter holds a subset of ``code``, ``env`` and ``scale``.  When it is
absent the view behaves as if it held ``code`` alone, so ``{code}`` is never
written back explicitly.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

import structlog

from deployhistory.timeline.filters import ReleaseFilterFunc, is_code_release, is_env_release

_log = structlog.get_logger(component="timeline.tokens")


class FilterToken(StrEnum):
    """Toggles shown above the history list."""

    CODE = "code"
    ENV = "env"
    SCALE = "scale"


_CANONICAL_ORDER = (FilterToken.CODE, FilterToken.ENV, FilterToken.SCALE)

DEFAULT_FILTER_TOKENS: frozenset[FilterToken] = frozenset({FilterToken.CODE})

_RELEASE_FILTERS: dict[FilterToken, ReleaseFilterFunc] = {
    FilterToken.CODE: is_code_release,
    FilterToken.ENV: is_env_release,
}


@dataclass(frozen=True)
class FeedPlan:
    """Which upstream feeds the view needs for a token list."""

    releases: bool
    scale: bool


def _split(raw: str | Iterable[str] | None) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    return [str(part).strip() for part in raw if str(part).strip()]


def explicit_tokens(raw: str | Iterable[str] | None) -> frozenset[FilterToken]:
    """Return the known tokens literally present in *raw*."""
    tokens: set[FilterToken] = set()
    for part in _split(raw):
        try:
            tokens.add(FilterToken(part))
        except ValueError:
            _log.debug("unknown_filter_token_ignored", token=part)
    return frozenset(tokens)


def parse_filter_tokens(raw: str | Iterable[str] | None) -> frozenset[FilterToken]:
    """Return the effective token set; an empty list means ``{code}``."""
    return explicit_tokens(raw) or DEFAULT_FILTER_TOKENS


def ordered(tokens: Iterable[FilterToken]) -> tuple[FilterToken, ...]:
    """Tokens in canonical display order."""
    present = set(tokens)
    return tuple(t for t in _CANONICAL_ORDER if t in present)


def release_filters(tokens: Iterable[FilterToken]) -> tuple[ReleaseFilterFunc, ...]:
    """Map tokens to release predicates; ``scale`` contributes none."""
    return tuple(_RELEASE_FILTERS[t] for t in ordered(tokens) if t in _RELEASE_FILTERS)


def scale_enabled(tokens: Iterable[FilterToken]) -> bool:
    return FilterToken.SCALE in set(tokens)


def toggle_filter(
    raw: str | Iterable[str] | None,
    token: FilterToken,
    checked: bool,
) -> tuple[FilterToken, ...]:
    """Apply a toggle to the explicit token list and return the new list.

    Turning ``code`` off while it is only implied turns ``env`` on.  A result
    of exactly ``{code}`` collapses to the empty list.
    """
    explicit = explicit_tokens(raw)
    tokens = set(explicit or DEFAULT_FILTER_TOKENS)
    if checked:
        tokens.add(token)
    else:
        tokens.discard(token)
        if token == FilterToken.CODE and FilterToken.CODE not in explicit:
            tokens.add(FilterToken.ENV)
    if tokens == DEFAULT_FILTER_TOKENS:
        tokens.clear()
    return ordered(tokens)


def feed_plan(raw: str | Iterable[str] | None) -> FeedPlan:
    """Decide which feeds to subscribe for a token list.

    Scale requests (and the live formation) are needed only with ``scale``;
    releases are needed unless ``scale`` is the only token in effect.
    """
    tokens = parse_filter_tokens(raw)
    scale = FilterToken.SCALE in tokens
    releases = len(tokens) == 0 or not scale or len(tokens) > 1
    return FeedPlan(releases=releases, scale=scale)
