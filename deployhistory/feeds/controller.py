"""History controller: owns feed subscriptions and the view state.

The controller is the adapter between the push feeds and the pure core.
It holds at most one live subscription per feed, swaps the whole
``HistoryView`` value on every callback, and re-derives the timeline and
the action decision on demand.

Feed toggling follows the filter tokens: ``scale`` brings the scale request
and formation feeds up or down together; the release feed is toggled on its
own.  ``close()`` cancels everything and is safe to call repeatedly.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from deployhistory.feeds.base import FeedClient, FeedError, FeedKind, SubscriptionHandle
from deployhistory.models.history import Decision, HistoryItem, Selection
from deployhistory.models.records import Formation, ProcessMap, ReleaseRecord, ScaleRequestRecord
from deployhistory.observability.metrics import feed_errors_total, feed_updates_total
from deployhistory.selection.state_machine import SelectionStateMachine
from deployhistory.timeline.merger import merge_history
from deployhistory.timeline.tokens import (
    FeedPlan,
    FilterToken,
    explicit_tokens,
    feed_plan,
    ordered,
    parse_filter_tokens,
    release_filters,
    scale_enabled,
)

_log = structlog.get_logger(component="feeds.controller")

_SCALE_FEEDS = (FeedKind.SCALE_REQUESTS, FeedKind.FORMATION)


@dataclass(frozen=True)
class HistoryView:
    """Last known-good snapshot of every feed plus workflow flags."""

    releases: tuple[ReleaseRecord, ...] = ()
    scale_requests: tuple[ScaleRequestRecord, ...] = ()
    formation: Formation | None = None
    loading: frozenset[FeedKind] = field(default_factory=frozenset)
    is_deploying: bool = False
    deploy_release_name: str = ""


def _log_feed_error(error: FeedError) -> None:
    _log.warning("feed_error", feed=error.feed.value, error=str(error.cause))


class HistoryController:
    """Wires a FeedClient to the timeline merger and selection state machine."""

    def __init__(
        self,
        client: FeedClient,
        app_name: str,
        current_release_id: str,
        filters: str | Iterable[str] | None = None,
        *,
        selected_release_id: str = "",
        error_handler: Callable[[FeedError], None] | None = None,
        on_change: Callable[[HistoryView], None] | None = None,
    ) -> None:
        self._client = client
        self._app_name = app_name
        self._explicit = explicit_tokens(filters)
        self._plan = feed_plan(self._explicit)
        self._error_handler = error_handler or _log_feed_error
        self._on_change = on_change
        self._handles: dict[FeedKind, SubscriptionHandle] = {}
        self._generations: dict[FeedKind, int] = {}
        self._next_generation = 0
        self._view = HistoryView()
        self._selection = SelectionStateMachine(current_release_id, selected_release_id)
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to every feed the current filters need."""
        if self._started:
            return
        self._started = True
        _log.info(
            "history_controller_starting",
            app=self._app_name,
            releases=self._plan.releases,
            scale=self._plan.scale,
        )
        if self._plan.releases:
            self._subscribe(FeedKind.RELEASES)
        if self._plan.scale:
            for feed in _SCALE_FEEDS:
                self._subscribe(feed)

    def close(self) -> None:
        """Cancel all live subscriptions."""
        for handle in list(self._handles.values()):
            handle.cancel()
        self._handles.clear()
        self._generations.clear()
        if self._started:
            _log.info("history_controller_closed", app=self._app_name)
        self._started = False

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    @property
    def filter_tokens(self) -> frozenset[FilterToken]:
        return parse_filter_tokens(self._explicit)

    @property
    def explicit_filters(self) -> tuple[FilterToken, ...]:
        return ordered(self._explicit)

    def update_filters(self, filters: str | Iterable[str] | None) -> FeedPlan:
        """Apply a new token list, toggling feeds whose need changed."""
        self._explicit = explicit_tokens(filters)
        previous = self._plan
        self._plan = feed_plan(self._explicit)
        if self._started:
            if self._plan.scale and not previous.scale:
                for feed in _SCALE_FEEDS:
                    self._subscribe(feed)
            elif previous.scale and not self._plan.scale:
                for feed in _SCALE_FEEDS:
                    self._unsubscribe(feed)

            if self._plan.releases and not previous.releases:
                self._subscribe(FeedKind.RELEASES)
            elif previous.releases and not self._plan.releases:
                self._unsubscribe(FeedKind.RELEASES)
        _log.debug(
            "filters_updated",
            filters=[t.value for t in self.explicit_filters],
            releases=self._plan.releases,
            scale=self._plan.scale,
        )
        self._notify()
        return self._plan

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def view(self) -> HistoryView:
        return self._view

    @property
    def loading(self) -> bool:
        return bool(self._view.loading)

    @property
    def active_feeds(self) -> frozenset[FeedKind]:
        return frozenset(feed for feed, handle in self._handles.items() if handle.active)

    def timeline(self) -> tuple[HistoryItem, ...]:
        tokens = self.filter_tokens
        return merge_history(
            self._view.releases,
            self._view.scale_requests,
            include_scale=scale_enabled(tokens),
            filters=release_filters(tokens),
        )

    @property
    def selection(self) -> Selection:
        return self._selection.selection

    @property
    def selected_id(self) -> str:
        return self._selection.selected_id

    def decision(self) -> Decision:
        return self._selection.decision()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_release(self, release_id: str) -> Selection:
        selection = self._selection.select_release(release_id)
        self._notify()
        return selection

    def select_scale_request(self, scale_request: ScaleRequestRecord) -> Selection:
        """Select *scale_request*, diffing it against the live formation."""
        formation = self._view.formation
        current = formation.processes if formation is not None else ProcessMap()
        selection = self._selection.select_scale_request(
            scale_request.name, scale_request.new_processes, current
        )
        self._notify()
        return selection

    def select_item(self, item: HistoryItem) -> Selection:
        if item.scale_request is not None:
            return self.select_scale_request(item.scale_request)
        return self.select_release(item.name)

    def deselect(self) -> Selection:
        selection = self._selection.deselect()
        self._notify()
        return selection

    def set_current_release(self, release_id: str) -> None:
        self._selection.current_release_changed(release_id)
        self._notify()

    # ------------------------------------------------------------------
    # Deployment hand-off
    # ------------------------------------------------------------------

    def submit(self) -> bool:
        """Enter the deploying state for the selected release, if allowed."""
        return self._selection.submit(self._begin_deploy)

    def cancel_deploy(self) -> None:
        self._replace(is_deploying=False)

    def deployment_created(self) -> None:
        self._replace(is_deploying=False, deploy_release_name="")

    def _begin_deploy(self, release_name: str) -> None:
        self._replace(is_deploying=True, deploy_release_name=release_name)

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    def _subscribe(self, feed: FeedKind) -> None:
        self._unsubscribe(feed)
        self._replace(loading=self._view.loading | {feed})
        generation = self._next_generation
        self._next_generation += 1
        self._generations[feed] = generation
        cancel_fn = self._client.subscribe(feed, self._app_name, self._callback_for(feed, generation))
        handle = SubscriptionHandle(feed, cancel_fn)
        self._handles[feed] = handle
        _log.debug("feed_subscribed", feed=feed.value, app=self._app_name)

    def _unsubscribe(self, feed: FeedKind) -> None:
        self._generations.pop(feed, None)
        handle = self._handles.pop(feed, None)
        if handle is not None:
            handle.cancel()
            _log.debug("feed_cancelled", feed=feed.value, app=self._app_name)
        if feed in self._view.loading:
            self._replace(loading=self._view.loading - {feed})

    def _callback_for(self, feed: FeedKind, generation: int) -> Callable[[Any, Exception | None], None]:
        def _on_update(snapshot: Any, error: Exception | None) -> None:
            # Deliveries for a cancelled or superseded subscription are dropped.
            if self._generations.get(feed) != generation:
                return
            if error is not None:
                feed_errors_total.labels(feed=feed.value).inc()
                self._error_handler(FeedError(feed, error))
                return
            feed_updates_total.labels(feed=feed.value).inc()
            self._apply_snapshot(feed, snapshot)

        return _on_update

    def _apply_snapshot(self, feed: FeedKind, snapshot: Any) -> None:
        loading = self._view.loading - {feed}
        if feed == FeedKind.RELEASES:
            self._replace(releases=_as_tuple(snapshot), loading=loading)
        elif feed == FeedKind.SCALE_REQUESTS:
            self._replace(scale_requests=_as_tuple(snapshot), loading=loading)
        else:
            self._replace(formation=snapshot, loading=loading)

    def _replace(self, **changes: Any) -> None:
        self._view = dataclasses.replace(self._view, **changes)
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._view)


def _as_tuple(records: Sequence[Any] | None) -> tuple[Any, ...]:
    return tuple(records or ())
