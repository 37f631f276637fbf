"""Selection state machine for the release history view.

States:
    DEFAULT_CURRENT          -- nothing explicitly selected; resolves to the
                                live current release and follows it.
    RELEASE(id)              -- a release other than the current one.
    SCALE_REQUEST(id, diff)  -- a scale request, with the diff its new
                                process map would apply to the live formation.

The action button is derived from the state by ``decide``; the machine owns
no rendering.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

import structlog

from deployhistory.diff.process_map import diff_process_maps, has_changes
from deployhistory.models.history import ActionKind, Decision, Selection, SelectionKind
from deployhistory.observability.metrics import submissions_total

_log = structlog.get_logger(component="selection")

MESSAGE_SCALE_CURRENT_ONLY = "can only scale the current release"
MESSAGE_NOTHING_TO_SCALE = "scale request matches the current formation"


def derives_from(scale_request_id: str, release_id: str) -> bool:
    """True if a scale request identifier is rooted at *release_id*.

    Unlike a bare prefix test, an empty *release_id* matches nothing: with no
    current release there is nothing a scale request could apply to.
    """
    return bool(release_id) and scale_request_id.startswith(release_id)


def decide(selection: Selection, current_release_id: str) -> Decision:
    """Derive the action-button state for *selection*."""
    if selection.kind == SelectionKind.SCALE_REQUEST:
        if not derives_from(selection.item_id, current_release_id):
            return Decision(
                action=ActionKind.SCALE_RELEASE,
                enabled=False,
                message=MESSAGE_SCALE_CURRENT_ONLY,
            )
        if not has_changes(selection.diff):
            return Decision(
                action=ActionKind.SCALE_RELEASE,
                enabled=False,
                message=MESSAGE_NOTHING_TO_SCALE,
            )
        return Decision(action=ActionKind.SCALE_RELEASE, enabled=True, submit_id=selection.item_id)

    selected = selection.item_id or current_release_id
    if selected == current_release_id:
        return Decision(action=ActionKind.DEPLOY_RELEASE, enabled=False)
    return Decision(action=ActionKind.DEPLOY_RELEASE, enabled=True, submit_id=selected)


class SelectionStateMachine:
    """Tracks the operator's selection against the live current release.

    Every transition replaces the whole ``Selection`` value.
    """

    def __init__(self, current_release_id: str, initial_selection: str = "") -> None:
        self._current_release_id = current_release_id
        self._selection = Selection()
        if initial_selection and initial_selection != current_release_id:
            self._selection = Selection(kind=SelectionKind.RELEASE, item_id=initial_selection)

    @property
    def current_release_id(self) -> str:
        return self._current_release_id

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def selected_id(self) -> str:
        """Identifier the selection resolves to, the current release by default."""
        return self._selection.item_id or self._current_release_id

    def select_release(self, release_id: str) -> Selection:
        if release_id == self._current_release_id:
            return self.deselect()
        return self._transition(Selection(kind=SelectionKind.RELEASE, item_id=release_id))

    def select_scale_request(
        self,
        scale_request_id: str,
        new_processes: Mapping[str, int],
        current_formation: Mapping[str, int],
    ) -> Selection:
        diff = diff_process_maps(current_formation, new_processes, include_unchanged=False)
        return self._transition(
            Selection(kind=SelectionKind.SCALE_REQUEST, item_id=scale_request_id, diff=diff)
        )

    def deselect(self) -> Selection:
        return self._transition(Selection())

    def current_release_changed(self, release_id: str) -> Selection:
        """Follow a new current release.

        A default selection follows transparently; an explicit selection of
        another release or of a scale request is kept.
        """
        previous = self._current_release_id
        self._current_release_id = release_id
        if self._selection.kind == SelectionKind.RELEASE and self._selection.item_id == release_id:
            self._selection = Selection()
        _log.debug(
            "current_release_changed",
            previous=previous,
            current=release_id,
            selection=self._selection.kind.value,
        )
        return self._selection

    def decision(self) -> Decision:
        return decide(self._selection, self._current_release_id)

    def submit(self, on_submit: Callable[[str], None]) -> bool:
        """Hand the selected release to *on_submit* if deploying is allowed.

        Returns False, without calling *on_submit*, when nothing deployable
        is selected.
        """
        if not self.selected_id:
            return False
        decision = self.decision()
        if self._selection.kind != SelectionKind.RELEASE or not decision.enabled:
            if decision.action == ActionKind.SCALE_RELEASE and decision.enabled:
                # TODO: submit scale requests once a scale submission endpoint exists
                _log.info("scale_submission_unsupported", scale_request=self._selection.item_id)
            return False
        submissions_total.labels(action=decision.action.value).inc()
        _log.info("release_submitted", release=decision.submit_id)
        on_submit(decision.submit_id)
        return True

    def _transition(self, selection: Selection) -> Selection:
        _log.debug(
            "selection_changed",
            previous=self._selection.kind.value,
            kind=selection.kind.value,
            item=selection.item_id,
        )
        self._selection = selection
        return selection
