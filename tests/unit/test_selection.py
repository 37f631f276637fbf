"""Tests for the selection state machine and its decision table."""

from __future__ import annotations

from unittest.mock import MagicMock

from deployhistory.models.history import ActionKind, Decision, DiffEntry, DiffOp, Selection, SelectionKind
from deployhistory.models.records import ProcessMap
from deployhistory.selection.state_machine import (
    MESSAGE_NOTHING_TO_SCALE,
    MESSAGE_SCALE_CURRENT_ONLY,
    SelectionStateMachine,
    decide,
    derives_from,
)

_CURRENT = "apps/a1/releases/r3"
_OTHER = "apps/a1/releases/r2"
_FORMATION = ProcessMap({"web": 2, "worker": 1})


def _machine(current: str = _CURRENT, initial: str = "") -> SelectionStateMachine:
    return SelectionStateMachine(current, initial)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    def test_initial_state_is_default_current(self) -> None:
        machine = _machine()
        assert machine.selection == Selection()
        assert machine.selected_id == _CURRENT

    def test_initial_selection_overrides_default(self) -> None:
        machine = _machine(initial=_OTHER)
        assert machine.selection.kind == SelectionKind.RELEASE
        assert machine.selected_id == _OTHER

    def test_initial_selection_equal_to_current_is_default(self) -> None:
        assert _machine(initial=_CURRENT).selection.kind == SelectionKind.DEFAULT_CURRENT

    def test_select_other_release(self) -> None:
        machine = _machine()
        selection = machine.select_release(_OTHER)
        assert selection == Selection(kind=SelectionKind.RELEASE, item_id=_OTHER)
        assert selection.diff is None

    def test_select_current_release_is_default(self) -> None:
        machine = _machine(initial=_OTHER)
        assert machine.select_release(_CURRENT).kind == SelectionKind.DEFAULT_CURRENT

    def test_select_scale_request_computes_diff_against_formation(self) -> None:
        machine = _machine()
        selection = machine.select_scale_request(
            f"{_CURRENT}/scales/s1", ProcessMap({"web": 3, "worker": 1}), _FORMATION
        )
        assert selection.kind == SelectionKind.SCALE_REQUEST
        assert selection.diff == (DiffEntry(key="web", op=DiffOp.CHANGE, old=2, new=3),)

    def test_deselect_from_scale_request(self) -> None:
        machine = _machine()
        machine.select_scale_request(f"{_CURRENT}/scales/s1", ProcessMap({"web": 3}), _FORMATION)
        assert machine.deselect() == Selection()
        assert machine.selection.diff is None


class TestCurrentReleaseChanges:
    def test_default_follows_new_current(self) -> None:
        machine = SelectionStateMachine("r3")
        machine.current_release_changed("r4")
        assert machine.selection.kind == SelectionKind.DEFAULT_CURRENT
        assert machine.selected_id == "r4"

    def test_explicit_other_release_is_kept(self) -> None:
        machine = SelectionStateMachine("r3")
        machine.select_release("r1")
        machine.current_release_changed("r4")
        assert machine.selected_id == "r1"

    def test_selected_release_becoming_current_collapses_to_default(self) -> None:
        machine = SelectionStateMachine("r3")
        machine.select_release("r4")
        machine.current_release_changed("r4")
        assert machine.selection == Selection()

    def test_scale_request_selection_is_kept(self) -> None:
        machine = SelectionStateMachine("r3")
        machine.select_scale_request("r3/scales/s1", ProcessMap({"web": 3}), _FORMATION)
        machine.current_release_changed("r4")
        assert machine.selection.kind == SelectionKind.SCALE_REQUEST


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------


class TestDecisions:
    def test_default_current_deploy_disabled(self) -> None:
        assert _machine().decision() == Decision(action=ActionKind.DEPLOY_RELEASE, enabled=False)

    def test_other_release_deploy_enabled(self) -> None:
        machine = _machine()
        machine.select_release(_OTHER)
        assert machine.decision() == Decision(action=ActionKind.DEPLOY_RELEASE, enabled=True, submit_id=_OTHER)

    def test_scale_of_other_release_disabled_regardless_of_diff(self) -> None:
        machine = SelectionStateMachine("r3")
        machine.select_scale_request("r2/scales/s1", ProcessMap({"web": 9}), _FORMATION)
        decision = machine.decision()
        assert decision.action == ActionKind.SCALE_RELEASE
        assert decision.enabled is False
        assert decision.message == MESSAGE_SCALE_CURRENT_ONLY

    def test_scale_without_changes_disabled(self) -> None:
        machine = _machine()
        machine.select_scale_request(f"{_CURRENT}/scales/s1", _FORMATION, _FORMATION)
        decision = machine.decision()
        assert decision.enabled is False
        assert decision.message == MESSAGE_NOTHING_TO_SCALE

    def test_scale_with_changes_enabled(self) -> None:
        machine = _machine()
        machine.select_scale_request(f"{_CURRENT}/scales/s1", ProcessMap({"web": 1}), _FORMATION)
        decision = machine.decision()
        assert decision.action == ActionKind.SCALE_RELEASE
        assert decision.enabled is True
        assert decision.submit_id == f"{_CURRENT}/scales/s1"

    def test_decide_scale_with_only_unchanged_entries(self) -> None:
        diff = (DiffEntry(key="web", op=DiffOp.KEEP, old=2, new=2),)
        selection = Selection(kind=SelectionKind.SCALE_REQUEST, item_id=f"{_CURRENT}/scales/s1", diff=diff)
        decision = decide(selection, _CURRENT)
        assert decision.enabled is False
        assert decision.message == MESSAGE_NOTHING_TO_SCALE

    def test_decide_release_equal_to_current(self) -> None:
        selection = Selection(kind=SelectionKind.RELEASE, item_id=_CURRENT)
        assert decide(selection, _CURRENT).enabled is False

    def test_derives_from_requires_current(self) -> None:
        assert derives_from("r3/scales/s1", "r3") is True
        assert derives_from("r2/scales/s1", "r3") is False
        assert derives_from("r3/scales/s1", "") is False


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


class TestSubmit:
    def test_submits_selected_release(self) -> None:
        on_submit = MagicMock()
        machine = _machine()
        machine.select_release(_OTHER)
        assert machine.submit(on_submit) is True
        on_submit.assert_called_once_with(_OTHER)

    def test_current_release_is_not_submitted(self) -> None:
        on_submit = MagicMock()
        assert _machine().submit(on_submit) is False
        on_submit.assert_not_called()

    def test_empty_selection_is_a_no_op(self) -> None:
        on_submit = MagicMock()
        assert SelectionStateMachine("").submit(on_submit) is False
        on_submit.assert_not_called()

    def test_scale_request_is_not_submitted(self) -> None:
        on_submit = MagicMock()
        machine = _machine()
        machine.select_scale_request(f"{_CURRENT}/scales/s1", ProcessMap({"web": 1}), _FORMATION)
        assert machine.submit(on_submit) is False
        on_submit.assert_not_called()
