"""Diff entries, history items, selection and decision structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from deployhistory.models.records import ReleaseRecord, ScaleRequestRecord


class DiffOp(StrEnum):
    """Operation a diff entry applies to a single process type."""

    ADD = "add"
    REMOVE = "remove"
    CHANGE = "change"
    KEEP = "keep"


class HistoryItemKind(StrEnum):
    """Which record a history item wraps."""

    RELEASE = "release"
    SCALE_REQUEST = "scale_request"


class SelectionKind(StrEnum):
    """Selection states of the history view."""

    DEFAULT_CURRENT = "default_current"
    RELEASE = "release"
    SCALE_REQUEST = "scale_request"


class ActionKind(StrEnum):
    """Action offered to the operator for the current selection."""

    DEPLOY_RELEASE = "deploy_release"
    SCALE_RELEASE = "scale_release"


@dataclass(frozen=True)
class DiffEntry:
    """One key of a process map diff.

    ``old`` is None for ADD, ``new`` is None for REMOVE.
    """

    key: str
    op: DiffOp
    old: int | None = None
    new: int | None = None


@dataclass(frozen=True)
class HistoryItem:
    """A release or a scale request placed on the merged timeline."""

    kind: HistoryItemKind
    release: ReleaseRecord | None = None
    scale_request: ScaleRequestRecord | None = None
    previous_release: ReleaseRecord | None = None  # only set for releases

    @classmethod
    def for_release(cls, release: ReleaseRecord, previous: ReleaseRecord | None) -> HistoryItem:
        return cls(kind=HistoryItemKind.RELEASE, release=release, previous_release=previous)

    @classmethod
    def for_scale_request(cls, scale_request: ScaleRequestRecord) -> HistoryItem:
        return cls(kind=HistoryItemKind.SCALE_REQUEST, scale_request=scale_request)

    @property
    def record(self) -> ReleaseRecord | ScaleRequestRecord:
        record = self.release if self.kind == HistoryItemKind.RELEASE else self.scale_request
        assert record is not None
        return record

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def timestamp(self) -> datetime | None:
        return self.record.create_time


@dataclass(frozen=True)
class Selection:
    """What the operator currently has selected.

    ``diff`` is set iff ``kind`` is SCALE_REQUEST.  ``item_id`` is empty for
    DEFAULT_CURRENT, which always resolves to the live current release.
    """

    kind: SelectionKind = SelectionKind.DEFAULT_CURRENT
    item_id: str = ""
    diff: tuple[DiffEntry, ...] | None = None


@dataclass(frozen=True)
class Decision:
    """Derived action-button state for a selection."""

    action: ActionKind
    enabled: bool
    submit_id: str = ""
    message: str = ""
