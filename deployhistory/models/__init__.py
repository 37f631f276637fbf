"""Core data structures for deployhistory."""

from deployhistory.models.config import DeployHistoryConfig
from deployhistory.models.history import (
    ActionKind,
    Decision,
    DiffEntry,
    DiffOp,
    HistoryItem,
    HistoryItemKind,
    Selection,
    SelectionKind,
)
from deployhistory.models.records import (
    Formation,
    ProcessMap,
    ReleaseRecord,
    ScaleRequestRecord,
    parent_release_id,
)

__all__ = [
    "ActionKind",
    "Decision",
    "DeployHistoryConfig",
    "DiffEntry",
    "DiffOp",
    "Formation",
    "HistoryItem",
    "HistoryItemKind",
    "ProcessMap",
    "ReleaseRecord",
    "ScaleRequestRecord",
    "Selection",
    "SelectionKind",
    "parent_release_id",
]
