"""Decode JSON snapshots into records.

Snapshot documents mirror what the controller API streams:

    releases        -- list of {name, create_time, artifacts, labels, env}
    scale requests  -- list of {name, parent, create_time, old_processes,
                       new_processes, state}
    formation       -- {parent, processes}

A list may also be wrapped in an object under ``releases`` or
``scale_requests``.  ``create_time`` is an ISO-8601 string or a
``{seconds, nanos}`` object; naive times are taken as UTC.  Process maps
keep the key order of the document.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from deployhistory.models.records import Formation, ProcessMap, ReleaseRecord, ScaleRequestRecord


class SnapshotFormatError(ValueError):
    """Raised when a snapshot document does not have the expected shape."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def parse_timestamp(value: Any, path: str = "create_time") -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        try:
            seconds = int(value.get("seconds", 0))
            nanos = int(value.get("nanos", 0))
        except (TypeError, ValueError) as exc:
            raise SnapshotFormatError(path, f"invalid timestamp object: {exc}") from exc
        return datetime.fromtimestamp(seconds, tz=UTC) + timedelta(microseconds=nanos // 1000)
    if not isinstance(value, str):
        raise SnapshotFormatError(path, f"expected timestamp string, got {type(value).__name__}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise SnapshotFormatError(path, str(exc)) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _process_map(value: Any, path: str) -> ProcessMap:
    if value is None:
        return ProcessMap()
    if not isinstance(value, dict):
        raise SnapshotFormatError(path, "expected an object of process counts")
    try:
        return ProcessMap(value)
    except (TypeError, ValueError) as exc:
        raise SnapshotFormatError(path, str(exc)) from exc


def _require_str(doc: dict[str, Any], key: str, path: str) -> str:
    value = doc.get(key)
    if not isinstance(value, str) or not value:
        raise SnapshotFormatError(f"{path}.{key}", "expected a non-empty string")
    return value


def _str_dict(value: Any, path: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SnapshotFormatError(path, "expected an object")
    return {str(k): str(v) for k, v in value.items()}


def _unwrap(doc: Any, key: str) -> list[Any]:
    if isinstance(doc, dict) and key in doc:
        doc = doc[key]
    if not isinstance(doc, list):
        raise SnapshotFormatError(key, "expected a list")
    return doc


def release_from_dict(doc: Any, path: str = "release") -> ReleaseRecord:
    if not isinstance(doc, dict):
        raise SnapshotFormatError(path, "expected an object")
    artifacts = doc.get("artifacts") or []
    if not isinstance(artifacts, list):
        raise SnapshotFormatError(f"{path}.artifacts", "expected a list")
    return ReleaseRecord(
        name=_require_str(doc, "name", path),
        create_time=parse_timestamp(doc.get("create_time"), f"{path}.create_time"),
        artifacts=tuple(str(a) for a in artifacts),
        labels=_str_dict(doc.get("labels"), f"{path}.labels"),
        env=_str_dict(doc.get("env"), f"{path}.env"),
    )


def scale_request_from_dict(doc: Any, path: str = "scale_request") -> ScaleRequestRecord:
    if not isinstance(doc, dict):
        raise SnapshotFormatError(path, "expected an object")
    return ScaleRequestRecord(
        name=_require_str(doc, "name", path),
        parent=_require_str(doc, "parent", path),
        create_time=parse_timestamp(doc.get("create_time"), f"{path}.create_time"),
        old_processes=_process_map(doc.get("old_processes"), f"{path}.old_processes"),
        new_processes=_process_map(doc.get("new_processes"), f"{path}.new_processes"),
        state=str(doc.get("state", "")),
    )


def formation_from_dict(doc: Any, path: str = "formation") -> Formation:
    if not isinstance(doc, dict):
        raise SnapshotFormatError(path, "expected an object")
    return Formation(
        parent=str(doc.get("parent", "")),
        processes=_process_map(doc.get("processes"), f"{path}.processes"),
    )


def load_releases(doc: Any) -> tuple[ReleaseRecord, ...]:
    return tuple(release_from_dict(d, f"releases[{i}]") for i, d in enumerate(_unwrap(doc, "releases")))


def load_scale_requests(doc: Any) -> tuple[ScaleRequestRecord, ...]:
    return tuple(
        scale_request_from_dict(d, f"scale_requests[{i}]") for i, d in enumerate(_unwrap(doc, "scale_requests"))
    )


def read_json(path: Path) -> Any:
    """Read a JSON document, mapping decode failures to SnapshotFormatError."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(str(path), f"invalid JSON: {exc}") from exc
