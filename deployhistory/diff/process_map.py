"""Key-ordered diff between two process maps.

Entries follow first-seen order: every key of the old map in its own order,
then the keys only the new map has, in the new map's order.  Nothing is
sorted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from deployhistory.models.history import DiffEntry, DiffOp
from deployhistory.models.records import ScaleRequestRecord


def diff_process_maps(
    old: Mapping[str, int],
    new: Mapping[str, int],
    include_unchanged: bool = False,
) -> tuple[DiffEntry, ...]:
    """Return the entries that turn *old* into *new*.

    Keys with equal counts on both sides are emitted as KEEP only when
    *include_unchanged* is set; otherwise they are left out.
    """
    entries: list[DiffEntry] = []
    for key, old_value in old.items():
        if key not in new:
            entries.append(DiffEntry(key=key, op=DiffOp.REMOVE, old=old_value))
            continue
        new_value = new[key]
        if old_value != new_value:
            entries.append(DiffEntry(key=key, op=DiffOp.CHANGE, old=old_value, new=new_value))
        elif include_unchanged:
            entries.append(DiffEntry(key=key, op=DiffOp.KEEP, old=old_value, new=new_value))
    for key, new_value in new.items():
        if key not in old:
            entries.append(DiffEntry(key=key, op=DiffOp.ADD, new=new_value))
    return tuple(entries)


def has_changes(entries: Iterable[DiffEntry]) -> bool:
    """True if any entry adds, removes or changes a replica count."""
    return any(entry.op != DiffOp.KEEP for entry in entries)


@dataclass(frozen=True)
class ScaleEffect:
    """What a scale request leaves running, per process type."""

    release_id: str
    processes: tuple[tuple[str, int], ...]


def scale_effect(scale_request: ScaleRequestRecord) -> ScaleEffect:
    """Project a scale request onto the counts it leaves in place.

    Removed process types are dropped; unchanged ones keep their old count.
    """
    diff = diff_process_maps(
        scale_request.old_processes,
        scale_request.new_processes,
        include_unchanged=True,
    )
    processes: list[tuple[str, int]] = []
    for entry in diff:
        if entry.op == DiffOp.REMOVE:
            continue
        value = entry.old if entry.op == DiffOp.KEEP else entry.new
        assert value is not None
        processes.append((entry.key, value))
    return ScaleEffect(release_id=scale_request.release_id, processes=tuple(processes))
