"""Release, scale request and formation records.

Records are owned by the feed layer and are treated as immutable snapshots
by everything downstream: nothing in the core mutates them.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime


class ProcessMap(Mapping[str, int]):
    """Immutable process-type -> replica count mapping.

    Iteration follows first-insertion order; diff ordering depends on it.
    """

    __slots__ = ("_data",)

    def __init__(self, items: Mapping[str, int] | Iterable[tuple[str, int]] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        data: dict[str, int] = {}
        for key, value in pairs:
            if not isinstance(key, str):
                raise TypeError(f"Process type must be a string, got {type(key).__name__}")
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Replica count for {key!r} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"Replica count for {key!r} must be non-negative, got {value}")
            data[key] = value
        self._data = data

    def __getitem__(self, key: str) -> int:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __repr__(self) -> str:
        return f"ProcessMap({self._data!r})"


@dataclass(frozen=True)
class ReleaseRecord:
    """A deployable release: artifacts plus environment snapshot."""

    name: str
    create_time: datetime | None
    artifacts: tuple[str, ...] = ()
    labels: dict[str, str] = field(default_factory=dict, compare=False)
    env: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ScaleRequestRecord:
    """A requested change to per-process replica counts of a release."""

    name: str
    parent: str  # apps/<app>/releases/<release>
    create_time: datetime | None
    old_processes: ProcessMap = field(default_factory=ProcessMap)
    new_processes: ProcessMap = field(default_factory=ProcessMap)
    state: str = ""

    @property
    def release_id(self) -> str:
        """Release identifier taken from the fourth segment of ``parent``."""
        return parent_release_id(self.parent)


@dataclass(frozen=True)
class Formation:
    """Currently live replica counts for an application release."""

    parent: str
    processes: ProcessMap = field(default_factory=ProcessMap)


def parent_release_id(parent: str) -> str:
    """Return segment 3 of a ``/``-delimited resource path, or ``""``."""
    parts = parent.split("/")
    if len(parts) < 4:
        return ""
    return parts[3]
