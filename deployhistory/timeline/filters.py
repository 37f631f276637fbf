"""Release filters and the OR-combinator applied to them.

A filter is a pure predicate over a release and the release chronologically
before it (None for the oldest release).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from deployhistory.models.records import ReleaseRecord

ReleaseFilterFunc = Callable[[ReleaseRecord, ReleaseRecord | None], bool]


def is_code_release(release: ReleaseRecord, previous: ReleaseRecord | None) -> bool:
    """True if *release* ships different artifacts than *previous*.

    The first release counts as a code release when it has any artifact.
    """
    if previous is None:
        return len(release.artifacts) > 0
    return tuple(release.artifacts) != tuple(previous.artifacts)


def is_env_release(release: ReleaseRecord, previous: ReleaseRecord | None) -> bool:
    """True if *release* only changed configuration."""
    return not is_code_release(release, previous)


def accepts_any(
    filters: Iterable[ReleaseFilterFunc],
    release: ReleaseRecord,
    previous: ReleaseRecord | None,
) -> bool:
    """OR-combine *filters*.  An empty filter set accepts nothing."""
    return any(fn(release, previous) for fn in filters)
