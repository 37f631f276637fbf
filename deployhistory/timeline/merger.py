"""Two-pointer merge of releases and scale requests into one timeline.

Both inputs arrive sorted newest first.  The merge walks each list once and
yields a single newest-first sequence; releases rejected by every filter are
skipped without consuming a scale request.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from deployhistory.models.history import HistoryItem
from deployhistory.models.records import ReleaseRecord, ScaleRequestRecord
from deployhistory.observability.metrics import merge_truncations_total
from deployhistory.timeline.filters import ReleaseFilterFunc, accepts_any

_log = structlog.get_logger(component="timeline.merger")


def merge_history(
    releases: Sequence[ReleaseRecord],
    scale_requests: Sequence[ScaleRequestRecord],
    include_scale: bool,
    filters: Iterable[ReleaseFilterFunc],
) -> tuple[HistoryItem, ...]:
    """Merge *releases* and *scale_requests* newest first.

    A release is kept iff at least one of *filters* accepts it.  Scale
    requests are all kept when *include_scale* is set and all dropped
    otherwise.  On equal timestamps the scale request comes first.

    If the next candidate has no timestamp and nothing else can be emitted,
    the merge stops and the remaining records are dropped.
    """
    filter_list = tuple(filters)
    scales: Sequence[ScaleRequestRecord] = scale_requests if include_scale else ()
    rlen = len(releases)
    slen = len(scales)
    items: list[HistoryItem] = []
    ri = 0
    si = 0
    while ri < rlen or si < slen:
        release = releases[ri] if ri < rlen else None
        previous = releases[ri + 1] if ri + 1 < rlen else None
        if release is not None and not accepts_any(filter_list, release, previous):
            ri += 1
            continue

        scale = scales[si] if si < slen else None
        rt = release.create_time if release is not None else None
        st = scale.create_time if scale is not None else None

        if release is not None and rt is not None and (st is None or rt > st):
            items.append(HistoryItem.for_release(release, previous))
            ri += 1
        elif scale is not None and st is not None:
            items.append(HistoryItem.for_scale_request(scale))
            si += 1
        else:
            merge_truncations_total.inc()
            _log.debug(
                "merge_halted_missing_timestamp",
                emitted=len(items),
                releases_remaining=rlen - ri,
                scale_requests_remaining=slen - si,
            )
            break
    return tuple(items)
