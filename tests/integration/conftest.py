"""Shared fixtures for deployhistory integration tests.

Provides record factories and a StaticFeedClient pre-loaded with a small,
realistic release history so controller and CLI tests can run the full
feed -> merge -> selection pipeline without a controller API.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from deployhistory.feeds.base import FeedKind
from deployhistory.feeds.static import StaticFeedClient
from deployhistory.models.records import Formation, ProcessMap, ReleaseRecord, ScaleRequestRecord

APP = "billing"
RELEASE_PREFIX = f"apps/{APP}/releases"

# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------

_T0 = datetime(2026, 2, 18, 12, 0, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    return _T0 + timedelta(minutes=minutes)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


def make_release(release_id: str, minutes: int, artifacts: tuple[str, ...] = ("img-1",)) -> ReleaseRecord:
    """Create a ReleaseRecord named under the test app."""
    return ReleaseRecord(name=f"{RELEASE_PREFIX}/{release_id}", create_time=at(minutes), artifacts=artifacts)


def make_scale_request(
    release_id: str,
    scale_id: str,
    minutes: int,
    old: dict[str, int] | None = None,
    new: dict[str, int] | None = None,
) -> ScaleRequestRecord:
    """Create a ScaleRequestRecord whose parent is *release_id*."""
    parent = f"{RELEASE_PREFIX}/{release_id}"
    return ScaleRequestRecord(
        name=f"{parent}/scales/{scale_id}",
        parent=parent,
        create_time=at(minutes),
        old_processes=ProcessMap(old or {"web": 1}),
        new_processes=ProcessMap(new or {"web": 2}),
    )


# r3 (code) > s2 > r2 (env) > s1 > r1 (code), newest first
RELEASES = (
    make_release("r3", 50, ("img-2",)),
    make_release("r2", 30, ("img-1",)),
    make_release("r1", 10, ("img-1",)),
)
SCALE_REQUESTS = (
    make_scale_request("r3", "s2", 40, old={"web": 2, "worker": 1}, new={"web": 4, "worker": 1}),
    make_scale_request("r2", "s1", 20, old={"web": 1}, new={"web": 2}),
)
FORMATION = Formation(parent=f"{RELEASE_PREFIX}/r3", processes=ProcessMap({"web": 2, "worker": 1}))
CURRENT = RELEASES[0].name


@pytest.fixture
def feed_client() -> StaticFeedClient:
    """StaticFeedClient serving the shared history for APP."""
    client = StaticFeedClient()
    client.publish(FeedKind.RELEASES, APP, RELEASES)
    client.publish(FeedKind.SCALE_REQUESTS, APP, SCALE_REQUESTS)
    client.publish(FeedKind.FORMATION, APP, FORMATION)
    return client


# ---------------------------------------------------------------------------
# Snapshot files for CLI tests
# ---------------------------------------------------------------------------


def _release_doc(r: ReleaseRecord) -> dict[str, object]:
    assert r.create_time is not None
    return {"name": r.name, "create_time": r.create_time.isoformat(), "artifacts": list(r.artifacts)}


def _scale_doc(s: ScaleRequestRecord) -> dict[str, object]:
    assert s.create_time is not None
    return {
        "name": s.name,
        "parent": s.parent,
        "create_time": s.create_time.isoformat(),
        "old_processes": dict(s.old_processes),
        "new_processes": dict(s.new_processes),
    }


@pytest.fixture
def snapshot_files(tmp_path: Path) -> dict[str, Path]:
    """Write the shared history as JSON snapshot files."""
    files = {
        "releases": tmp_path / "releases.json",
        "scale_requests": tmp_path / "scale_requests.json",
        "formation": tmp_path / "formation.json",
    }
    files["releases"].write_text(json.dumps({"releases": [_release_doc(r) for r in RELEASES]}))
    files["scale_requests"].write_text(json.dumps([_scale_doc(s) for s in SCALE_REQUESTS]))
    files["formation"].write_text(
        json.dumps({"parent": FORMATION.parent, "processes": dict(FORMATION.processes)})
    )
    return files
