"""Click commands for inspecting release history snapshots offline."""

from __future__ import annotations

from pathlib import Path

import click

from deployhistory import __version__
from deployhistory.config import load_config
from deployhistory.diff.process_map import diff_process_maps, scale_effect
from deployhistory.feeds.base import FeedError, FeedKind
from deployhistory.feeds.controller import HistoryController
from deployhistory.feeds.static import StaticFeedClient
from deployhistory.loader import (
    SnapshotFormatError,
    formation_from_dict,
    load_releases,
    load_scale_requests,
    read_json,
)
from deployhistory.models.history import ActionKind, Decision, DiffEntry, DiffOp, HistoryItem, HistoryItemKind
from deployhistory.observability.logging import setup_logging
from deployhistory.timeline.filters import is_code_release
from deployhistory.timeline.tokens import FilterToken

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
_OP_SYMBOL = {DiffOp.ADD: "+", DiffOp.REMOVE: "-", DiffOp.CHANGE: "~", DiffOp.KEEP: "="}


@click.group()
@click.version_option(__version__, prog_name="deployhistory")
@click.option("--app", "app_name", default=None, help="Application name (defaults to DEPLOYHISTORY_APP_NAME).")
@click.pass_context
def cli(ctx: click.Context, app_name: str | None) -> None:
    """Inspect release and scale history snapshots."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    setup_logging(config.log.level, console=True)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["app_name"] = app_name or config.app_name or "app"


def _build_controller(
    ctx: click.Context,
    releases_path: Path | None,
    scale_path: Path | None,
    formation_path: Path | None,
    filters: tuple[str, ...],
    current: str = "",
) -> HistoryController:
    app_name = ctx.obj["app_name"]
    client = StaticFeedClient()
    try:
        if releases_path is not None:
            client.publish(FeedKind.RELEASES, app_name, load_releases(read_json(releases_path)))
        if scale_path is not None:
            client.publish(FeedKind.SCALE_REQUESTS, app_name, load_scale_requests(read_json(scale_path)))
        if formation_path is not None:
            client.publish(FeedKind.FORMATION, app_name, formation_from_dict(read_json(formation_path)))
    except SnapshotFormatError as exc:
        raise click.BadParameter(str(exc)) from exc

    def _raise(error: FeedError) -> None:
        raise click.ClickException(str(error))

    controller = HistoryController(
        client,
        app_name,
        current,
        list(filters) or None,
        error_handler=_raise,
    )
    controller.start()
    return controller


def _format_item(item: HistoryItem) -> str:
    ts = item.timestamp.isoformat() if item.timestamp is not None else "-"
    if item.kind == HistoryItemKind.RELEASE:
        assert item.release is not None
        label = "code" if is_code_release(item.release, item.previous_release) else "env"
        return f"{ts}  release  {item.name}  [{label}]"
    assert item.scale_request is not None
    effect = scale_effect(item.scale_request)
    counts = " ".join(f"{key}={value}" for key, value in effect.processes) or "(none)"
    return f"{ts}  scale    {item.name}  release={effect.release_id}  {counts}"


def _format_entry(entry: DiffEntry) -> str:
    symbol = _OP_SYMBOL[entry.op]
    if entry.op == DiffOp.ADD:
        return f"{symbol} {entry.key}: {entry.new}"
    if entry.op == DiffOp.REMOVE:
        return f"{symbol} {entry.key}: {entry.old}"
    return f"{symbol} {entry.key}: {entry.old} -> {entry.new}"


def _format_decision(decision: Decision) -> str:
    label = "Deploy Release" if decision.action == ActionKind.DEPLOY_RELEASE else "Scale Release"
    state = "enabled" if decision.enabled else "disabled"
    line = f"{label}: {state}"
    if decision.submit_id:
        line += f" ({decision.submit_id})"
    if decision.message:
        line += f" -- {decision.message}"
    return line


_filter_option = click.option(
    "--filter",
    "filters",
    multiple=True,
    type=click.Choice([t.value for t in FilterToken]),
    help="History filter token; repeatable. Defaults to code releases only.",
)


@cli.command("timeline")
@click.option("--releases", "releases_path", type=_FILE, required=True, help="Releases snapshot (JSON).")
@click.option("--scale-requests", "scale_path", type=_FILE, default=None, help="Scale requests snapshot (JSON).")
@_filter_option
@click.pass_context
def timeline_cmd(ctx: click.Context, releases_path: Path, scale_path: Path | None, filters: tuple[str, ...]) -> None:
    """Print the merged release and scale history, newest first."""
    controller = _build_controller(ctx, releases_path, scale_path, None, filters)
    try:
        items = controller.timeline()
    finally:
        controller.close()
    if not items:
        click.echo("No history items match the selected filters.")
        return
    for item in items:
        click.echo(_format_item(item))


@cli.command("diff")
@click.option("--old", "old_path", type=_FILE, required=True, help="Old formation (JSON).")
@click.option("--new", "new_path", type=_FILE, required=True, help="New formation (JSON).")
@click.option("--include-unchanged", is_flag=True, help="Also list process types whose count is unchanged.")
def diff_cmd(old_path: Path, new_path: Path, include_unchanged: bool) -> None:
    """Print the process count diff between two formations."""
    try:
        old = formation_from_dict(read_json(old_path))
        new = formation_from_dict(read_json(new_path))
    except SnapshotFormatError as exc:
        raise click.BadParameter(str(exc)) from exc
    entries = diff_process_maps(old.processes, new.processes, include_unchanged=include_unchanged)
    if not entries:
        click.echo("No changes.")
        return
    for entry in entries:
        click.echo(_format_entry(entry))


@cli.command("decide")
@click.option("--releases", "releases_path", type=_FILE, required=True, help="Releases snapshot (JSON).")
@click.option("--scale-requests", "scale_path", type=_FILE, default=None, help="Scale requests snapshot (JSON).")
@click.option("--formation", "formation_path", type=_FILE, default=None, help="Current formation (JSON).")
@click.option("--current", required=True, help="Name of the current release.")
@click.option("--select", "selected", default="", help="Release or scale request to select.")
@_filter_option
@click.pass_context
def decide_cmd(
    ctx: click.Context,
    releases_path: Path,
    scale_path: Path | None,
    formation_path: Path | None,
    current: str,
    selected: str,
    filters: tuple[str, ...],
) -> None:
    """Show which action the history view offers for a selection."""
    if scale_path is not None and "scale" not in filters:
        filters = (*(filters or ("code",)), "scale")
    controller = _build_controller(ctx, releases_path, scale_path, formation_path, filters, current)
    try:
        if selected:
            scale_request = next((s for s in controller.view.scale_requests if s.name == selected), None)
            if scale_request is not None:
                controller.select_scale_request(scale_request)
            else:
                controller.select_release(selected)
        decision = controller.decision()
    finally:
        controller.close()
    click.echo(_format_decision(decision))
