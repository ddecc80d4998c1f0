"""CLI interface for Leftovers."""

from __future__ import annotations

import json
import logging
import sys

import click

from leftovers.core.app_loader import load_known_apps
from leftovers.core.engine import LeftoversEngine
from leftovers.core.events import EngineListener
from leftovers.core.registry import AppRegistry
from leftovers.core.tracker import UNUSED_TARGET, Tracker
from leftovers.models.category import Category
from leftovers.models.entry import Row
from leftovers.utils import bytes_to_human, format_relative_time

_CATEGORY_CHOICES = ["config", "cache", "local_data", "all"]


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_engine(safe_mode: bool | None = None) -> LeftoversEngine:
    registry = AppRegistry()
    load_known_apps(registry)
    return LeftoversEngine.from_settings(registry, safe_mode=safe_mode)


def _selected(categories: tuple[str, ...]) -> Category:
    return Category.parse(categories) if categories else Category.ALL


class _ErrorCollector(EngineListener):
    """Remembers paths that could not be deleted."""

    def __init__(self) -> None:
        self.failed: list[str] = []

    def deletion_error(self, path: str) -> None:
        self.failed.append(path)


def _row_size(row: Row, categories: Category) -> int:
    return sum(getattr(row, c.size_field) for c in categories.members())


def _format_row(row: Row) -> None:
    status = click.style("installed", fg="green") if row.installed else click.style("unused", fg="yellow")
    click.echo(
        f"  {click.style(row.name, fg='cyan', bold=True):40s} {status:20s} "
        f"config {bytes_to_human(row.config_size):>9s}  "
        f"cache {bytes_to_human(row.cache_size):>9s}  "
        f"data {bytes_to_human(row.local_data_size):>9s}"
    )
    if row.title != row.name:
        click.echo(f"    {row.title}")


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Leftovers: find and remove data left behind by applications."""
    _setup_logging(verbose)


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--unused", is_flag=True, help="Only show applications that are not installed")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(unused: bool, as_json: bool) -> None:
    """Scan and list per-application data usage."""
    with _build_engine() as engine:
        engine.reset().result()
        rows = sorted(engine.store.rows(), key=lambda r: r.sort_key)
        totals = engine.store.totals

    if unused:
        rows = [r for r in rows if not r.installed]

    if as_json:
        click.echo(json.dumps({"entries": [r.to_dict() for r in rows], "totals": totals.to_dict()}, indent=2))
        return

    if not rows:
        click.echo("No application data found.")
        return

    click.echo()
    for row in rows:
        _format_row(row)

    click.echo(
        f"\nTotal: {click.style(bytes_to_human(totals.total_size), fg='green', bold=True)} "
        f"(config {bytes_to_human(totals.total_config_size)}, "
        f"cache {bytes_to_human(totals.total_cache_size)}, "
        f"data {bytes_to_human(totals.total_local_data_size)})"
    )
    click.echo(
        f"Unused: {totals.unused_apps_count} application(s), "
        f"{click.style(bytes_to_human(totals.unused_size), fg='yellow', bold=True)}\n"
    )


# ── delete ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("name")
@click.option("--category", "-c", "categories", multiple=True, type=click.Choice(_CATEGORY_CHOICES),
              help="Data category to delete (repeatable, default all)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete(name: str, categories: tuple[str, ...], yes: bool, dry_run: bool, as_json: bool) -> None:
    """Delete data of a single application."""
    selection = _selected(categories)
    with _build_engine(safe_mode=True if dry_run else None) as engine:
        engine.reset().result()
        row = engine.store.find(name)
        if row is None:
            click.echo(f"No data found for '{name}'.", err=True)
            sys.exit(1)

        size = _row_size(row, selection)
        if not as_json:
            click.echo()
            _format_row(row)
            click.echo(f"\nSelected: {click.style(bytes_to_human(size), fg='green', bold=True)}\n")

        if not yes and not dry_run and not as_json:
            if not click.confirm(f"Delete data of '{name}'?", default=False):
                click.echo("Aborted.")
                return

        collector = _ErrorCollector()
        engine.add_listener(collector)
        freed = engine.delete_data(name, selection).result() or 0
        safe_mode = engine.remover.safe_mode

    if not safe_mode:
        Tracker().record(name, selection, freed)
    _report(freed, collector.failed, safe_mode, as_json)


# ── delete-unused ────────────────────────────────────────────────────────

@main.command("delete-unused")
@click.option("--category", "-c", "categories", multiple=True, type=click.Choice(_CATEGORY_CHOICES),
              help="Data category to delete (repeatable, default all)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted without doing it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete_unused(categories: tuple[str, ...], yes: bool, dry_run: bool, as_json: bool) -> None:
    """Delete data of every application that is not installed."""
    selection = _selected(categories)
    with _build_engine(safe_mode=True if dry_run else None) as engine:
        engine.reset().result()
        unused = [r for r in engine.store.rows() if not r.installed and _row_size(r, selection) > 0]
        if not unused:
            if as_json:
                click.echo(json.dumps({"status": "nothing_to_delete", "freed_bytes": 0, "errors": []}))
            else:
                click.echo("Nothing to delete.")
            return

        if not as_json:
            click.echo()
            for row in sorted(unused, key=lambda r: r.sort_key):
                _format_row(row)
            total = sum(_row_size(r, selection) for r in unused)
            click.echo(f"\nSelected: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")

        if not yes and not dry_run and not as_json:
            if not click.confirm(f"Delete data of {len(unused)} unused application(s)?", default=False):
                click.echo("Aborted.")
                return

        collector = _ErrorCollector()
        engine.add_listener(collector)
        freed = engine.delete_unused_data(selection).result() or 0
        safe_mode = engine.remover.safe_mode

    if not safe_mode:
        Tracker().record(UNUSED_TARGET, selection, freed)
    _report(freed, collector.failed, safe_mode, as_json)


def _report(freed: int, failed: list[str], safe_mode: bool, as_json: bool) -> None:
    if as_json:
        status = "dry_run" if safe_mode else "deleted"
        click.echo(json.dumps({"status": status, "freed_bytes": freed, "errors": failed}, indent=2))
        return

    for path in failed:
        click.echo(f"  {click.style('!', fg='yellow')} could not delete {path}")
    verb = "Would free" if safe_mode else "Freed"
    click.echo(f"\n{verb}: {click.style(bytes_to_human(freed), fg='green', bold=True)}")
    if safe_mode:
        click.echo("(dry run: no files were deleted)")
    click.echo()


# ── stats ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--period", "-p", default="all", type=click.Choice(["today", "week", "month", "all"]))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show space freed statistics."""
    tracker = Tracker()
    data = tracker.get_stats(period)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"\nStatistics ({period})\n")
    click.echo(f"  Bytes freed:    {click.style(bytes_to_human(data['bytes_freed']), fg='green', bold=True)}")
    click.echo(f"  Deletions:      {data['deletion_count']}")
    click.echo(f"  Lifetime total: {click.style(bytes_to_human(data['lifetime_bytes_freed']), fg='cyan', bold=True)}")
    last = tracker.get_last_deletion_time()
    if last:
        click.echo(f"  Last deletion:  {format_relative_time(last)}")

    if data["per_target"]:
        click.echo("\n  Per-application breakdown:")
        for target, freed in sorted(data["per_target"].items(), key=lambda x: x[1], reverse=True):
            label = "(unused applications)" if target == UNUSED_TARGET else target
            click.echo(f"    {label:30s} {bytes_to_human(freed):>10s}")
    click.echo()


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
@click.option("--dry-run", is_flag=True, help="Never delete anything (safe mode)")
def service_start(dry_run: bool) -> None:
    """Start the D-Bus service in foreground."""
    from leftovers.dbus_service import start_service

    click.echo("Starting Leftovers D-Bus service...")
    start_service(safe_mode=True if dry_run else None)
