"""worldshift CLI — inspect and migrate a world.

`worldshift status`, `worldshift migrate --module my.migrations`,
`worldshift import world.json`, `worldshift export world.json`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.table import Table

from worldshift.cli.context import (
    configure_logging,
    load_migrations,
    open_world,
    run_async,
)
from worldshift.config import settings
from worldshift.events.bus import UNIT_APPLIED, UNIT_SKIPPED, Event, EventBus
from worldshift.exceptions import WorldshiftError
from worldshift.migrations.base import MigrationBase
from worldshift.migrations.gate import VersionGate, latest_version
from worldshift.migrations.runner import MigrationRunner

console = Console()

app = typer.Typer(
    name="worldshift",
    help="worldshift -- bring a world of documents up to the latest schema.",
    no_args_is_help=True,
)

_DB_OPTION = typer.Option(None, "--db", help="World database (default from settings)")


def _load_or_exit(module: str) -> list[MigrationBase]:
    try:
        return load_migrations(module)
    except (ImportError, ValueError, TypeError) as e:
        console.print(f"[red]Cannot load migrations from {module}: {e}[/red]")
        raise typer.Exit(code=1)


@app.callback()
def main():
    """Configure logging for every command."""
    configure_logging()


@app.command("status")
def status(
    module: Optional[str] = typer.Option(None, "--module", "-m", help="Module defining MIGRATIONS"),
    db: Optional[str] = _DB_OPTION,
):
    """Show the world schema version and collection sizes."""

    async def _status():
        world = await open_world(db)
        gate = VersionGate(world.settings_store)
        return world, await gate.current_version()

    world, current = run_async(_status())

    table = Table(title="World")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Schema version", str(current))

    if module:
        units = _load_or_exit(module)
        latest = latest_version(units)
        table.add_row("Latest migration", str(latest))
        needs = current < latest
        table.add_row(
            "Needs migration",
            "[bold yellow]yes[/bold yellow]" if needs else "[green]no[/green]",
        )

    for collection in world.collections():
        table.add_row(collection.kind.value.capitalize(), str(len(collection)))

    console.print(table)


@app.command("migrate")
def migrate(
    module: str = typer.Option(..., "--module", "-m", help="Module defining MIGRATIONS"),
    db: Optional[str] = _DB_OPTION,
):
    """Run pending migrations against the world."""
    units = _load_or_exit(module)
    bus = EventBus()

    async def _progress(event: Event):
        if event.topic == UNIT_APPLIED:
            console.print(f"  [green]applied[/green] {event.data['unit']} (v{event.data['version']})")
        elif event.topic == UNIT_SKIPPED:
            console.print(f"  [dim]skipped {event.data['unit']} (v{event.data['version']})[/dim]")

    bus.subscribe("migration.unit_*", _progress)

    async def _migrate():
        world = await open_world(db)
        runner = MigrationRunner(units, world, event_bus=bus)
        return await runner.run_migration()

    try:
        report = run_async(_migrate())
    except WorldshiftError as e:
        console.print(f"[red]Migration failed: {e}[/red]")
        raise typer.Exit(code=1)

    if not report.ran:
        console.print(f"[dim]World already at version {report.starting_version}.[/dim]")
        return
    console.print(
        f"[green]Migrated world from v{report.starting_version} "
        f"to v{report.final_version}[/green] "
        f"({len(report.applied)} applied, {len(report.skipped)} skipped, "
        f"{report.tokens_synced} tokens synced)"
    )


@app.command("import")
def import_world(
    path: Path = typer.Argument(help="Snapshot JSON file"),
    db: Optional[str] = _DB_OPTION,
):
    """Load a world snapshot into the database."""
    snapshot = orjson.loads(path.read_bytes())

    async def _import():
        world = await open_world(db)
        world.load_snapshot(snapshot)
        written = await world.flush()
        version = snapshot.get(settings.schema_version_key)
        if version is not None:
            await VersionGate(world.settings_store).advance_to(int(version))
        return written

    try:
        written = run_async(_import())
    except WorldshiftError as e:
        console.print(f"[red]Import failed: {e}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Imported {written} documents from {path}[/green]")


@app.command("export")
def export_world(
    path: Path = typer.Argument(help="Snapshot JSON file to write"),
    db: Optional[str] = _DB_OPTION,
):
    """Write the world to a snapshot JSON file."""

    async def _export():
        world = await open_world(db)
        snapshot = world.snapshot()
        snapshot[settings.schema_version_key] = await VersionGate(
            world.settings_store
        ).current_version()
        return snapshot

    snapshot = run_async(_export())
    path.write_bytes(orjson.dumps(snapshot, option=orjson.OPT_INDENT_2))
    console.print(f"[green]Exported world to {path}[/green]")
