"""seedreg CLI: register and steward seed varieties from the shell."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from seedreg import __version__
from seedreg.config import Settings, load_settings
from seedreg.logging_config import setup_logging
from seedreg.registry.models import CallContext, OperationResult
from seedreg.registry.service import VarietyRegistry

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to a seedreg.yaml config file")
@click.option("--state", "state_path", default=None, help="Registry state file (overrides config)")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, state_path: str | None):
    """seedreg: a stewarded registry of heirloom seed varieties.

    Every change is made on behalf of a caller identity at a given height.
    Only active stewards of a variety may change it or add stewards.
    """
    settings = load_settings(config_path)
    if state_path:
        settings.state_path = state_path
    setup_logging(settings.log_level, settings.log_file or None)
    ctx.meta["seedreg.config_path"] = config_path
    ctx.obj = settings


# ── Helpers ──────────────────────────────────────────────────────────


def _open_registry(settings: Settings) -> VarietyRegistry:
    return VarietyRegistry.open(
        settings.state_path,
        audit_dir=settings.audit_dir if settings.audit_enabled else None,
        admin=settings.default_caller,
    )


def _call_context(
    registry: VarietyRegistry,
    settings: Settings,
    caller: Optional[str],
    height: Optional[int],
) -> CallContext:
    caller = caller or settings.default_caller
    if not caller:
        raise click.UsageError("No caller identity: pass --caller or set SEEDREG_CALLER")
    if height is None:
        height = registry.last_height + 1
    return CallContext(caller=caller, height=height)


def _report(result: OperationResult, message: str) -> None:
    if not result.ok:
        console.print(f"[red]Refused:[/] {result.error.name} (code {int(result.error)})")
        sys.exit(1)
    console.print(f"[green]{message}[/]")


def _context_options(func):
    func = click.option("--height", type=int, default=None, help="Current height (default: last + 1)")(func)
    func = click.option("--caller", "-c", default=None, help="Caller identity")(func)
    return func


# ── Mutations ────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.option("--species", required=True, help="Botanical species")
@click.option("--origin", default="", help="Place or community of origin")
@click.option("--description", "-d", default="", help="Free-form description")
@click.option("--year", "year_documented", type=int, required=True, help="Year first documented")
@click.option("--rarity", "rarity_level", type=int, required=True, help="Rarity level, 1-5")
@_context_options
@click.pass_obj
def register(
    settings: Settings,
    name: str,
    species: str,
    origin: str,
    description: str,
    year_documented: int,
    rarity_level: int,
    caller: str | None,
    height: int | None,
):
    """Register a new variety; the caller becomes its first steward."""
    registry = _open_registry(settings)
    ctx = _call_context(registry, settings, caller, height)
    result = registry.register_variety(
        ctx, name, species, origin, description, year_documented, rarity_level
    )
    _report(result, f"Registered variety {result.value}: {escape(name)}")


@main.command()
@click.argument("variety_id", type=int)
@click.option("--name", required=True, help="New name")
@click.option("--description", "-d", required=True, help="New description")
@click.option("--rarity", "rarity_level", type=int, required=True, help="New rarity level, 1-5")
@_context_options
@click.pass_obj
def update(
    settings: Settings,
    variety_id: int,
    name: str,
    description: str,
    rarity_level: int,
    caller: str | None,
    height: int | None,
):
    """Replace a variety's name, description and rarity level."""
    registry = _open_registry(settings)
    ctx = _call_context(registry, settings, caller, height)
    result = registry.update_variety_details(ctx, variety_id, name, description, rarity_level)
    _report(result, f"Updated variety {variety_id}")


@main.command(name="add-steward")
@click.argument("variety_id", type=int)
@click.argument("steward")
@_context_options
@click.pass_obj
def add_steward(
    settings: Settings,
    variety_id: int,
    steward: str,
    caller: str | None,
    height: int | None,
):
    """Grant STEWARD stewardship of a variety."""
    registry = _open_registry(settings)
    ctx = _call_context(registry, settings, caller, height)
    result = registry.add_steward(ctx, variety_id, steward)
    _report(result, f"{escape(steward)} is now a steward of variety {variety_id}")


@main.command()
@click.argument("variety_id", type=int)
@_context_options
@click.pass_obj
def deactivate(settings: Settings, variety_id: int, caller: str | None, height: int | None):
    """Deactivate a variety. This cannot be undone."""
    registry = _open_registry(settings)
    ctx = _call_context(registry, settings, caller, height)
    result = registry.deactivate_variety(ctx, variety_id)
    _report(result, f"Deactivated variety {variety_id}")


# ── Queries ──────────────────────────────────────────────────────────


@main.command()
@click.argument("variety_id", type=int)
@click.pass_obj
def show(settings: Settings, variety_id: int):
    """Show a single variety."""
    registry = _open_registry(settings)
    variety = registry.get_variety(variety_id)
    if variety is None:
        console.print(f"[yellow]No variety with id {variety_id}.[/]")
        sys.exit(1)

    status = "[green]active[/]" if variety.active else "[red]inactive[/]"
    body = "\n".join(
        [
            f"Name: {escape(variety.name)}",
            f"Species: {escape(variety.species)}",
            f"Origin: {escape(variety.origin)}",
            f"Documented: {variety.year_documented}",
            f"Rarity: {variety.rarity_level}",
            f"Registered by: {escape(variety.registered_by)} at height {variety.registration_height}",
            f"Status: {status}",
            "",
            escape(variety.description),
        ]
    )
    console.print(Panel(body, title=f"Variety {variety.id}"))


@main.command(name="list")
@click.option("--active-only", is_flag=True, help="Hide deactivated varieties")
@click.pass_obj
def list_varieties(settings: Settings, active_only: bool):
    """List registered varieties."""
    registry = _open_registry(settings)
    varieties = registry.list_varieties(active_only=active_only)

    if not varieties:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Varieties ({len(varieties)})")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Species")
    table.add_column("Rarity", justify="right")
    table.add_column("Active", justify="center")

    for v in varieties:
        active = "[green]Y[/]" if v.active else "[red]N[/]"
        table.add_row(str(v.id), escape(v.name), escape(v.species), str(v.rarity_level), active)

    console.print(table)


@main.command()
@click.argument("variety_id", type=int)
@click.pass_obj
def stewards(settings: Settings, variety_id: int):
    """List the stewards of a variety."""
    registry = _open_registry(settings)
    entries = registry.list_stewards(variety_id)

    if not entries:
        console.print(f"[yellow]No stewards recorded for variety {variety_id}.[/]")
        return

    table = Table(title=f"Stewards of variety {variety_id}")
    table.add_column("Steward", style="cyan")
    table.add_column("Since", justify="right")
    table.add_column("Active", justify="center")
    for identity, record in entries:
        active = "[green]Y[/]" if record.active else "[red]N[/]"
        table.add_row(escape(identity), str(record.since), active)

    console.print(table)


@main.command(name="is-steward")
@click.argument("variety_id", type=int)
@click.argument("identity")
@click.pass_obj
def is_steward(settings: Settings, variety_id: int, identity: str):
    """Print whether IDENTITY is an active steward of a variety."""
    registry = _open_registry(settings)
    click.echo("true" if registry.is_steward(variety_id, identity) else "false")


@main.command(name="next-id")
@click.pass_obj
def next_id(settings: Settings):
    """Print the id the next registration will receive."""
    registry = _open_registry(settings)
    click.echo(str(registry.get_next_variety_id()))


@main.command()
@click.option("--variety", "variety_id", type=int, default=None, help="Only events for this variety")
@click.option("--actor", default=None, help="Only events by this caller")
@click.option("--format", "fmt", default="table", type=click.Choice(["table", "json", "csv"]))
@click.option("--limit", default=50, help="Maximum number of events")
@click.pass_obj
def audit(settings: Settings, variety_id: int | None, actor: str | None, fmt: str, limit: int):
    """Show the audit trail of registry operations."""
    registry = _open_registry(settings)
    if registry.audit is None:
        console.print("[yellow]Audit logging is disabled.[/]")
        return

    if fmt != "table":
        click.echo(registry.audit.export_events(fmt, actor=actor, variety_id=variety_id, limit=limit))
        return

    events = registry.audit.get_events(actor=actor, variety_id=variety_id, limit=limit)
    if not events:
        console.print("[yellow]No audit events.[/]")
        return

    table = Table(title=f"Audit trail ({len(events)} events)")
    table.add_column("Height", justify="right")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Variety", justify="right")
    table.add_column("Result")
    for e in events:
        outcome = "[green]ok[/]" if e.success else f"[red]error {e.error_code}[/]"
        variety = "" if e.variety_id is None else str(e.variety_id)
        table.add_row(str(e.height), escape(e.actor), e.action, variety, outcome)

    console.print(table)


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
@click.pass_obj
def serve(settings: Settings, host: str, port: int):
    """Run the registry HTTP API."""
    import uvicorn

    # The app loads its own settings; hand over the config file and state location
    config_path = click.get_current_context().meta.get("seedreg.config_path")
    if config_path:
        os.environ["SEEDREG_CONFIG"] = str(Path(config_path).resolve())
    os.environ["SEEDREG_STATE_PATH"] = str(Path(settings.state_path).resolve())

    console.print(f"\n[bold blue]seedreg[/] serving on http://{host}:{port}\n")
    uvicorn.run("web.backend.app.main:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
