"""Data-access CLI commands."""

from __future__ import annotations

import json
from typing import Optional, Tuple

import click
from rich.markup import escape
from rich.table import Table

from unidb.cli.utils import (
    console,
    exit_on_failure,
    load_descriptor,
    parse_pairs,
    render_rows,
)
from unidb.config import load_config
from unidb.db import get_dispatcher, get_registry
from unidb.exceptions import ConfigurationError


@click.command(name="connections")
@click.pass_context
def connections_command(ctx: click.Context) -> None:
    """List configured connections and whether their backend is available."""
    try:
        config = load_config(ctx.obj.get("config"))
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {escape(str(exc))}[/red]")
        raise SystemExit(1) from exc

    registry = get_registry()
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Alias", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Host", style="yellow")
    table.add_column("Database", style="yellow")
    table.add_column("Available", style="blue")
    table.add_column("Default", style="blue")

    for descriptor in config.to_connections():
        table.add_row(
            descriptor.alias,
            descriptor.type,
            descriptor.host or "",
            descriptor.database or "",
            "yes" if registry.is_available(descriptor.type) else "no",
            "✓" if descriptor.alias == config.default_database else "",
        )

    console.print(table)


@click.command(name="exec")
@click.argument("alias")
@click.argument("statement")
@click.pass_context
def exec_command(ctx: click.Context, alias: str, statement: str) -> None:
    """Execute STATEMENT on the connection ALIAS."""
    descriptor = _descriptor(ctx, alias)
    exit_on_failure(get_dispatcher().execute_statement(descriptor, statement))
    console.print("[green]Statement executed[/green]")


@click.command(name="fetch")
@click.argument("alias")
@click.argument("statement")
@click.option("--filter", "-f", "filters", multiple=True, help="Filter as key=value (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print rows as JSON records")
@click.pass_context
def fetch_command(ctx: click.Context, alias: str, statement: str, filters: Tuple[str, ...], as_json: bool) -> None:
    """Fetch all rows for STATEMENT from the connection ALIAS."""
    descriptor = _descriptor(ctx, alias)
    result = get_dispatcher().fetch_all(descriptor, statement, parse_pairs(filters) or None)
    exit_on_failure(result)

    if as_json:
        records = [[[f.name, f.value] for f in row.fields] for row in result.rows]
        click.echo(json.dumps(records, indent=2))
    else:
        render_rows(result)


@click.command(name="insert")
@click.argument("alias")
@click.argument("resource")
@click.argument("pairs", nargs=-1, required=True)
@click.pass_context
def insert_command(ctx: click.Context, alias: str, resource: str, pairs: Tuple[str, ...]) -> None:
    """Insert key=value PAIRS into RESOURCE on the connection ALIAS."""
    descriptor = _descriptor(ctx, alias)
    exit_on_failure(get_dispatcher().insert(descriptor, resource, parse_pairs(pairs)))
    console.print(f"[green]Inserted into {resource}[/green]")


@click.command(name="create")
@click.argument("alias", required=False)
@click.pass_context
def create_command(ctx: click.Context, alias: Optional[str]) -> None:
    """Create the database of the connection ALIAS (default connection if omitted)."""
    descriptor = _descriptor(ctx, alias)
    exit_on_failure(get_dispatcher().create(descriptor))
    console.print(f"[green]Created database {descriptor.database}[/green]")


def _descriptor(ctx: click.Context, alias: Optional[str]):
    try:
        return load_descriptor(ctx, alias)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration Error: {escape(str(exc))}[/red]")
        raise SystemExit(1) from exc
