"""Shared CLI utilities for UniDB."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from unidb.config import load_config
from unidb.db import ConnectionDescriptor, KeyValue, OperationResult

# Single console instance reused across CLI modules
console = Console()


def configure_logging(level: str) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def parse_pairs(items: Sequence[str]) -> List[KeyValue]:
    """Parse ``key=value`` arguments, keeping their order."""
    pairs = []
    for item in items:
        if "=" not in item:
            raise click.BadParameter(f"Expected key=value, got '{item}'")
        key, value = item.split("=", 1)
        pairs.append(KeyValue(key.strip(), value))
    return pairs


def load_descriptor(ctx: click.Context, alias: Optional[str]) -> ConnectionDescriptor:
    """Resolve a configured alias (or the default) to its connection descriptor."""
    config = load_config(ctx.obj.get("config"))
    connections = config.to_connections()
    alias = alias or config.default_database
    descriptor = connections.get(alias)
    if descriptor is None:
        raise click.ClickException(
            f"Connection '{alias}' not found in configuration. "
            f"Available connections: {[db.alias for db in connections]}"
        )
    return descriptor


def exit_on_failure(result: OperationResult) -> None:
    """Print a failed result's error and exit with status 1."""
    if result.ok:
        return
    console.print(f"[red]{escape(str(result.error))}[/red]")
    raise SystemExit(1)


def render_rows(result: OperationResult) -> None:
    """Render fetched rows as a table."""
    frame = result.to_dataframe().fillna("")
    table = Table(show_header=True, header_style="bold magenta")
    for column in frame.columns:
        table.add_column(str(column), style="cyan")
    for record in frame.itertuples(index=False):
        table.add_row(*[escape(str(value)) for value in record])
    console.print(table)
    console.print(f"\n{result.row_count} row(s)")
