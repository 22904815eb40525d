"""Main CLI entry point for UniDB."""

from __future__ import annotations

import click

from unidb import __version__
from unidb.cli.commands import register_commands
from unidb.cli.commands.database import (
    connections_command,
    create_command,
    exec_command,
    fetch_command,
    insert_command,
)
from unidb.cli.commands.init import init_command
from unidb.cli.utils import configure_logging, console
from unidb.config import EnvironmentSettings


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, version: bool, config: str, verbose: bool) -> None:
    """UniDB - one data-access API over directory, relational and key-value stores."""
    ctx.ensure_object(dict)
    ctx.obj.update({"config": config, "verbose": verbose})

    configure_logging("DEBUG" if verbose else EnvironmentSettings().log_level)

    if version:
        console.print(f"UniDB v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


COMMAND_REGISTRY = [
    connections_command,
    exec_command,
    fetch_command,
    insert_command,
    create_command,
    init_command,
]

register_commands(cli, COMMAND_REGISTRY)


if __name__ == "__main__":
    cli()
