"""Sample configuration CLI command."""

from __future__ import annotations

from pathlib import Path

import click

from unidb.cli.utils import console
from unidb.config import create_sample_config


@click.command(name="init")
@click.argument("path", required=False, default="unidb.yaml", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_command(path: str, force: bool) -> None:
    """Initialize a sample connection configuration at PATH."""
    target = Path(path)
    if target.exists() and not force:
        console.print(f"[yellow]{target} already exists; use --force to overwrite[/yellow]")
        raise SystemExit(1)

    target.parent.mkdir(parents=True, exist_ok=True)
    create_sample_config(target)
    console.print(f"[green]Wrote sample configuration to {target}[/green]")
