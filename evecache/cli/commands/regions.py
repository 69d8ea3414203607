"""Region table CLI command."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from evecache.config.region_table import load_region_table, resolve_type
from evecache.core.errors import ConfigError


logger = logging.getLogger(__name__)
console = Console()


def regions_show(
    ctx: typer.Context,
    table_file: Annotated[
        Path | None,
        typer.Argument(
            help="YAML region table; defaults to EVECACHE_REGION_TABLE",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Load a region table and show how every listed type resolves."""
    if table_file is None:
        table_file = ctx.obj.settings.region_table
    if table_file is None:
        console.print(
            "[red]Error: No region table given and EVECACHE_REGION_TABLE is not set[/red]"
        )
        raise typer.Exit(1)

    try:
        table = load_region_table(table_file)
        region_map = table.build_region_map()

        output = Table(show_header=True, header_style="bold blue")
        output.add_column("Type", style="cyan")
        output.add_column("Parent", style="dim")
        output.add_column("Region", style="white")

        for entry in table.regions:
            region = region_map.get_region(resolve_type(entry.type))
            output.add_row(entry.type, entry.parent or "-", region)

        console.print(f"[bold]Region table:[/bold] {table_file}")
        console.print(output)

    except ConfigError as e:
        logger.error("Region table error: %s", e)
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


def register_commands(app: typer.Typer) -> None:
    """Register region commands with the main app."""
    app.command(name="regions")(regions_show)
