"""CLI command modules."""

import typer

from evecache.cli.commands.regions import register_commands as register_regions_commands
from evecache.cli.commands.stress import register_commands as register_stress_commands


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_regions_commands(app)
    register_stress_commands(app)
