"""Main CLI application for evecache."""

import logging
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Annotated

import typer

from evecache.config.settings import EveCacheSettings
from evecache.core.logging import setup_logging


__all__ = ["app", "main", "__version__"]


try:
    __version__ = package_version("evecache")
except PackageNotFoundError:
    __version__ = "0.0.0"

logger = logging.getLogger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(self, verbose: int = 0, log_file: str | None = None):
        self.verbose = verbose
        self.log_file = log_file
        self.settings = EveCacheSettings()


app = typer.Typer(
    name="evecache",
    help=f"""evecache identity-map cache tools v{__version__}

Inspect region tables and exercise the identity cache under load.

Common workflows:
  • Check a region table:  evecache regions regions.yaml
  • Run a load test:       evecache stress --threads 16 --ids 500""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    json_logs: Annotated[
        bool, typer.Option("--json-logs", help="Render console logs as JSON")
    ] = False,
    show_version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """evecache identity-map cache tools."""
    if show_version:
        print(f"evecache v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    app_context = AppContext(verbose=verbose, log_file=log_file)
    ctx.obj = app_context

    settings = app_context.settings
    log_level_name = settings.log_level
    if verbose == 1:
        log_level_name = "INFO"
    elif verbose >= 2:
        log_level_name = "DEBUG"

    setup_logging(
        json_logs=json_logs or settings.json_logs,
        log_level_name=log_level_name,
        log_file=log_file or settings.log_file,
    )


def main() -> int:
    """Main CLI entry point."""
    exit_code = 0

    try:
        app()
    except SystemExit as e:
        # Capture SystemExit code (normal CLI exit)
        exit_code = e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        exit_code = 1

    return exit_code


from evecache.cli.commands import register_all_commands  # noqa: E402


register_all_commands(app)


if __name__ == "__main__":
    raise SystemExit(main())
