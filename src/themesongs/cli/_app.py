"""App configuration, callbacks, and shared types for CLI.

Contains the Typer application factories and the main callback that
loads settings, configures logging and stores a RuntimeContext in ctx.obj.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer

from themesongs import __version__
from themesongs.config import DEFAULT_CONFIG_PATH, Settings, reload_settings
from themesongs.console import console
from themesongs.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# =============================================================================
# Help Panel Names
# =============================================================================

THEME_COMMANDS = "Theme Songs"
DIAG_COMMANDS = "Diagnostics"
TASK_COMMANDS = "Scheduled Tasks"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"themesongs {__version__}")
        raise typer.Exit()


MAIN_EPILOG = """
[bold cyan]Quick Start:[/]
  [dim]1.[/] themesongs check              [dim]# Verify setup[/]
  [dim]2.[/] themesongs resolve            [dim]# Preview theme song URLs[/]
  [dim]3.[/] themesongs --dry-run download [dim]# Preview downloads[/]
  [dim]4.[/] themesongs download           [dim]# Fetch missing theme songs[/]

[bold cyan]Tips:[/]
  - Global flags like [green]--dry-run[/] go [bold]BEFORE[/] the command
"""


def make_app() -> typer.Typer:
    """Create and configure the main Typer application."""
    return typer.Typer(
        name="themesongs",
        help="Theme song downloads and volume normalization for TV libraries",
        epilog=MAIN_EPILOG,
        rich_markup_mode="rich",
        pretty_exceptions_enable=True,
        pretty_exceptions_show_locals=False,
        no_args_is_help=True,
        add_completion=False,
        context_settings={"help_option_names": ["-h", "--help"]},
    )


def make_tasks_app() -> typer.Typer:
    """Create the scheduled tasks sub-app."""
    return typer.Typer(
        name="tasks",
        help="List and run scheduled tasks",
        rich_markup_mode="rich",
        no_args_is_help=True,
    )


def setup_logging(verbose: bool, quiet: bool, settings: Settings | None) -> None:
    """Configure logging based on options."""
    from themesongs.logging_setup import setup_logging as _setup_logging

    if verbose:
        log_level = "DEBUG"
    elif settings is not None:
        log_level = settings.log_level
    else:
        log_level = "INFO"

    log_file = settings.paths.log_file if settings is not None else None
    _setup_logging(log_level=log_level, log_file=log_file, quiet=quiet)


def create_main_callback(app: typer.Typer) -> None:
    """Register the main callback on the app."""

    @app.callback(invoke_without_command=True)
    def main_callback(
        ctx: typer.Context,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                "-V",
                callback=version_callback,
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = False,
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Enable verbose (DEBUG) logging."),
        ] = False,
        quiet: Annotated[
            bool,
            typer.Option("--quiet", "-q", help="Only show warnings and errors on the console."),
        ] = False,
        config: Annotated[
            Path,
            typer.Option("--config", "-c", help="Path to config.yaml."),
        ] = DEFAULT_CONFIG_PATH,
        dry_run: Annotated[
            bool,
            typer.Option("--dry-run", help="Show what would happen without making changes."),
        ] = False,
    ) -> None:
        """Theme song downloads and volume normalization for TV libraries.

        [bold]Quick Start:[/]
          themesongs download    Fetch missing theme songs
          themesongs normalize   Halve the volume of existing theme songs
          themesongs tasks list  Show scheduled tasks
        """
        from themesongs.cli._context import RuntimeContext

        settings: Settings | None = None
        settings_error: ConfigurationError | None = None
        try:
            settings = reload_settings(config_file=config)
        except ConfigurationError as e:
            settings_error = e

        setup_logging(verbose, quiet, settings)
        if settings_error is not None:
            logger.debug("Configuration not loaded: %s", settings_error)

        runtime = RuntimeContext(
            config_path=config,
            settings=settings,
            settings_error=settings_error,
            dry_run=dry_run,
            verbose=verbose,
        )
        ctx.obj = runtime
        ctx.call_on_close(runtime.close)
