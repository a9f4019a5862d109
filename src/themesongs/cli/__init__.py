"""themesongs CLI - command-line interface built with Typer and Rich.

The CLI is organized as:
- Theme song commands (download, normalize, resolve)
- Diagnostics (check)
- Scheduled tasks (tasks list, tasks run)
"""

from __future__ import annotations

from themesongs.cli._app import (
    TASK_COMMANDS,
    create_main_callback,
    make_app,
    make_tasks_app,
)
from themesongs.cli._context import RuntimeContext, get_runtime_context
from themesongs.cli.commands import register_diagnostics_commands, register_theme_commands
from themesongs.cli.tasks import register_tasks_commands

app = make_app()
tasks_app = make_tasks_app()

app.add_typer(tasks_app, name="tasks", rich_help_panel=TASK_COMMANDS)

# Handles --version, --verbose, --config, --dry-run
create_main_callback(app)

register_theme_commands(app)
register_diagnostics_commands(app)
register_tasks_commands(tasks_app)


def main() -> None:
    """Console script entry point."""
    app()


__all__ = [
    "RuntimeContext",
    "app",
    "get_runtime_context",
    "main",
    "tasks_app",
]
