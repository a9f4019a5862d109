"""Scheduled task commands (sub-app).

Commands: tasks list, tasks run
"""

from __future__ import annotations

from typing import Annotated

import typer

from themesongs.cli._context import get_runtime_context
from themesongs.cli.commands import cancel_on_interrupt, fail
from themesongs.exceptions import CatalogError, ConfigurationError, TaskNotFoundError


def register_tasks_commands(tasks_app: typer.Typer) -> None:
    """Register task commands on the tasks sub-app."""

    @tasks_app.command("list")
    def tasks_list() -> None:
        """📋 List scheduled tasks.

        Tasks have no default trigger; run them from cron, a systemd timer,
        or by hand with [cyan]themesongs tasks run KEY[/].
        """
        from rich.table import Table

        from themesongs.console import console
        from themesongs.tasks import default_registry

        table = Table(show_header=True, header_style="bold")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Category")
        table.add_column("Description", overflow="fold")

        for task in default_registry().all():
            table.add_row(task.key, task.name, task.category, task.description)
        console.print(table)

    @tasks_app.command("run")
    def tasks_run(
        ctx: typer.Context,
        key: Annotated[str, typer.Argument(help="Task key, e.g. NormalizeThemeSongsVolume.")],
    ) -> None:
        """▶️  Run a scheduled task to completion.

        [bold]Examples:[/]
          themesongs tasks run DownloadThemeSongs
          themesongs --dry-run tasks run NormalizeThemeSongsVolume
        """
        from themesongs.console import print_success
        from themesongs.tasks import TaskContext, default_registry

        runtime = get_runtime_context(ctx.obj)
        registry = default_registry()
        try:
            task = registry.get(key)
            task_ctx = TaskContext(
                catalog=runtime.catalog,
                settings=runtime.require_settings(),
                cancel_event=runtime.cancel_event,
                dry_run=runtime.dry_run,
            )
            with cancel_on_interrupt(runtime.cancel_event):
                task.run(task_ctx)
        except (TaskNotFoundError, ConfigurationError, CatalogError) as e:
            fail(e)

        print_success(f"{task.name} completed")
