"""
Scheduled task registry.

Each task is a named, keyed, categorized unit of work with no default
trigger. A scheduling host (cron, systemd timer, the CLI) picks a task by key
and runs it to completion; per-item failures are logged by the routines and
never change the outcome of the run.

Design decisions:
- Instance-based registry for testability; ``default_registry()`` builds the
  built-in tasks for the CLI
- Configuration and catalog are passed in through ``TaskContext``, never read
  from global state inside a task
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from themesongs.catalog.base import SeriesCatalog
from themesongs.config import Settings
from themesongs.downloader import download_all_theme_songs
from themesongs.exceptions import TaskNotFoundError
from themesongs.normalizer import normalize_all_theme_songs

logger = logging.getLogger(__name__)

THEME_SONGS_CATEGORY = "Theme Songs"


@dataclass
class TaskContext:
    """Everything a task needs for one run."""

    catalog: SeriesCatalog
    settings: Settings = field(default_factory=Settings)
    cancel_event: threading.Event = field(default_factory=threading.Event)
    dry_run: bool = False
    http_client: httpx.Client | None = None


@dataclass(frozen=True)
class ScheduledTask:
    """A unit of work the scheduling host can run by key."""

    name: str
    key: str
    description: str
    category: str
    execute: Callable[[TaskContext], Any] = field(repr=False, compare=False)

    def run(self, ctx: TaskContext) -> Any:
        logger.info("Starting %s task...", self.name)
        result = self.execute(ctx)
        logger.info("%s task completed", self.name)
        return result


@dataclass
class TaskRegistry:
    """Registry of scheduled tasks keyed by ``ScheduledTask.key``.

    Example:
        registry = default_registry()
        for task in registry.all():
            print(f"{task.key}: {task.name}")
        registry.run("NormalizeThemeSongsVolume", TaskContext(catalog=client))
    """

    _tasks: dict[str, ScheduledTask] = field(default_factory=dict)

    def register(self, task: ScheduledTask) -> None:
        """Register a task, replacing any task with the same key."""
        if task.key in self._tasks:
            logger.warning("Overwriting existing task %s", task.key)
        self._tasks[task.key] = task
        logger.debug("Registered task: %s (%s)", task.key, task.category)

    def get(self, key: str) -> ScheduledTask:
        """Look up a task by key.

        Raises:
            TaskNotFoundError: If no task has this key
        """
        try:
            return self._tasks[key]
        except KeyError:
            raise TaskNotFoundError(key, available=sorted(self._tasks)) from None

    def all(self) -> list[ScheduledTask]:
        """All tasks sorted by key."""
        return [self._tasks[key] for key in sorted(self._tasks)]

    def run(self, key: str, ctx: TaskContext) -> Any:
        """Run a task by key and return its result."""
        return self.get(key).run(ctx)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: object) -> bool:
        return key in self._tasks


def _download_theme_songs(ctx: TaskContext) -> Any:
    download = ctx.settings.download
    return download_all_theme_songs(
        ctx.catalog,
        download.url_template,
        filename=download.filename,
        timeout=download.timeout_seconds,
        http_client=ctx.http_client,
        cancel_event=ctx.cancel_event,
        dry_run=ctx.dry_run,
    )


def _normalize_theme_songs_volume(ctx: TaskContext) -> Any:
    return normalize_all_theme_songs(
        ctx.catalog,
        ctx.settings.normalize,
        cancel_event=ctx.cancel_event,
        dry_run=ctx.dry_run,
    )


DOWNLOAD_THEME_SONGS = ScheduledTask(
    name="Download Theme Songs",
    key="DownloadThemeSongs",
    description="Download missing theme songs for all series from the configured URL template",
    category=THEME_SONGS_CATEGORY,
    execute=_download_theme_songs,
)

NORMALIZE_THEME_SONGS_VOLUME = ScheduledTask(
    name="Normalize Theme Songs Volume",
    key="NormalizeThemeSongsVolume",
    description="Normalize theme songs audio volume using ffmpeg (sets volume to 0.5)",
    category=THEME_SONGS_CATEGORY,
    execute=_normalize_theme_songs_volume,
)


def default_registry() -> TaskRegistry:
    """Registry holding the built-in theme song tasks."""
    registry = TaskRegistry()
    registry.register(DOWNLOAD_THEME_SONGS)
    registry.register(NORMALIZE_THEME_SONGS_VOLUME)
    return registry
