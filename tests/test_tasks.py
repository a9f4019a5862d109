"""Tests for the scheduled task registry."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from tests.conftest import make_cmd_result, make_series
from themesongs.catalog.base import StaticCatalog
from themesongs.config import DownloadConfig, Settings
from themesongs.exceptions import TaskNotFoundError
from themesongs.models import DownloadSummary, NormalizeSummary
from themesongs.tasks import (
    DOWNLOAD_THEME_SONGS,
    NORMALIZE_THEME_SONGS_VOLUME,
    THEME_SONGS_CATEGORY,
    ScheduledTask,
    TaskContext,
    TaskRegistry,
    default_registry,
)


class TestTaskMetadata:
    """Tests for the built-in task descriptions."""

    def test_normalize_task(self) -> None:
        """Normalization task name, key and category."""
        task = NORMALIZE_THEME_SONGS_VOLUME
        assert task.name == "Normalize Theme Songs Volume"
        assert task.key == "NormalizeThemeSongsVolume"
        assert task.category == "Theme Songs"
        assert "0.5" in task.description

    def test_download_task(self) -> None:
        """Download task shares the category."""
        assert DOWNLOAD_THEME_SONGS.key == "DownloadThemeSongs"
        assert DOWNLOAD_THEME_SONGS.category == THEME_SONGS_CATEGORY


class TestTaskRegistry:
    """Tests for TaskRegistry."""

    def test_default_registry(self) -> None:
        """Both built-in tasks are registered, sorted by key."""
        registry = default_registry()
        assert len(registry) == 2
        assert [t.key for t in registry.all()] == [
            "DownloadThemeSongs",
            "NormalizeThemeSongsVolume",
        ]
        assert "DownloadThemeSongs" in registry

    def test_unknown_key(self) -> None:
        """Unknown keys raise TaskNotFoundError listing the options."""
        with pytest.raises(TaskNotFoundError) as exc_info:
            default_registry().get("Nope")
        assert exc_info.value.available == ["DownloadThemeSongs", "NormalizeThemeSongsVolume"]

    def test_register_overwrites(self, caplog: pytest.LogCaptureFixture) -> None:
        """Re-registering a key replaces the task and warns."""
        registry = TaskRegistry()
        first = ScheduledTask("A", "Key", "first", "Cat", execute=lambda ctx: 1)
        second = ScheduledTask("B", "Key", "second", "Cat", execute=lambda ctx: 2)

        registry.register(first)
        with caplog.at_level("WARNING", logger="themesongs"):
            registry.register(second)

        assert registry.get("Key") is second
        assert "Overwriting" in caplog.text

    def test_run_returns_result(self) -> None:
        """run() executes the task with the context."""
        registry = TaskRegistry()
        registry.register(ScheduledTask("A", "A", "", "Cat", execute=lambda ctx: ctx.dry_run))
        assert registry.run("A", TaskContext(catalog=StaticCatalog(), dry_run=True)) is True


class TestBuiltInTasks:
    """Tests for running the built-in tasks."""

    def test_download_task_uses_settings(
        self, series_dir: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Download task reads the template from settings."""
        client = audio_server()
        ctx = TaskContext(
            catalog=StaticCatalog([make_series(series_dir, Tvdb="12345")]),
            settings=Settings(download=DownloadConfig(url_template="http://x/{tvdbId}.mp3")),
            http_client=client,
        )

        summary = default_registry().run("DownloadThemeSongs", ctx)

        assert isinstance(summary, DownloadSummary)
        assert summary.downloaded == ["Show"]
        assert (series_dir / "theme.mp3").exists()

    def test_download_task_blank_template(self, series_dir: Path) -> None:
        """Download task with default settings is a no-op."""
        ctx = TaskContext(catalog=StaticCatalog([make_series(series_dir, Tvdb="1")]))
        summary = DOWNLOAD_THEME_SONGS.run(ctx)
        assert summary.total == 0

    def test_normalize_task(self, series_dir: Path, tmp_path: Path) -> None:
        """Normalize task runs ffmpeg for theme files on disk."""
        (series_dir / "theme.mp3").write_bytes(b"loud")

        def fake_run(argv, **kwargs):
            Path(argv[-1]).write_bytes(b"quiet")
            return make_cmd_result(argv=tuple(argv))

        ctx = TaskContext(catalog=StaticCatalog([make_series(series_dir)]))
        with patch("themesongs.normalizer.run", side_effect=fake_run):
            summary = NORMALIZE_THEME_SONGS_VOLUME.run(ctx)

        assert isinstance(summary, NormalizeSummary)
        assert len(summary.normalized) == 1
        assert (series_dir / "theme.mp3").read_bytes() == b"quiet"

    def test_task_logs_start_and_completion(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Task runs are bracketed by log lines."""
        with caplog.at_level("INFO", logger="themesongs"):
            NORMALIZE_THEME_SONGS_VOLUME.run(TaskContext(catalog=StaticCatalog()))
        assert "Starting Normalize Theme Songs Volume task..." in caplog.text
        assert "Normalize Theme Songs Volume task completed" in caplog.text
