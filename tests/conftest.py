"""Shared pytest fixtures and helpers for themesongs tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest

from themesongs.config import clear_settings
from themesongs.env_settings import clear_env_settings_cache
from themesongs.models import Series
from themesongs.utils.cmd import CmdResult

ENV_VARS = (
    "JELLYFIN_HOST",
    "JELLYFIN_API_KEY",
    "THEMESONGS_URL_TEMPLATE",
    "FFMPEG_BIN",
    "THEMESONGS_ENV",
    "LOG_LEVEL",
    "THEMESONGS_LOG_DIR",
)


def make_cmd_result(
    stdout: str = "",
    stderr: str = "",
    exit_code: int = 0,
    argv: tuple[str, ...] = ("ffmpeg",),
) -> CmdResult:
    """Create a CmdResult for mocking run() calls in tests.

    Args:
        stdout: Command stdout output.
        stderr: Command stderr output.
        exit_code: Command exit code.
        argv: Command arguments tuple.

    Returns:
        CmdResult with the specified values.
    """
    return CmdResult(argv=argv, stdout=stdout, stderr=stderr, exit_code=exit_code)


def make_series(
    path: Path | str,
    name: str = "Show",
    *,
    theme_songs: int = 0,
    **provider_ids: str,
) -> Series:
    """Create a Series; provider ids as keyword arguments (Tvdb="123")."""
    return Series(path=str(path), name=name, provider_ids=provider_ids, theme_songs=theme_songs)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Isolate every test from the host environment and cached settings."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("THEMESONGS_LOG_DIR", str(tmp_path / "logs"))
    clear_env_settings_cache()
    clear_settings()
    yield
    clear_env_settings_cache()
    clear_settings()


@pytest.fixture
def series_dir(tmp_path: Path) -> Path:
    """An empty series directory."""
    d = tmp_path / "library" / "Show"
    d.mkdir(parents=True)
    return d


@pytest.fixture
def audio_server() -> Callable[..., httpx.Client]:
    """Factory for an httpx client whose responses come from a handler.

    Requests are recorded on ``client.requests`` for assertions.
    """

    def factory(
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> httpx.Client:
        requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if handler is None:
                return httpx.Response(200, content=b"ID3-audio-bytes")
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(record))
        client.requests = requests  # type: ignore[attr-defined]
        return client

    return factory
