"""Runtime context for CLI commands.

Initialized once in the main callback and available to all commands via
ctx.obj. Provides:
- Global flags (dry_run, verbose)
- Loaded settings, or the configuration error that prevented loading
- A lazy-loaded catalog client
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from themesongs.exceptions import ConfigurationError

if TYPE_CHECKING:
    from themesongs.catalog.base import SeriesCatalog
    from themesongs.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class RuntimeContext:
    """Typed runtime context available to all commands via ctx.obj.

    Example:
        @app.command()
        def my_command(ctx: typer.Context) -> None:
            runtime = get_runtime_context(ctx.obj)
            settings = runtime.require_settings()
            for series in runtime.catalog.list_series():
                ...
    """

    config_path: Path
    settings: Settings | None = None
    settings_error: ConfigurationError | None = None
    dry_run: bool = False
    verbose: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event)

    # Lazy-loaded catalog (initialized on first use)
    _catalog: SeriesCatalog | None = field(default=None, repr=False)

    def require_settings(self) -> Settings:
        """Return loaded settings or raise the error that prevented loading."""
        if self.settings is None:
            raise self.settings_error or ConfigurationError("Settings not loaded")
        return self.settings

    @property
    def catalog(self) -> SeriesCatalog:
        """Get or create the catalog (lazy-loaded Jellyfin client).

        Raises:
            ConfigurationError: If Jellyfin host or API key is missing
        """
        if self._catalog is None:
            self._catalog = make_catalog(self.require_settings())
        return self._catalog

    def close(self) -> None:
        """Cleanup resources (close HTTP clients)."""
        close = getattr(self._catalog, "close", None)
        if callable(close):
            close()
        self._catalog = None

    def __enter__(self) -> RuntimeContext:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def get_runtime_context(ctx_obj: object) -> RuntimeContext:
    """Extract RuntimeContext from typer context object.

    Raises:
        TypeError: If ctx_obj is not a RuntimeContext
    """
    if isinstance(ctx_obj, RuntimeContext):
        return ctx_obj
    raise TypeError(f"Expected RuntimeContext, got {type(ctx_obj).__name__}")


def make_catalog(settings: Settings) -> SeriesCatalog:
    """Build the catalog client described by settings.

    Raises:
        ConfigurationError: If Jellyfin host or API key is missing
    """
    if not settings.jellyfin.host:
        raise ConfigurationError("Jellyfin host not configured. Set JELLYFIN_HOST.")
    if not settings.jellyfin.api_key:
        raise ConfigurationError("Jellyfin API key not configured. Set JELLYFIN_API_KEY.")

    # Heavy import deferred to runtime
    from themesongs.catalog.jellyfin import JellyfinClient

    logger.debug("Jellyfin client initialized for %s", settings.jellyfin.host)
    return JellyfinClient.from_config(settings.jellyfin)
