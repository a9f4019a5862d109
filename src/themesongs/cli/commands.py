"""Theme song and diagnostics commands.

Commands: download, normalize, resolve, check
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading
from collections.abc import Iterator
from typing import Annotated, Any, NoReturn

import typer

from themesongs.cli._app import DIAG_COMMANDS, THEME_COMMANDS
from themesongs.cli._context import RuntimeContext, get_runtime_context
from themesongs.exceptions import CatalogError, ConfigurationError, ThemeSongsError

logger = logging.getLogger(__name__)

TemplateOpt = Annotated[
    str | None,
    typer.Option(
        "--template",
        "-t",
        help="URL template overriding the configured one (e.g. https://host/{tvdbId}.mp3).",
    ),
]


def fail(error: ThemeSongsError) -> NoReturn:
    """Print an error and exit with status 1."""
    from themesongs.console import print_error

    print_error(str(error))
    logger.debug("Error details: %s", error.details)
    raise typer.Exit(1)


@contextlib.contextmanager
def cancel_on_interrupt(event: threading.Event) -> Iterator[None]:
    """Turn the first Ctrl-C into a cooperative cancel between items."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, frame: Any) -> None:
        logger.warning("Interrupt received, finishing the current item...")
        event.set()
        signal.signal(signal.SIGINT, previous)

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_download(runtime: RuntimeContext, template: str | None) -> None:
    from themesongs.console import print_download_summary, print_warning
    from themesongs.downloader import download_all_theme_songs

    settings = runtime.require_settings()
    template = template if template is not None else settings.download.url_template
    if not template or not template.strip():
        print_warning("No URL template configured; nothing to download.")
        return

    with cancel_on_interrupt(runtime.cancel_event):
        summary = download_all_theme_songs(
            runtime.catalog,
            template,
            filename=settings.download.filename,
            timeout=settings.download.timeout_seconds,
            cancel_event=runtime.cancel_event,
            dry_run=runtime.dry_run,
        )
    print_download_summary(summary, dry_run=runtime.dry_run)


def run_normalize(runtime: RuntimeContext) -> None:
    from themesongs.console import print_normalize_summary
    from themesongs.normalizer import normalize_all_theme_songs

    settings = runtime.require_settings()
    with cancel_on_interrupt(runtime.cancel_event):
        summary = normalize_all_theme_songs(
            runtime.catalog,
            settings.normalize,
            cancel_event=runtime.cancel_event,
            dry_run=runtime.dry_run,
        )
    print_normalize_summary(summary, dry_run=runtime.dry_run)


def register_theme_commands(app: typer.Typer) -> None:
    """Register theme song commands on the app."""

    @app.command(rich_help_panel=THEME_COMMANDS)
    def download(ctx: typer.Context, template: TemplateOpt = None) -> None:
        """⬇️  Download missing theme songs.

        Every series without a theme song gets [cyan]theme.mp3[/] fetched from
        the URL template. Series already having one are never touched.

        [bold]Placeholders:[/] {tvdbId}, {imdbId}, {tmdbId}

        [bold]Examples:[/]
          themesongs download
          themesongs --dry-run download
          themesongs download -t "https://example.com/{tvdbId}.mp3"
        """
        runtime = get_runtime_context(ctx.obj)
        try:
            run_download(runtime, template)
        except (ConfigurationError, CatalogError) as e:
            fail(e)

    @app.command(rich_help_panel=THEME_COMMANDS)
    def normalize(ctx: typer.Context) -> None:
        """🔉 Normalize theme song volume with ffmpeg.

        Re-encodes every [cyan]theme.*[/] file in each series folder with the
        volume filter. Originals are replaced only when ffmpeg succeeds.

        [bold]Examples:[/]
          themesongs normalize
          themesongs --dry-run normalize
        """
        runtime = get_runtime_context(ctx.obj)
        try:
            run_normalize(runtime)
        except (ConfigurationError, CatalogError) as e:
            fail(e)

    @app.command(rich_help_panel=THEME_COMMANDS)
    def resolve(ctx: typer.Context, template: TemplateOpt = None) -> None:
        """🔗 Preview the theme song URL for each series.

        Read-only: nothing is downloaded.
        """
        from themesongs.console import print_resolution_table, print_warning
        from themesongs.models import UrlResolution
        from themesongs.resolver import resolve_theme_song_url

        runtime = get_runtime_context(ctx.obj)
        try:
            settings = runtime.require_settings()
            template = template if template is not None else settings.download.url_template
            if not template or not template.strip():
                print_warning("No URL template configured.")
                return

            rows: list[tuple[str, bool, UrlResolution | None]] = []
            for series in runtime.catalog.list_series():
                try:
                    has_theme_song = series.has_theme_song()
                except CatalogError as e:
                    logger.warning("Unable to check theme songs for %s: %s", series.name, e)
                    rows.append((series.name, False, None))
                    continue
                rows.append(
                    (series.name, has_theme_song, resolve_theme_song_url(template, series))
                )
        except (ConfigurationError, CatalogError) as e:
            fail(e)

        print_resolution_table(rows)


def register_diagnostics_commands(app: typer.Typer) -> None:
    """Register diagnostics commands on the app."""

    @app.command(rich_help_panel=DIAG_COMMANDS)
    def check(ctx: typer.Context) -> None:
        """🩺 Verify configuration, Jellyfin connectivity and ffmpeg.

        [bold]Checks performed:[/]
          • Configuration file and environment values
          • Jellyfin server reachable with the API key
          • ffmpeg binary can be started
        """
        from themesongs.console import print_error, print_info, print_success, print_warning
        from themesongs.normalizer import ffmpeg_version

        runtime = get_runtime_context(ctx.obj)
        try:
            settings = runtime.require_settings()
        except ConfigurationError as e:
            fail(e)

        failures = 0
        if settings.config_file is not None:
            print_success(f"Config loaded from {settings.config_file}")
        else:
            print_info(f"No config file at {runtime.config_path}; using defaults")

        if settings.download.url_template:
            print_success(f"URL template: {settings.download.url_template}")
        else:
            print_warning("No URL template configured; downloads are disabled")

        try:
            catalog = runtime.catalog
            info = catalog.system_info() if hasattr(catalog, "system_info") else None
        except (ConfigurationError, CatalogError) as e:
            print_error(f"Jellyfin: {e}")
            failures += 1
        else:
            if info is not None:
                print_success(f"Jellyfin: {info.server_name} {info.version}".rstrip())
            else:
                print_success("Catalog available")

        try:
            version = ffmpeg_version(settings.normalize.ffmpeg_binary)
        except ThemeSongsError as e:
            print_error(f"ffmpeg: {e}")
            failures += 1
        else:
            print_success(f"ffmpeg: {version}")

        raise typer.Exit(1 if failures else 0)
