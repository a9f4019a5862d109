"""Download missing theme songs from a templated URL.

Series that already have a theme song (according to the catalog) are never
touched. Everything else gets ``<series dir>/theme.mp3`` fetched from the
resolved template URL. One series failing never stops the batch; there is no
retry, the next scheduled run picks up whatever is still missing.
"""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from pathlib import Path

import httpx

from themesongs import __version__
from themesongs.catalog.base import SeriesCatalog
from themesongs.exceptions import CatalogError, DownloadError
from themesongs.models import DownloadSummary
from themesongs.resolver import resolve_theme_song_url

logger = logging.getLogger(__name__)

THEME_SONG_FILENAME = "theme.mp3"
USER_AGENT = f"themesongs/{__version__}"


def make_http_client(timeout: float = 60.0) -> httpx.Client:
    """Create the httpx client used for theme song downloads."""
    return httpx.Client(
        follow_redirects=True,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )


def fetch_theme_song(client: httpx.Client, url: str, destination: Path) -> Path:
    """Stream a URL into ``destination``.

    Bytes go to a ``.part`` file next to the destination first and are moved
    into place only once the whole body arrived, so a failed transfer never
    leaves a truncated theme song behind.

    Raises:
        DownloadError: On any transport, HTTP status, or filesystem failure
    """
    part = destination.with_name(destination.name + ".part")
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(part, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
        os.replace(part, destination)
    except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
        with contextlib.suppress(OSError):
            part.unlink(missing_ok=True)
        raise DownloadError(str(e) or type(e).__name__, url=url, destination=destination) from e
    return destination


def download_all_theme_songs(
    catalog: SeriesCatalog,
    template: str | None,
    *,
    filename: str = THEME_SONG_FILENAME,
    timeout: float = 60.0,
    http_client: httpx.Client | None = None,
    cancel_event: threading.Event | None = None,
    dry_run: bool = False,
) -> DownloadSummary:
    """Download a theme song for every series that lacks one.

    Args:
        catalog: Source of series records
        template: URL template; blank or None disables downloading
        filename: Destination file name inside each series directory
        timeout: Request timeout for the default client
        http_client: Client to use instead of creating one
        cancel_event: Checked between series; stops the batch when set
        dry_run: Log what would be fetched without issuing requests

    Returns:
        DownloadSummary describing what happened to each series

    Raises:
        themesongs.exceptions.CatalogError: If the series list cannot be read
    """
    summary = DownloadSummary()

    if template is None or not template.strip():
        logger.info("Skipping theme song download: no URL template configured.")
        return summary

    series_list = catalog.list_series()

    owns_client = http_client is None and not dry_run
    client = make_http_client(timeout) if owns_client else http_client

    try:
        for series in series_list:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Theme song download cancelled")
                summary.cancelled = True
                break

            try:
                has_theme_song = series.has_theme_song()
            except CatalogError as e:
                logger.warning("Unable to check theme songs for %s: %s", series.name, e)
                summary.failed[series.name] = str(e)
                continue

            if has_theme_song:
                logger.debug("%s already has a theme song", series.name)
                summary.skipped_existing.append(series.name)
                continue

            if not series.path or not series.path.strip():
                logger.warning("Skipping theme song download for %s: no path", series.name)
                summary.failed[series.name] = "series has no path"
                continue

            resolution = resolve_theme_song_url(template, series)
            if not resolution.ok:
                logger.info(
                    "Skipping theme song download for %s. Missing provider ids: %s",
                    series.name,
                    ", ".join(resolution.missing),
                )
                summary.skipped_missing_ids[series.name] = resolution.missing
                continue

            link = resolution.url
            assert link is not None
            destination = Path(series.path) / filename

            if dry_run:
                logger.info("[dry-run] Would download %s from %s", series.name, link)
                summary.planned[series.name] = link
                continue

            assert client is not None
            logger.debug("Trying to download %s, %s", series.name, link)
            try:
                fetch_theme_song(client, link, destination)
            except DownloadError as e:
                logger.warning(
                    "Unable to download theme song for %s from %s: %s", series.name, link, e
                )
                summary.failed[series.name] = str(e)
                continue

            logger.info("%s theme song successfully downloaded from %s", series.name, link)
            summary.downloaded.append(series.name)
    finally:
        if owns_client and client is not None:
            client.close()

    return summary
