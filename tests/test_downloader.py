"""Tests for the theme song download routine."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

from tests.conftest import make_series
from themesongs.catalog.base import StaticCatalog
from themesongs.downloader import download_all_theme_songs, fetch_theme_song
from themesongs.exceptions import CatalogApiError, DownloadError
from themesongs.models import Series

TEMPLATE = "http://x/{tvdbId}.mp3"


class TestFetchThemeSong:
    """Test fetch_theme_song()."""

    def test_writes_destination(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Body lands at the destination and no .part file remains."""
        client = audio_server()
        destination = tmp_path / "theme.mp3"

        fetch_theme_song(client, "http://x/1.mp3", destination)

        assert destination.read_bytes() == b"ID3-audio-bytes"
        assert not (tmp_path / "theme.mp3.part").exists()

    def test_http_error_raises_and_cleans_up(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """A 404 raises DownloadError and leaves nothing behind."""
        client = audio_server(lambda request: httpx.Response(404))
        destination = tmp_path / "theme.mp3"

        with pytest.raises(DownloadError) as exc_info:
            fetch_theme_song(client, "http://x/1.mp3", destination)

        assert exc_info.value.url == "http://x/1.mp3"
        assert not destination.exists()
        assert not (tmp_path / "theme.mp3.part").exists()

    def test_transport_error_raises(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Connection failures become DownloadError."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DownloadError):
            fetch_theme_song(audio_server(refuse), "http://x/1.mp3", tmp_path / "theme.mp3")

    def test_missing_directory_raises(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Filesystem errors become DownloadError."""
        destination = tmp_path / "does-not-exist" / "theme.mp3"
        with pytest.raises(DownloadError):
            fetch_theme_song(audio_server(), "http://x/1.mp3", destination)

    def test_existing_file_overwritten(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """A stale file at the destination is replaced."""
        destination = tmp_path / "theme.mp3"
        destination.write_bytes(b"old")
        fetch_theme_song(audio_server(), "http://x/1.mp3", destination)
        assert destination.read_bytes() == b"ID3-audio-bytes"


class TestDownloadAllThemeSongs:
    """Test download_all_theme_songs()."""

    def test_downloads_missing_theme_song(
        self, series_dir: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Series without a theme song gets theme.mp3 from the resolved URL."""
        client = audio_server()
        catalog = StaticCatalog([make_series(series_dir, Tvdb="12345")])

        summary = download_all_theme_songs(catalog, TEMPLATE, http_client=client)

        assert (series_dir / "theme.mp3").read_bytes() == b"ID3-audio-bytes"
        assert [str(r.url) for r in client.requests] == ["http://x/12345.mp3"]
        assert summary.downloaded == ["Show"]

    def test_series_with_theme_song_never_fetched(
        self, series_dir: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """No request is issued for a series that already has a theme song."""
        client = audio_server()
        catalog = StaticCatalog([make_series(series_dir, theme_songs=1, Tvdb="12345")])

        summary = download_all_theme_songs(catalog, TEMPLATE, http_client=client)

        assert client.requests == []
        assert not (series_dir / "theme.mp3").exists()
        assert summary.skipped_existing == ["Show"]

    def test_missing_provider_id_skips_series(
        self,
        series_dir: Path,
        audio_server: Callable[..., httpx.Client],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Unresolvable template skips the series and names the missing id."""
        client = audio_server()
        catalog = StaticCatalog([make_series(series_dir, Tvdb="12345")])

        with caplog.at_level("INFO", logger="themesongs"):
            summary = download_all_theme_songs(
                catalog, "http://x/{imdbId}.mp3", http_client=client
            )

        assert client.requests == []
        assert summary.skipped_missing_ids == {"Show": ["imdbId"]}
        assert "imdbId" in caplog.text

    def test_series_without_tvdb_id_not_fetched(
        self,
        series_dir: Path,
        audio_server: Callable[..., httpx.Client],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Same template, no tvdb id: no request and tvdbId named as missing."""
        client = audio_server()
        catalog = StaticCatalog([make_series(series_dir, Imdb="tt1")])

        with caplog.at_level("INFO", logger="themesongs"):
            summary = download_all_theme_songs(catalog, TEMPLATE, http_client=client)

        assert client.requests == []
        assert summary.skipped_missing_ids == {"Show": ["tvdbId"]}
        assert "Missing provider ids: tvdbId" in caplog.text

    def test_blank_template_never_touches_catalog(self) -> None:
        """Empty template returns before enumerating series."""
        catalog = MagicMock()

        for template in ("", "   ", None):
            summary = download_all_theme_songs(catalog, template)
            assert summary.total == 0

        catalog.list_series.assert_not_called()

    def test_http_failure_does_not_stop_batch(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """A 404 for one series is logged and the next series still downloads."""
        first = tmp_path / "First"
        second = tmp_path / "Second"
        first.mkdir()
        second.mkdir()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/1.mp3":
                return httpx.Response(404)
            return httpx.Response(200, content=b"audio")

        catalog = StaticCatalog(
            [make_series(first, "First", Tvdb="1"), make_series(second, "Second", Tvdb="2")]
        )

        summary = download_all_theme_songs(catalog, TEMPLATE, http_client=audio_server(handler))

        assert not (first / "theme.mp3").exists()
        assert not (first / "theme.mp3.part").exists()
        assert (second / "theme.mp3").read_bytes() == b"audio"
        assert list(summary.failed) == ["First"]
        assert summary.downloaded == ["Second"]

    def test_non_http_template_fails_per_series(self, series_dir: Path) -> None:
        """An ftp:// URL is rejected by the HTTP client and recorded as a failure."""
        catalog = StaticCatalog([make_series(series_dir, Tvdb="1")])

        summary = download_all_theme_songs(catalog, "ftp://x/{tvdbId}.mp3")

        assert list(summary.failed) == ["Show"]
        assert summary.downloaded == []
        assert not (series_dir / "theme.mp3").exists()
        assert not (series_dir / "theme.mp3.part").exists()

    def test_catalog_error_for_one_series_is_per_item(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """A failing theme song lookup is recorded and the batch continues."""
        broken = MagicMock(spec=Series)
        broken.name = "Broken"
        broken.has_theme_song.side_effect = CatalogApiError("API error: 500")
        good_dir = tmp_path / "Good"
        good_dir.mkdir()
        catalog = StaticCatalog([broken, make_series(good_dir, "Good", Tvdb="1")])

        summary = download_all_theme_songs(catalog, TEMPLATE, http_client=audio_server())

        assert "Broken" in summary.failed
        assert summary.downloaded == ["Good"]

    def test_enumeration_error_propagates(self) -> None:
        """Failure to list series aborts the batch."""
        catalog = MagicMock()
        catalog.list_series.side_effect = CatalogApiError("boom")

        with pytest.raises(CatalogApiError):
            download_all_theme_songs(catalog, TEMPLATE, http_client=MagicMock())

    def test_blank_series_path_skipped(self, audio_server: Callable[..., httpx.Client]) -> None:
        """A series with no directory gets no request."""
        client = audio_server()
        catalog = StaticCatalog([make_series("", Tvdb="1")])

        summary = download_all_theme_songs(catalog, TEMPLATE, http_client=client)

        assert client.requests == []
        assert "Show" in summary.failed

    def test_dry_run_issues_no_requests(self, series_dir: Path) -> None:
        """Dry run plans downloads without creating a client."""
        catalog = StaticCatalog([make_series(series_dir, Tvdb="12345")])

        summary = download_all_theme_songs(catalog, TEMPLATE, dry_run=True)

        assert summary.planned == {"Show": "http://x/12345.mp3"}
        assert not (series_dir / "theme.mp3").exists()

    def test_custom_filename(
        self, series_dir: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Destination file name is configurable."""
        catalog = StaticCatalog([make_series(series_dir, Tvdb="1")])
        download_all_theme_songs(
            catalog, TEMPLATE, filename="theme.ogg", http_client=audio_server()
        )
        assert (series_dir / "theme.ogg").exists()

    def test_cancel_between_series(
        self, tmp_path: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Setting the cancel event stops the batch before the next series."""
        cancel = threading.Event()
        dirs = [tmp_path / name for name in ("A", "B")]
        for d in dirs:
            d.mkdir()

        def handler(request: httpx.Request) -> httpx.Response:
            cancel.set()
            return httpx.Response(200, content=b"audio")

        client = audio_server(handler)
        catalog = StaticCatalog(
            [make_series(dirs[0], "A", Tvdb="1"), make_series(dirs[1], "B", Tvdb="2")]
        )

        summary = download_all_theme_songs(
            catalog, TEMPLATE, http_client=client, cancel_event=cancel
        )

        assert summary.cancelled
        assert summary.downloaded == ["A"]
        assert len(client.requests) == 1

    def test_owned_client_closed(
        self, series_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A client created by the routine is closed afterwards."""
        created = MagicMock(spec=httpx.Client)
        monkeypatch.setattr("themesongs.downloader.make_http_client", lambda timeout: created)
        monkeypatch.setattr(
            "themesongs.downloader.fetch_theme_song", lambda client, url, dest: dest
        )
        catalog = StaticCatalog([make_series(series_dir, Tvdb="1")])

        download_all_theme_songs(catalog, TEMPLATE)

        created.close.assert_called_once()

    def test_catalog_enumerated_once(
        self, series_dir: Path, audio_server: Callable[..., httpx.Client]
    ) -> None:
        """Each run lists series exactly once."""
        calls = []

        class CountingCatalog:
            def list_series(self) -> Iterator[Series]:
                calls.append(1)
                yield make_series(series_dir, Tvdb="1")

        download_all_theme_songs(CountingCatalog(), TEMPLATE, http_client=audio_server())
        assert calls == [1]
