"""Data models shared by the download and normalization routines."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable


class ProviderKind(str, Enum):
    """Metadata providers whose ids can appear in a URL template."""

    TVDB = "Tvdb"
    IMDB = "Imdb"
    TMDB = "Tmdb"


@runtime_checkable
class SeriesRecord(Protocol):
    """Read-only view of one series in the library catalog.

    Only the capabilities the theme song routines need are exposed; the
    catalog owns the record and may materialize a fresh one on every
    enumeration.
    """

    @property
    def path(self) -> str:
        """Series directory on disk."""
        ...

    @property
    def name(self) -> str:
        """Display name."""
        ...

    def get_provider_id(self, kind: ProviderKind) -> str | None:
        """Return the id for a provider, or None when unknown."""
        ...

    def has_theme_song(self) -> bool:
        """True when the catalog already associates a theme song."""
        ...


@dataclass(frozen=True)
class Series:
    """Plain in-memory series record.

    Provider keys are matched case-insensitively, so both ``{"Tvdb": ...}``
    (catalog spelling) and ``{"tvdb": ...}`` work.
    """

    path: str
    name: str
    provider_ids: Mapping[str, str] = field(default_factory=dict)
    theme_songs: int = 0

    def get_provider_id(self, kind: ProviderKind) -> str | None:
        wanted = kind.value.lower()
        for key, value in self.provider_ids.items():
            if key.lower() == wanted:
                return value
        return None

    def has_theme_song(self) -> bool:
        return self.theme_songs > 0


@dataclass(frozen=True)
class PlaceholderBinding:
    """One template placeholder bound to a series' provider id."""

    placeholder: str
    value: str | None
    name: str


@dataclass
class UrlResolution:
    """Outcome of resolving a URL template against one series."""

    template: str
    url: str | None = None
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.url is not None and not self.missing


class NormalizationStatus(str, Enum):
    """Terminal state of one normalization job."""

    NORMALIZED = "normalized"
    SPAWN_FAILED = "spawn_failed"
    TOOL_FAILED = "tool_failed"
    ERROR = "error"


@dataclass
class NormalizationJob:
    """One theme file pushed through ffmpeg.

    The source file is only overwritten after ffmpeg exits 0, and the temp
    file never outlives the job.
    """

    source: Path
    temp_path: Path
    status: NormalizationStatus | None = None
    return_code: int | None = None
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is NormalizationStatus.NORMALIZED


@dataclass
class DownloadSummary:
    """Per-batch counters for a download run.

    Informational only: a batch with failures still completes.
    """

    downloaded: list[str] = field(default_factory=list)
    skipped_existing: list[str] = field(default_factory=list)
    skipped_missing_ids: dict[str, list[str]] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    planned: dict[str, str] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def total(self) -> int:
        return (
            len(self.downloaded)
            + len(self.skipped_existing)
            + len(self.skipped_missing_ids)
            + len(self.failed)
            + len(self.planned)
        )


@dataclass
class NormalizeSummary:
    """Per-batch counters for a normalization run."""

    jobs: list[NormalizationJob] = field(default_factory=list)
    planned: list[Path] = field(default_factory=list)
    series_skipped: int = 0
    cancelled: bool = False

    @property
    def normalized(self) -> list[NormalizationJob]:
        return [job for job in self.jobs if job.ok]

    @property
    def failed(self) -> list[NormalizationJob]:
        return [job for job in self.jobs if not job.ok]
