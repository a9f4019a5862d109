"""Theme song volume normalization via ffmpeg.

Each ``theme.*`` file found at the top of a series directory is re-encoded
to a temp file with the volume filter applied. The original is replaced only
after ffmpeg exits 0, and the temp file is removed afterwards. A temp file that
cannot be deleted is logged and leaves the replaced original in place.
"""

from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
import threading
import uuid
from pathlib import Path

from themesongs.catalog.base import SeriesCatalog
from themesongs.config import NormalizeConfig
from themesongs.exceptions import FfmpegError, ToolNotFoundError
from themesongs.models import NormalizationJob, NormalizationStatus, NormalizeSummary
from themesongs.utils.cmd import CmdError, CommandNotFoundError, run

logger = logging.getLogger(__name__)

THEME_FILE_GLOB = "theme.*"


def find_theme_files(directory: Path | str) -> list[Path]:
    """List files directly inside ``directory`` named ``theme.<ext>``.

    Sorted for stable logs only; callers must not rely on the order.
    """
    return sorted(p for p in Path(directory).glob(THEME_FILE_GLOB) if p.is_file())


def make_temp_path(source: Path, temp_dir: Path | str | None = None) -> Path:
    """Unique scratch path in the temp directory, keeping the source extension."""
    base = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())
    return base / f"{uuid.uuid4().hex}{source.suffix}"


def build_ffmpeg_command(source: Path, output: Path, config: NormalizeConfig) -> list[str]:
    """Build the ffmpeg argument vector for one file."""
    return [
        config.ffmpeg_binary,
        "-y",
        "-i",
        str(source),
        "-filter:a",
        f"volume={config.volume:g}",
        "-vn",
        "-c:a",
        config.codec,
        "-q:a",
        str(config.quality),
        str(output),
    ]


def _remove_temp(path: Path) -> None:
    with contextlib.suppress(OSError):
        path.unlink(missing_ok=True)


def normalize_file(
    source: Path,
    config: NormalizeConfig | None = None,
    *,
    temp_dir: Path | str | None = None,
) -> NormalizationJob:
    """Apply the volume filter to one file in place.

    Never raises for per-file problems: the returned job's ``status`` says
    what happened and a warning is logged.
    """
    config = config or NormalizeConfig()
    job = NormalizationJob(source=source, temp_path=make_temp_path(source, temp_dir))
    argv = build_ffmpeg_command(source, job.temp_path, config)

    try:
        try:
            result = run(argv, timeout=config.timeout_seconds)
        except CommandNotFoundError as e:
            logger.warning("FFmpeg process could not be started for %s: %s", source, e.reason)
            job.status = NormalizationStatus.SPAWN_FAILED
            job.error = e.reason
            return job
        except CmdError as e:
            logger.warning("FFmpeg failed for %s: %s", source, e.stderr)
            job.status = NormalizationStatus.TOOL_FAILED
            job.return_code = e.exit_code
            job.stderr = e.stderr
            _remove_temp(job.temp_path)
            return job

        job.return_code = result.exit_code
        job.stderr = result.stderr

        shutil.copyfile(job.temp_path, source)
        job.status = NormalizationStatus.NORMALIZED
        logger.info("Normalized volume for %s", source)
    except Exception as e:
        logger.warning("Error normalizing volume for %s: %s", source, e, exc_info=True)
        job.status = NormalizationStatus.ERROR
        job.error = str(e)
        _remove_temp(job.temp_path)
        return job

    try:
        job.temp_path.unlink()
    except OSError as e:
        logger.warning("Temp file %s left behind: %s", job.temp_path, e)

    return job


def normalize_all_theme_songs(
    catalog: SeriesCatalog,
    config: NormalizeConfig | None = None,
    *,
    cancel_event: threading.Event | None = None,
    dry_run: bool = False,
    temp_dir: Path | str | None = None,
) -> NormalizeSummary:
    """Normalize every theme file of every series in the catalog.

    Args:
        catalog: Source of series records
        config: ffmpeg settings (defaults: volume 0.5, libmp3lame, q:a 2)
        cancel_event: Checked between series and between files
        dry_run: List candidate files without running ffmpeg
        temp_dir: Scratch directory (default: system temp dir)

    Returns:
        NormalizeSummary with one job per processed file

    Raises:
        themesongs.exceptions.CatalogError: If the series list cannot be read
    """
    config = config or NormalizeConfig()
    summary = NormalizeSummary()

    for series in catalog.list_series():
        if cancel_event is not None and cancel_event.is_set():
            summary.cancelled = True
            break

        directory = series.path
        if not directory or not directory.strip() or not Path(directory).is_dir():
            logger.debug("Skipping %s: directory missing (%r)", series.name, directory)
            summary.series_skipped += 1
            continue

        try:
            files = find_theme_files(directory)
        except OSError as e:
            logger.warning("Unable to list %s: %s", directory, e)
            summary.series_skipped += 1
            continue

        for file in files:
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                break

            if dry_run:
                logger.info("[dry-run] Would normalize %s", file)
                summary.planned.append(file)
                continue

            summary.jobs.append(normalize_file(file, config, temp_dir=temp_dir))

        if summary.cancelled:
            break

    if summary.cancelled:
        logger.info("Theme song normalization cancelled")

    return summary


def ffmpeg_version(binary: str = "ffmpeg") -> str:
    """Return the first line of ``ffmpeg -version``.

    Raises:
        ToolNotFoundError: If the binary cannot be started
        FfmpegError: If ffmpeg exits non-zero
    """
    argv = [binary, "-hide_banner", "-version"]
    try:
        result = run(argv, timeout=15)
    except CommandNotFoundError as e:
        raise ToolNotFoundError(
            f"ffmpeg could not be started: {e.reason}", tool="ffmpeg", command=binary
        ) from e
    except CmdError as e:
        raise FfmpegError(
            f"ffmpeg -version exited with {e.exit_code}",
            command=" ".join(argv),
            return_code=e.exit_code,
            stderr=e.stderr,
        ) from e
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else ""
