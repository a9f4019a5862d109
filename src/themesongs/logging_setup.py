"""Logging for themesongs runs.

Console records go to stderr through Rich, sharing the CLI theme, so they
never interleave with the summary tables printed on stdout. When a log file
is configured (``paths.log_file``, the platform log directory by default)
every DEBUG record is kept there too; that file is what an unattended cron
or systemd run leaves behind.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from themesongs.console import err_console

LOGGER_NAME = "themesongs"
LOG_FILE_FORMAT = "%(asctime)s | %(levelname)-5s | [%(name)s] %(message)s"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def parse_level(name: str) -> int:
    """Map a level name to its number; unknown names mean INFO."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def open_log_file(log_file: Path | str) -> RotatingFileHandler:
    """Open the rotating DEBUG file handler, creating parent directories.

    Raises:
        OSError: If the directory or the file cannot be created
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | str | None = None,
    *,
    quiet: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """Configure the ``themesongs`` logger for one run.

    Calling it again replaces (and closes) the handlers of the previous call.
    An unwritable log file is reported on the console and the run continues
    without it.

    Args:
        log_level: Console threshold (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file receiving every DEBUG record
        quiet: Only show WARNING and above on the console
        console: Rich console for records (default: the CLI's stderr console)

    Returns:
        The ``themesongs`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_level = parse_level(log_level)
    if quiet:
        console_level = max(console_level, logging.WARNING)

    console_handler = RichHandler(
        console=console or err_console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)
    logger.setLevel(console_level)

    if log_file is None:
        return logger

    try:
        file_handler = open_log_file(log_file)
    except OSError as e:
        logger.warning("Log file %s is not writable, logging to console only: %s", log_file, e)
        return logger

    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)
    return logger
