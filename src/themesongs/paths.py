"""Cross-platform path handling using platformdirs."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from platformdirs import user_log_dir

APP_NAME = "themesongs"
APPAUTHOR: Literal[False] = False  # Avoid "CompanyName/AppName" nesting on Windows


def _env_override(env_var: str) -> Path | None:
    """Return the path from an environment variable, if set."""
    v = os.environ.get(env_var)
    return Path(v).expanduser() if v else None


def log_dir(*, ensure: bool = False) -> Path:
    """Get application log directory.

    Linux: ~/.local/state/themesongs/log
    macOS: ~/Library/Logs/themesongs
    Windows: C:\\Users\\<user>\\AppData\\Local\\themesongs\\Logs

    Override with THEMESONGS_LOG_DIR env var.
    """
    d = _env_override("THEMESONGS_LOG_DIR") or Path(user_log_dir(APP_NAME, APPAUTHOR))
    if ensure:
        d.mkdir(parents=True, exist_ok=True)
    return d


def default_log_file() -> Path:
    """Default log file location when config.yaml does not set one."""
    return log_dir() / f"{APP_NAME}.log"
