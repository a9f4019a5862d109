"""
themesongs exception hierarchy.

Exception Hierarchy:
    ThemeSongsError (base)
    ├── ConfigurationError - Config file issues, invalid settings
    ├── CatalogError - Media library catalog failures
    │   ├── CatalogConnectionError - Server unreachable / timed out
    │   ├── CatalogAuthError - Invalid API key
    │   └── CatalogApiError - Unexpected API response
    ├── DownloadError - Theme song fetch failures
    ├── ExternalToolError - Subprocess failures
    │   ├── ToolNotFoundError - Binary missing or not executable
    │   └── FfmpegError - ffmpeg exited non-zero
    └── TaskNotFoundError - Unknown scheduled task key
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class ThemeSongsError(Exception):
    """Base exception for all themesongs errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """
        Initialize themesongs exception.

        Args:
            message: Human-readable error message
            details: Optional structured error details for logging/debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ThemeSongsError):
    """Configuration file or settings error."""

    def __init__(
        self,
        message: str,
        *,
        config_file: Path | str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if config_file:
            details["config_file"] = str(config_file)
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.config_file = config_file
        self.field = field


# =============================================================================
# Catalog Errors
# =============================================================================


class CatalogError(ThemeSongsError):
    """Media library catalog failure."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details=details)
        self.url = url
        self.status_code = status_code


class CatalogConnectionError(CatalogError):
    """Unable to reach the catalog server."""

    pass


class CatalogAuthError(CatalogError):
    """Authentication with the catalog server failed."""

    pass


class CatalogApiError(CatalogError):
    """Catalog API returned an unexpected error or payload."""

    pass


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(ThemeSongsError):
    """Theme song download failure."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        destination: Path | str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if destination:
            details["destination"] = str(destination)
        super().__init__(message, details=details)
        self.url = url
        self.destination = destination


# =============================================================================
# External Tool Errors
# =============================================================================


class ExternalToolError(ThemeSongsError):
    """External tool/subprocess failure."""

    def __init__(
        self,
        message: str,
        *,
        tool: str | None = None,
        command: str | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if tool:
            details["tool"] = tool
        if command:
            details["command"] = command
        if return_code is not None:
            details["return_code"] = return_code
        if stderr:
            details["stderr"] = stderr
        super().__init__(message, details=details)
        self.tool = tool
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class ToolNotFoundError(ExternalToolError):
    """External tool could not be started."""

    pass


class FfmpegError(ExternalToolError):
    """ffmpeg exited with a failure status."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("tool", "ffmpeg")
        super().__init__(message, **kwargs)


# =============================================================================
# Task Errors
# =============================================================================


class TaskNotFoundError(ThemeSongsError):
    """No scheduled task registered under the requested key."""

    def __init__(self, key: str, *, available: list[str] | None = None) -> None:
        available = available or []
        message = f"Unknown task: {key}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message, details={"key": key, "available": available})
        self.key = key
        self.available = available
