"""themesongs - Theme song downloads and volume normalization for TV libraries."""

from themesongs.exceptions import (
    CatalogApiError,
    CatalogAuthError,
    CatalogConnectionError,
    CatalogError,
    ConfigurationError,
    DownloadError,
    ExternalToolError,
    FfmpegError,
    TaskNotFoundError,
    ThemeSongsError,
    ToolNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Base exception
    "ThemeSongsError",
    # Configuration
    "ConfigurationError",
    # Catalog
    "CatalogError",
    "CatalogConnectionError",
    "CatalogAuthError",
    "CatalogApiError",
    # Downloads
    "DownloadError",
    # External tools
    "ExternalToolError",
    "ToolNotFoundError",
    "FfmpegError",
    # Tasks
    "TaskNotFoundError",
]
