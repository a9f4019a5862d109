"""Media library catalog access.

The routines in this package only need ``SeriesCatalog.list_series()``;
``JellyfinClient`` is the server-backed implementation and
``StaticCatalog`` wraps an in-memory list.
"""

from themesongs.catalog.base import SeriesCatalog, StaticCatalog
from themesongs.catalog.jellyfin import JellyfinClient, JellyfinSeries

__all__ = [
    "JellyfinClient",
    "JellyfinSeries",
    "SeriesCatalog",
    "StaticCatalog",
]
