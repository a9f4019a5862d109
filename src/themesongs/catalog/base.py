"""
SeriesCatalog protocol definition.

A catalog enumerates every non-virtual series in the media library,
recursively. The theme song routines depend only on this protocol, never on
a concrete server client.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Protocol, runtime_checkable

from themesongs.models import SeriesRecord


@runtime_checkable
class SeriesCatalog(Protocol):
    """Read-only source of series records.

    Example implementation:
        class DirectoryCatalog:
            def list_series(self) -> Iterable[SeriesRecord]:
                for d in sorted(Path("/tv").iterdir()):
                    yield Series(path=str(d), name=d.name)
    """

    def list_series(self) -> Iterable[SeriesRecord]:
        """Return all non-virtual series.

        Order is whatever the catalog returns; callers must not depend on it.

        Raises:
            themesongs.exceptions.CatalogError: If enumeration fails. Callers
                let this abort the batch.
        """
        ...


class StaticCatalog:
    """Catalog over a fixed, in-memory list of series."""

    def __init__(self, series: Sequence[SeriesRecord] = ()) -> None:
        self._series = list(series)

    def list_series(self) -> Iterator[SeriesRecord]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)
