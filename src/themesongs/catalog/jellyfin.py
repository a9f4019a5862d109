"""HTTP client for the Jellyfin API.

Provides the pieces of the Jellyfin API the theme song routines use:
- Connection testing (ping / system info)
- Series enumeration (non-virtual, recursive, with path and provider ids)
- Theme song lookup per item
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from themesongs.exceptions import CatalogApiError, CatalogAuthError, CatalogConnectionError
from themesongs.models import ProviderKind
from themesongs.schemas.jellyfin import (
    JellyfinItemSchema,
    JellyfinSystemInfo,
    validate_items_response,
)
from themesongs.utils.retry import NETWORK_EXCEPTIONS, retry_with_backoff

if TYPE_CHECKING:
    from themesongs.config import JellyfinConfig

logger = logging.getLogger(__name__)

SERIES_QUERY: dict[str, str] = {
    "IncludeItemTypes": "Series",
    "Recursive": "true",
    "IsMissing": "false",
    "Fields": "Path,ProviderIds",
}


@dataclass
class JellyfinSeries:
    """Series record backed by one Jellyfin item.

    ``has_theme_song()`` asks the server on first use and remembers the
    answer for the lifetime of this record (one enumeration).
    """

    id: str
    name: str
    path: str
    provider_ids: dict[str, str]
    client: JellyfinClient = field(repr=False, compare=False)
    _theme_song_count: int | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_schema(cls, item: JellyfinItemSchema, client: JellyfinClient) -> JellyfinSeries:
        return cls(
            id=item.id,
            name=item.name,
            path=item.path or "",
            provider_ids=dict(item.provider_ids),
            client=client,
        )

    def get_provider_id(self, kind: ProviderKind) -> str | None:
        wanted = kind.value.lower()
        for key, value in self.provider_ids.items():
            if key.lower() == wanted:
                return value
        return None

    def has_theme_song(self) -> bool:
        if self._theme_song_count is None:
            self._theme_song_count = self.client.count_theme_songs(self.id)
        return self._theme_song_count > 0


class JellyfinClient:
    """HTTP client for a Jellyfin server, usable as a SeriesCatalog.

    Example:
        >>> with JellyfinClient(host="http://jellyfin:8096", api_key="key") as client:
        ...     for series in client.list_series():
        ...         print(series.name, series.has_theme_song())
    """

    def __init__(
        self,
        host: str,
        api_key: str,
        timeout: float = 30.0,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Jellyfin server URL (e.g., "http://localhost:8096")
            api_key: API key for authentication
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.host = host.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    @classmethod
    def from_config(cls, config: JellyfinConfig) -> JellyfinClient:
        """Create client from JellyfinConfig."""
        return cls(
            host=config.host,
            api_key=config.api_key,
            timeout=float(config.timeout_seconds),
        )

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.host,
                headers={
                    "X-Emby-Token": self.api_key,
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> JellyfinClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @retry_with_backoff(max_attempts=3, base_delay=1.0, retry_exceptions=NETWORK_EXCEPTIONS)
    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, letting transport errors reach the retry decorator."""
        return self._get_client().request(method, path, **kwargs)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request to the API.

        Raises:
            CatalogAuthError: If authentication fails (401/403)
            CatalogApiError: If the API returns an error status
            CatalogConnectionError: If unable to connect after retries
        """
        url = f"{self.host}{path}"
        try:
            response = self._send(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise CatalogConnectionError(f"Request to {self.host} timed out: {e}", url=url) from e
        except (httpx.TransportError, OSError) as e:
            raise CatalogConnectionError(f"Failed to connect to {self.host}: {e}", url=url) from e

        if response.status_code in (401, 403):
            raise CatalogAuthError(
                "Invalid API key or unauthorized access",
                url=url,
                status_code=response.status_code,
            )

        if response.status_code >= 400:
            raise CatalogApiError(
                f"API error: {response.status_code} - {response.text[:200]}",
                url=url,
                status_code=response.status_code,
            )

        return response

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise CatalogApiError(f"Invalid JSON from {response.request.url}") from e
        if not isinstance(data, dict):
            raise CatalogApiError(f"Unexpected payload from {response.request.url}")
        return data

    def system_info(self) -> JellyfinSystemInfo:
        """Fetch server name and version."""
        response = self._request("GET", "/System/Info")
        return JellyfinSystemInfo.model_validate(self._json(response))

    def ping(self) -> bool:
        """Quick connection test.

        Returns:
            True if the server answered with valid credentials, False otherwise
        """
        try:
            self.system_info()
            return True
        except (CatalogAuthError, CatalogConnectionError, CatalogApiError):
            return False

    def list_series(self) -> list[JellyfinSeries]:
        """Get every non-virtual series in the library.

        Raises:
            CatalogAuthError, CatalogConnectionError, CatalogApiError
        """
        logger.debug("Fetching series from Jellyfin")
        response = self._request("GET", "/Items", params=SERIES_QUERY)

        try:
            validated = validate_items_response(self._json(response))
        except PydanticValidationError as e:
            raise CatalogApiError(f"Unexpected /Items response: {e}") from e

        series = [
            JellyfinSeries.from_schema(item, self)
            for item in validated.items
            if not item.is_virtual and (item.type in (None, "Series"))
        ]
        logger.info("Found %d series in Jellyfin", len(series))
        return series

    def count_theme_songs(self, item_id: str) -> int:
        """Return how many theme songs Jellyfin associates with an item."""
        response = self._request("GET", f"/Items/{item_id}/ThemeSongs")
        try:
            validated = validate_items_response(self._json(response))
        except PydanticValidationError as e:
            raise CatalogApiError(f"Unexpected ThemeSongs response: {e}") from e
        return max(validated.total_record_count, len(validated.items))
