"""Pydantic schemas for external API payloads."""

from themesongs.schemas.jellyfin import (
    JellyfinItemSchema,
    JellyfinItemsResponse,
    JellyfinSystemInfo,
    validate_items_response,
)

__all__ = [
    "JellyfinItemSchema",
    "JellyfinItemsResponse",
    "JellyfinSystemInfo",
    "validate_items_response",
]
