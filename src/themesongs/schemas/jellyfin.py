"""Pydantic schemas for Jellyfin API response validation.

Jellyfin returns PascalCase keys. Schemas use aliases for them and
extra="ignore" so new server fields never break parsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class JellyfinItemSchema(BaseModel):
    """One item from GET /Items or GET /Items/{id}/ThemeSongs."""

    id: str = Field(alias="Id")
    name: str = Field(default="", alias="Name")
    path: str | None = Field(default=None, alias="Path")
    type: str | None = Field(default=None, alias="Type")
    location_type: str | None = Field(default=None, alias="LocationType")
    provider_ids: dict[str, str] = Field(default_factory=dict, alias="ProviderIds")

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("provider_ids", mode="before")
    @classmethod
    def drop_null_ids(cls, v: Any) -> Any:
        """Jellyfin sometimes reports providers with a null id."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {k: str(val) for k, val in v.items() if val is not None}
        return v

    @property
    def is_virtual(self) -> bool:
        return (self.location_type or "").lower() == "virtual"


class JellyfinItemsResponse(BaseModel):
    """Response envelope shared by the item list endpoints."""

    items: list[JellyfinItemSchema] = Field(default_factory=list, alias="Items")
    total_record_count: int = Field(default=0, alias="TotalRecordCount")

    model_config = {"extra": "ignore", "populate_by_name": True}


class JellyfinSystemInfo(BaseModel):
    """Subset of GET /System/Info."""

    server_name: str = Field(default="", alias="ServerName")
    version: str = Field(default="", alias="Version")
    id: str = Field(default="", alias="Id")

    model_config = {"extra": "ignore", "populate_by_name": True}


def validate_items_response(data: dict[str, Any]) -> JellyfinItemsResponse:
    """Validate an item list payload.

    Raises:
        pydantic.ValidationError: If the payload does not match the schema
    """
    return JellyfinItemsResponse.model_validate(data)
