"""Protocol layer: catalog DTOs shared by the API routes and the catalog clients."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegionDto(BaseModel):
    """Top-level region item; identified by id."""

    id: str = Field(..., min_length=1)
    name: str


class SubRegionDto(BaseModel):
    """Second-level division under one region; identified by name within it."""

    name: str
    locality_count: int = 0


class LocalityDto(BaseModel):
    """Locality item scoped to one region."""

    name: str


class PostalCodeDto(BaseModel):
    """Postal code scoped to one (region, locality) pair."""

    code: str


class LocationSearchResultDto(BaseModel):
    """Full location triple returned by free-text search."""

    region: str
    locality: str
    postal_code: str


class PostalCodeLookupDto(BaseModel):
    """Where one postal code lives; carries the region id so a selector can be filled."""

    region_id: str = Field(..., min_length=1)
    region: str
    locality: str
    postal_code: str


class PostalCodeValidationDto(BaseModel):
    """Whether a postal code belongs to a region; `locality` is set only when valid."""

    region_id: str
    region: str = ""
    postal_code: str
    is_valid: bool
    locality: str | None = None
