"""Catalog infra: in-process catalog reader backed by the local JSONL store."""

from __future__ import annotations

from geocascade.infra.catalog.catalog_client import SEARCH_RESULT_LIMIT
from geocascade.infra.db.catalog_store import LocalCatalogStore
from geocascade.protocol.messages import (
    LocationSearchResultDto,
    PostalCodeLookupDto,
    PostalCodeValidationDto,
    RegionDto,
    SubRegionDto,
)


class LocalCatalogClient:
    """Same read contract as `HttpCatalogClient`, served from memory."""

    def __init__(self, store: LocalCatalogStore) -> None:
        self._store = store

    async def list_regions(self) -> list[RegionDto]:
        return [RegionDto(id=row["id"], name=row["name"]) for row in self._store.list_regions()]

    async def list_sub_regions(self, region_id: str) -> list[SubRegionDto]:
        return [
            SubRegionDto(name=row["name"], locality_count=row["locality_count"])
            for row in self._store.list_sub_regions(region_id)
        ]

    async def list_localities(self, region_id: str) -> list[str]:
        return list(self._store.list_localities(region_id))

    async def list_postal_codes(self, region_id: str, locality_name: str) -> list[str]:
        return list(self._store.list_postal_codes(region_id, locality_name))

    async def search(self, text: str) -> list[LocationSearchResultDto]:
        rows = self._store.search(text, limit=SEARCH_RESULT_LIMIT)
        return [LocationSearchResultDto(**row) for row in rows]

    async def lookup_postal_code(self, postal_code: str) -> PostalCodeLookupDto | None:
        row = self._store.lookup_postal_code(postal_code)
        return PostalCodeLookupDto(**row) if row is not None else None

    async def validate_postal_code(self, region_id: str, postal_code: str) -> PostalCodeValidationDto:
        return PostalCodeValidationDto(**self._store.validate_postal_code(region_id, postal_code))
