"""HTTP API layer: location catalog endpoints backing the cascading selectors."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from geocascade.api.deps import get_store
from geocascade.infra.db.catalog_store import SEARCH_RESULT_LIMIT, LocalCatalogStore
from geocascade.protocol.messages import (
    LocalityDto,
    LocationSearchResultDto,
    PostalCodeDto,
    PostalCodeLookupDto,
    PostalCodeValidationDto,
    RegionDto,
    SubRegionDto,
)

router = APIRouter(prefix="/api/v1/locations", tags=["locations"])


@router.get("/regions", response_model=list[RegionDto])
def list_regions(store: LocalCatalogStore = Depends(get_store)) -> list[RegionDto]:
    return [RegionDto(id=row["id"], name=row["name"]) for row in store.list_regions()]


@router.get("/regions/{region_id}/sub-regions", response_model=list[SubRegionDto])
def list_sub_regions(
    region_id: str,
    store: LocalCatalogStore = Depends(get_store),
) -> list[SubRegionDto]:
    rows = store.list_sub_regions(region_id)
    return [SubRegionDto(name=row["name"], locality_count=row["locality_count"]) for row in rows]


@router.get("/regions/{region_id}/localities", response_model=list[LocalityDto])
def list_localities(
    region_id: str,
    store: LocalCatalogStore = Depends(get_store),
) -> list[LocalityDto]:
    return [LocalityDto(name=name) for name in store.list_localities(region_id)]


@router.get(
    "/regions/{region_id}/localities/{locality}/postal-codes",
    response_model=list[PostalCodeDto],
)
def list_postal_codes(
    region_id: str,
    locality: str,
    store: LocalCatalogStore = Depends(get_store),
) -> list[PostalCodeDto]:
    codes = store.list_postal_codes(region_id, locality)
    return [PostalCodeDto(code=code) for code in codes]


@router.get("/search", response_model=list[LocationSearchResultDto])
def search_locations(
    q: str = Query(..., min_length=1),
    limit: int = Query(default=SEARCH_RESULT_LIMIT, ge=1, le=SEARCH_RESULT_LIMIT),
    store: LocalCatalogStore = Depends(get_store),
) -> list[LocationSearchResultDto]:
    rows = store.search(q, limit=limit)
    return [LocationSearchResultDto(**row) for row in rows]


@router.get("/postal-codes/{postal_code}", response_model=PostalCodeLookupDto)
def lookup_postal_code(
    postal_code: str,
    store: LocalCatalogStore = Depends(get_store),
) -> PostalCodeLookupDto:
    row = store.lookup_postal_code(postal_code)
    if row is None:
        raise HTTPException(status_code=404, detail=f"postal_code={postal_code} not found")
    return PostalCodeLookupDto(**row)


@router.get(
    "/regions/{region_id}/postal-codes/{postal_code}/validation",
    response_model=PostalCodeValidationDto,
)
def validate_postal_code(
    region_id: str,
    postal_code: str,
    store: LocalCatalogStore = Depends(get_store),
) -> PostalCodeValidationDto:
    return PostalCodeValidationDto(**store.validate_postal_code(region_id, postal_code))
