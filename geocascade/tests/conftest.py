"""Test fixtures shared by unit/integration tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from geocascade.infra.catalog.catalog_client import CatalogUnavailable
from geocascade.protocol.messages import (
    LocationSearchResultDto,
    PostalCodeLookupDto,
    PostalCodeValidationDto,
    RegionDto,
    SubRegionDto,
)

CatalogCall = tuple[str, ...]


class ScriptedCatalog:
    """In-memory catalog reader that records calls and can hold or fail them.

    `hold(call)` returns an event the test sets to release that call;
    `fail(call)` makes it raise `CatalogUnavailable` once released.
    """

    def __init__(
        self,
        *,
        regions: list[tuple[str, str]],
        localities: dict[str, list[str]],
        postal_codes: dict[tuple[str, str], list[str]] | None = None,
        sub_regions: dict[str, list[str]] | None = None,
        search_results: dict[str, list[tuple[str, str, str]]] | None = None,
    ) -> None:
        self._regions = regions
        self._localities = localities
        self._postal_codes = postal_codes or {}
        self._sub_regions = sub_regions or {}
        self._search_results = search_results or {}
        self.calls: list[CatalogCall] = []
        self._gates: dict[CatalogCall, asyncio.Event] = {}
        self._failures: set[CatalogCall] = set()

    def hold(self, *call: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[call] = gate
        return gate

    def fail(self, *call: str) -> None:
        self._failures.add(call)

    def recover(self, *call: str) -> None:
        self._failures.discard(call)

    def count(self, *call: str) -> int:
        return sum(1 for item in self.calls if item == call)

    async def _enter(self, call: CatalogCall) -> None:
        self.calls.append(call)
        gate = self._gates.get(call)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if call in self._failures:
            raise CatalogUnavailable(f"scripted failure: {call}")

    async def list_regions(self) -> list[RegionDto]:
        await self._enter(("regions",))
        return [RegionDto(id=region_id, name=name) for region_id, name in self._regions]

    async def list_sub_regions(self, region_id: str) -> list[SubRegionDto]:
        await self._enter(("sub_regions", region_id))
        return [SubRegionDto(name=name) for name in self._sub_regions.get(region_id, [])]

    async def list_localities(self, region_id: str) -> list[str]:
        await self._enter(("localities", region_id))
        return list(self._localities.get(region_id, []))

    async def list_postal_codes(self, region_id: str, locality_name: str) -> list[str]:
        await self._enter(("postal_codes", region_id, locality_name))
        return list(self._postal_codes.get((region_id, locality_name), []))

    async def search(self, text: str) -> list[LocationSearchResultDto]:
        await self._enter(("search", text))
        return [
            LocationSearchResultDto(region=region, locality=locality, postal_code=code)
            for region, locality, code in self._search_results.get(text, [])
        ]

    async def lookup_postal_code(self, postal_code: str) -> PostalCodeLookupDto | None:
        await self._enter(("lookup", postal_code))
        names = dict(self._regions)
        for (region_id, locality), codes in sorted(self._postal_codes.items()):
            if postal_code in codes:
                return PostalCodeLookupDto(
                    region_id=region_id,
                    region=names.get(region_id, ""),
                    locality=locality,
                    postal_code=postal_code,
                )
        return None

    async def validate_postal_code(self, region_id: str, postal_code: str) -> PostalCodeValidationDto:
        await self._enter(("validate", region_id, postal_code))
        localities = [
            locality
            for (owner, locality), codes in sorted(self._postal_codes.items())
            if owner == region_id and postal_code in codes
        ]
        return PostalCodeValidationDto(
            region_id=region_id,
            region=dict(self._regions).get(region_id, ""),
            postal_code=postal_code,
            is_valid=bool(localities),
            locality=localities[0] if localities else None,
        )


@pytest.fixture
def make_catalog() -> Callable[..., ScriptedCatalog]:
    return ScriptedCatalog


@pytest.fixture
def maharashtra_catalog() -> ScriptedCatalog:
    return ScriptedCatalog(
        regions=[("mh", "Maharashtra")],
        sub_regions={"mh": ["Mumbai City", "Pune"]},
        localities={"mh": ["Mumbai", "Pune"]},
        postal_codes={
            ("mh", "Mumbai"): ["400001", "400002"],
            ("mh", "Pune"): ["411001", "411002"],
        },
        search_results={
            "400001": [("Maharashtra", "Mumbai", "400001")],
            "mum": [("Maharashtra", "Mumbai", "400001"), ("Maharashtra", "Mumbai", "400002")],
            "pun": [("Maharashtra", "Pune", "411001")],
        },
    )


def write_catalog_rows(path: Path, rows: list[dict[str, Any]]) -> None:
    with path.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(row, ensure_ascii=False))
            handle.write("\n")


CATALOG_ROWS: list[dict[str, Any]] = [
    {"region_id": "mh", "region_name": "Maharashtra", "sub_region": "Mumbai City", "locality": "Mumbai", "postal_code": "400001"},
    {"region_id": "mh", "region_name": "Maharashtra", "sub_region": "Mumbai City", "locality": "Mumbai", "postal_code": "400002"},
    {"region_id": "mh", "region_name": "Maharashtra", "sub_region": "Pune", "locality": "Pune", "postal_code": "411002"},
    {"region_id": "mh", "region_name": "Maharashtra", "sub_region": "Pune", "locality": "Pune", "postal_code": "411001"},
    {"region_id": "ka", "region_name": "Karnataka", "sub_region": "Bengaluru Urban", "locality": "Bangalore", "postal_code": "560001"},
    {"region_id": "ka", "region_name": "Karnataka", "sub_region": "Mysuru", "locality": "Mysore", "postal_code": "570001"},
]


@pytest.fixture
def catalog_path(tmp_path: Path) -> Path:
    data_path = tmp_path / "locations.jsonl"
    write_catalog_rows(data_path, CATALOG_ROWS)
    return data_path
