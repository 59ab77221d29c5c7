"""Catalog infra: async HTTP client for the remote location catalog service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from geocascade.infra.observability.logger import get_logger
from geocascade.protocol.messages import (
    LocalityDto,
    LocationSearchResultDto,
    PostalCodeDto,
    PostalCodeLookupDto,
    PostalCodeValidationDto,
    RegionDto,
    SubRegionDto,
)

logger = get_logger(__name__)

SEARCH_RESULT_LIMIT = 10
LOCATIONS_API_PREFIX = "/api/v1/locations"

ModelT = TypeVar("ModelT", bound=BaseModel)
T = TypeVar("T")


class CatalogUnavailable(RuntimeError):
    """Raised when a catalog read fails (transport, non-2xx, or malformed payload)."""


class CatalogReader(Protocol):
    """Read contract every catalog client implements; empty results are not errors."""

    async def list_regions(self) -> list[RegionDto]: ...

    async def list_sub_regions(self, region_id: str) -> list[SubRegionDto]: ...

    async def list_localities(self, region_id: str) -> list[str]: ...

    async def list_postal_codes(self, region_id: str, locality_name: str) -> list[str]: ...

    async def search(self, text: str) -> list[LocationSearchResultDto]: ...

    async def lookup_postal_code(self, postal_code: str) -> PostalCodeLookupDto | None: ...

    async def validate_postal_code(self, region_id: str, postal_code: str) -> PostalCodeValidationDto: ...


@dataclass(frozen=True)
class CatalogConfig:
    """Runtime config for catalog service calls."""

    base_url: str
    timeout_seconds: float = 8.0


class HttpCatalogClient:
    """Catalog reader over the `/api/v1/locations` HTTP endpoints.

    Each call is a single request: it either validates completely or raises
    `CatalogUnavailable`. Nothing is retried here; callers decide.
    """

    def __init__(
        self,
        config: CatalogConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "HttpCatalogClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def list_regions(self) -> list[RegionDto]:
        return await self._get_list(f"{LOCATIONS_API_PREFIX}/regions", RegionDto)

    async def list_sub_regions(self, region_id: str) -> list[SubRegionDto]:
        path = f"{LOCATIONS_API_PREFIX}/regions/{_segment(region_id)}/sub-regions"
        return await self._get_list(path, SubRegionDto)

    async def list_localities(self, region_id: str) -> list[str]:
        path = f"{LOCATIONS_API_PREFIX}/regions/{_segment(region_id)}/localities"
        rows = await self._get_list(path, LocalityDto)
        return [row.name for row in rows]

    async def list_postal_codes(self, region_id: str, locality_name: str) -> list[str]:
        path = (
            f"{LOCATIONS_API_PREFIX}/regions/{_segment(region_id)}"
            f"/localities/{_segment(locality_name)}/postal-codes"
        )
        rows = await self._get_list(path, PostalCodeDto)
        return [row.code for row in rows]

    async def search(self, text: str) -> list[LocationSearchResultDto]:
        rows = await self._get_list(
            f"{LOCATIONS_API_PREFIX}/search",
            LocationSearchResultDto,
            params={"q": text, "limit": SEARCH_RESULT_LIMIT},
        )
        return rows[:SEARCH_RESULT_LIMIT]

    async def lookup_postal_code(self, postal_code: str) -> PostalCodeLookupDto | None:
        """Unknown codes come back as 404 and map to None, not to an error."""
        path = f"{LOCATIONS_API_PREFIX}/postal-codes/{_segment(postal_code)}"
        payload = await self._get_json(path, missing_ok=True)
        if payload is None:
            return None
        return _validate(path, TypeAdapter(PostalCodeLookupDto), payload)

    async def validate_postal_code(self, region_id: str, postal_code: str) -> PostalCodeValidationDto:
        path = (
            f"{LOCATIONS_API_PREFIX}/regions/{_segment(region_id)}"
            f"/postal-codes/{_segment(postal_code)}/validation"
        )
        payload = await self._get_json(path)
        return _validate(path, TypeAdapter(PostalCodeValidationDto), payload)

    async def _get_list(
        self,
        path: str,
        model: type[ModelT],
        *,
        params: dict[str, Any] | None = None,
    ) -> list[ModelT]:
        payload = await self._get_json(path, params=params)
        return _validate(path, TypeAdapter(list[model]), payload)  # type: ignore[valid-type]

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        missing_ok: bool = False,
    ) -> Any:
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("catalog.request.failed path=%s error=%s", path, exc)
            raise CatalogUnavailable(f"catalog request failed: {path}") from exc

        if missing_ok and response.status_code == 404:
            return None
        if not response.is_success:
            logger.warning("catalog.request.status path=%s status=%s", path, response.status_code)
            raise CatalogUnavailable(f"catalog returned {response.status_code}: {path}")

        try:
            return response.json()
        except ValueError as exc:
            raise CatalogUnavailable(f"catalog returned invalid JSON: {path}") from exc


def _validate(path: str, adapter: TypeAdapter[T], payload: Any) -> T:
    try:
        return adapter.validate_python(payload)
    except ValidationError as exc:
        logger.warning("catalog.response.malformed path=%s errors=%s", path, exc.error_count())
        raise CatalogUnavailable(f"catalog returned malformed payload: {path}") from exc


def _segment(value: str) -> str:
    return quote(value, safe="")
