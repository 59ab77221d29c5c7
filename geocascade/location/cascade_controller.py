"""Cascade controller: region -> sub-region -> locality -> postal-code selection state.

The controller owns the current selections and the option list of every
level, loads lists through its own `LocationCache`, and reconciles downstream
selections only after the authoritative list for their scope has arrived. A
response is applied only while its originating key still matches the current
selection; otherwise it is dropped without touching state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from itertools import count
from typing import Literal

from geocascade.infra.catalog.catalog_client import CatalogReader, CatalogUnavailable
from geocascade.infra.observability.logger import get_logger
from geocascade.location.scoped_cache import REGIONS_SCOPE, LocationCache, postal_scope_key
from geocascade.protocol.messages import RegionDto, SubRegionDto

logger = get_logger(__name__)

Level = Literal["regions", "sub_regions", "localities", "postal_codes"]
SelectionCallback = Callable[[str], None]


@dataclass(frozen=True)
class SelectionState:
    """Current picks; an empty string means unset."""

    region_id: str = ""
    locality_name: str = ""
    postal_code: str = ""
    sub_region_name: str = ""

    def normalized(self) -> "SelectionState":
        """Clear values whose parent is unset; a postal code needs a locality, which needs a region."""
        if not self.region_id:
            return SelectionState()
        if not self.locality_name:
            return replace(self, postal_code="")
        return self


@dataclass
class LoadingFlags:
    regions: bool = False
    sub_regions: bool = False
    localities: bool = False
    postal_codes: bool = False


class CascadeController:
    """Drive the dependent location lists for one selector instance."""

    def __init__(
        self,
        catalog: CatalogReader,
        *,
        cache: LocationCache | None = None,
        on_region_change: SelectionCallback | None = None,
        on_sub_region_change: SelectionCallback | None = None,
        on_locality_change: SelectionCallback | None = None,
        on_postal_code_change: SelectionCallback | None = None,
        initial: SelectionState | None = None,
    ) -> None:
        self._catalog = catalog
        self._cache = cache if cache is not None else LocationCache()
        self._supplied = initial or SelectionState()
        self._state = self._supplied.normalized()
        self._callbacks: dict[str, SelectionCallback | None] = {
            "region_id": on_region_change,
            "sub_region_name": on_sub_region_change,
            "locality_name": on_locality_change,
            "postal_code": on_postal_code_change,
        }
        self.regions: list[RegionDto] = []
        self.sub_regions: list[SubRegionDto] = []
        self.localities: list[str] = []
        self.postal_codes: list[str] = []
        self.loading = LoadingFlags()
        self._tickets = count(1)
        self._latest: dict[str, int] = {}
        self._resolved_region: str | None = None
        self._resolved_postal_scope: str | None = None
        self._closed = False

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def cache(self) -> LocationCache:
        return self._cache

    # -- events ---------------------------------------------------------------

    async def hydrate(self, state: SelectionState | None = None) -> None:
        """Mount with pre-set values; they stay on screen until proven invalid.

        Without `state` the values given at construction are used. Values dropped
        because their parent is unset are reported as cleared before any load.
        """
        if state is not None:
            self._supplied = state
            self._state = state.normalized()
        self._report_dropped(self._supplied)
        await self.load_regions()
        if self._state.region_id:
            await self._enter_region(self._state.region_id)

    async def load_regions(self) -> list[RegionDto]:
        ticket = self._begin("regions")
        try:
            values = await self._cache.regions.get_or_load(REGIONS_SCOPE, self._catalog.list_regions)
        except CatalogUnavailable as exc:
            logger.warning("cascade.regions.failed error=%s", exc)
            self.regions = []
            return []
        finally:
            self._finish("regions", ticket)
        if not self._closed:
            self.regions = list(values)
        return self.regions

    async def select_region(self, region_id: str) -> bool:
        if self._closed:
            return False
        if region_id and self.regions and all(item.id != region_id for item in self.regions):
            logger.debug("cascade.region.rejected region=%s", region_id)
            return False
        if region_id == self._state.region_id and self._resolved_region == region_id:
            return True
        self._assign(region_id=region_id)
        await self._enter_region(region_id)
        return True

    def select_sub_region(self, name: str) -> bool:
        if self._closed or not self._state.region_id:
            return False
        if name and all(item.name != name for item in self.sub_regions):
            return False
        self._assign(sub_region_name=name)
        return True

    async def select_locality(self, locality_name: str) -> bool:
        region_id = self._state.region_id
        if self._closed or not region_id:
            return False
        if locality_name and locality_name not in self.localities:
            logger.debug("cascade.locality.rejected region=%s locality=%s", region_id, locality_name)
            return False
        scope = postal_scope_key(region_id, locality_name)
        if locality_name == self._state.locality_name and self._resolved_postal_scope == scope:
            return True
        self._assign(locality_name=locality_name)
        await self._enter_locality(region_id, locality_name)
        return True

    def select_postal_code(self, postal_code: str) -> bool:
        if self._closed or not self._state.locality_name:
            return False
        if postal_code and postal_code not in self.postal_codes:
            return False
        self._assign(postal_code=postal_code)
        return True

    async def fill_from_postal_code(self, postal_code: str) -> bool:
        """Select the region, locality and postal code that own `postal_code`.

        Goes through the regular region and locality transitions, so callbacks
        and cache use match a manual pick. Unknown codes change nothing.
        """
        if self._closed or not postal_code.strip():
            return False
        try:
            found = await self._catalog.lookup_postal_code(postal_code.strip())
        except CatalogUnavailable as exc:
            logger.warning("cascade.postal_lookup.failed postal_code=%s error=%s", postal_code, exc)
            return False
        if found is None or self._closed:
            logger.debug("cascade.postal_lookup.miss postal_code=%s", postal_code)
            return False
        if not self.regions:
            await self.load_regions()
        if not await self.select_region(found.region_id):
            return False
        if not await self.select_locality(found.locality):
            return False
        return self.select_postal_code(found.postal_code)

    def close(self) -> None:
        """Tear down: pending responses are dropped and every flag released."""
        self._closed = True
        for level in ("regions", "sub_regions", "localities", "postal_codes"):
            self._supersede(level)  # type: ignore[arg-type]

    # -- loads ----------------------------------------------------------------

    async def _enter_region(self, region_id: str) -> None:
        self.sub_regions = []
        self.localities = []
        self.postal_codes = []
        self._resolved_region = None
        self._resolved_postal_scope = None
        self._supersede("postal_codes")
        if not region_id:
            self._supersede("sub_regions")
            self._supersede("localities")
            self._assign(sub_region_name="", locality_name="", postal_code="")
            return

        _, localities_ok = await asyncio.gather(
            self._load_sub_regions(region_id),
            self._load_localities(region_id),
        )
        locality = self._state.locality_name
        if localities_ok and locality and self._is_current_region(region_id):
            await self._enter_locality(region_id, locality)

    async def _load_sub_regions(self, region_id: str) -> bool:
        ticket = self._begin("sub_regions")
        try:
            values = await self._cache.sub_regions.get_or_load(
                region_id,
                lambda: self._catalog.list_sub_regions(region_id),
            )
        except CatalogUnavailable as exc:
            logger.warning("cascade.sub_regions.failed region=%s error=%s", region_id, exc)
            if self._is_current_region(region_id):
                self.sub_regions = []
            return False
        finally:
            self._finish("sub_regions", ticket)

        if not self._is_current_region(region_id):
            logger.debug("cascade.sub_regions.stale region=%s", region_id)
            return False
        self.sub_regions = list(values)
        selected = self._state.sub_region_name
        if selected and all(item.name != selected for item in self.sub_regions):
            self._assign(sub_region_name="")
        return True

    async def _load_localities(self, region_id: str) -> bool:
        ticket = self._begin("localities")
        try:
            values = await self._cache.localities.get_or_load(
                region_id,
                lambda: self._catalog.list_localities(region_id),
            )
        except CatalogUnavailable as exc:
            logger.warning("cascade.localities.failed region=%s error=%s", region_id, exc)
            if self._is_current_region(region_id):
                self.localities = []
            return False
        finally:
            self._finish("localities", ticket)

        if not self._is_current_region(region_id):
            logger.debug("cascade.localities.stale region=%s", region_id)
            return False
        self.localities = list(values)
        self._resolved_region = region_id
        selected = self._state.locality_name
        if selected and selected not in self.localities:
            logger.debug("cascade.locality.invalidated region=%s locality=%s", region_id, selected)
            self._assign(locality_name="", postal_code="")
        return True

    async def _enter_locality(self, region_id: str, locality_name: str) -> None:
        self.postal_codes = []
        self._resolved_postal_scope = None
        if not locality_name:
            self._supersede("postal_codes")
            self._assign(postal_code="")
            return

        scope = postal_scope_key(region_id, locality_name)
        ticket = self._begin("postal_codes")
        try:
            values = await self._cache.postal_codes.get_or_load(
                scope,
                lambda: self._catalog.list_postal_codes(region_id, locality_name),
            )
        except CatalogUnavailable as exc:
            logger.warning(
                "cascade.postal_codes.failed region=%s locality=%s error=%s",
                region_id,
                locality_name,
                exc,
            )
            if self._current_postal_scope() == scope:
                self.postal_codes = []
            return
        finally:
            self._finish("postal_codes", ticket)

        if self._current_postal_scope() != scope:
            logger.debug("cascade.postal_codes.stale region=%s locality=%s", region_id, locality_name)
            return
        self.postal_codes = list(values)
        self._resolved_postal_scope = scope
        selected = self._state.postal_code
        if selected and selected not in self.postal_codes:
            logger.debug("cascade.postal_code.invalidated scope=%r postal_code=%s", scope, selected)
            self._assign(postal_code="")

    # -- helpers --------------------------------------------------------------

    def _is_current_region(self, region_id: str) -> bool:
        return not self._closed and self._state.region_id == region_id

    def _current_postal_scope(self) -> str | None:
        if self._closed or not self._state.region_id or not self._state.locality_name:
            return None
        return postal_scope_key(self._state.region_id, self._state.locality_name)

    def _report_dropped(self, supplied: SelectionState) -> None:
        for name in ("region_id", "sub_region_name", "locality_name", "postal_code"):
            if getattr(supplied, name) and not getattr(self._state, name):
                callback = self._callbacks[name]
                if callback is not None:
                    callback("")

    def _assign(self, **changes: str) -> None:
        previous = self._state
        self._state = replace(previous, **changes)
        for name in ("region_id", "sub_region_name", "locality_name", "postal_code"):
            if name not in changes:
                continue
            value = getattr(self._state, name)
            if value == getattr(previous, name):
                continue
            callback = self._callbacks[name]
            if callback is not None:
                callback(value)

    def _begin(self, level: Level) -> int:
        ticket = next(self._tickets)
        self._latest[level] = ticket
        setattr(self.loading, level, True)
        return ticket

    def _finish(self, level: Level, ticket: int) -> None:
        # Only the most recent load of a level owns its flag.
        if self._latest.get(level) == ticket:
            setattr(self.loading, level, False)

    def _supersede(self, level: Level) -> None:
        self._latest[level] = next(self._tickets)
        setattr(self.loading, level, False)
