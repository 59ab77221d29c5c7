"""Session-scoped read-through cache with in-flight request coalescing."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from itertools import count
from typing import Generic, TypeVar

from geocascade.infra.observability.logger import get_logger
from geocascade.protocol.messages import RegionDto, SubRegionDto

logger = get_logger(__name__)

T = TypeVar("T")

SCOPE_SEPARATOR = "\x1f"
REGIONS_SCOPE = "*"


def postal_scope_key(region_id: str, locality_name: str) -> str:
    """Scope key for a postal-code list: one entry per (region, locality) pair."""
    return f"{region_id}{SCOPE_SEPARATOR}{locality_name}"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable cached list for one scope key."""

    scope_key: str
    values: tuple[T, ...]
    fetched_at: int


class ScopedCache(Generic[T]):
    """Map of scope key -> immutable value list, filled on first access.

    Entries never expire and are never replaced. Concurrent `get_or_load` calls
    for a key share one load; a failed load stores nothing and every waiter sees
    the same exception.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._entries: dict[str, CacheEntry[T]] = {}
        self._inflight: dict[str, asyncio.Task[tuple[T, ...]]] = {}
        self._ticks = count(1)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, key: str) -> CacheEntry[T] | None:
        return self._entries.get(key)

    def peek(self, key: str) -> tuple[T, ...] | None:
        entry = self._entries.get(key)
        return entry.values if entry is not None else None

    def is_loading(self, key: str) -> bool:
        return key in self._inflight

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Sequence[T]]],
    ) -> tuple[T, ...]:
        entry = self._entries.get(key)
        if entry is not None:
            logger.debug("cache.hit cache=%s key=%r", self._name, key)
            return entry.values

        task = self._inflight.get(key)
        if task is None:
            logger.debug("cache.miss cache=%s key=%r", self._name, key)
            task = asyncio.ensure_future(self._load(key, loader))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        else:
            logger.debug("cache.coalesced cache=%s key=%r", self._name, key)
        # A cancelled waiter must not cancel the shared load.
        return await asyncio.shield(task)

    async def _load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Sequence[T]]],
    ) -> tuple[T, ...]:
        try:
            values = tuple(await loader())
            self._entries[key] = CacheEntry(scope_key=key, values=values, fetched_at=next(self._ticks))
            return values
        finally:
            self._inflight.pop(key, None)


def _consume_exception(task: asyncio.Task) -> None:
    # Mark the exception retrieved when every waiter has gone away.
    if not task.cancelled():
        task.exception()


@dataclass
class LocationCache:
    """Bundle of level caches; each controller builds its own unless one is passed in."""

    regions: ScopedCache[RegionDto] = field(default_factory=lambda: ScopedCache("regions"))
    sub_regions: ScopedCache[SubRegionDto] = field(default_factory=lambda: ScopedCache("sub_regions"))
    localities: ScopedCache[str] = field(default_factory=lambda: ScopedCache("localities"))
    postal_codes: ScopedCache[str] = field(default_factory=lambda: ScopedCache("postal_codes"))
