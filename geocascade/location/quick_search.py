"""Debounced free-text location search that yields a full (region, locality, postal code) triple."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from geocascade.infra.catalog.catalog_client import CatalogReader, CatalogUnavailable
from geocascade.infra.observability.logger import get_logger
from geocascade.protocol.messages import LocationSearchResultDto

logger = get_logger(__name__)

LocationSelectCallback = Callable[[str, str, str], None]

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_MIN_CHARS = 3
DEFAULT_MAX_RESULTS = 10


@dataclass(frozen=True)
class QuickSearchView:
    """Render snapshot of the search input and its result list."""

    label: str
    placeholder: str
    query: str
    searching: bool
    show_results: bool
    results: list[LocationSearchResultDto] = field(default_factory=list)
    message: str | None = None
    can_submit: bool = False


class QuickSearchController:
    """Own the query, the debounce timer, and the request token for one search box.

    Every keystroke advances the token; a response is applied only when its
    token is still the newest, so a slow reply for an older query never
    overwrites a newer one.
    """

    def __init__(
        self,
        catalog: CatalogReader,
        on_select: LocationSelectCallback,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_chars: int = DEFAULT_MIN_CHARS,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self._catalog = catalog
        self._on_select = on_select
        self._debounce_seconds = max(0.0, debounce_seconds)
        self._min_chars = max(1, min_chars)
        self._max_results = max(1, max_results)
        self.query = ""
        self.results: list[LocationSearchResultDto] = []
        self.searching = False
        self.show_results = False
        self._token = 0
        self._timer: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def token(self) -> int:
        return self._token

    def set_query(self, text: str) -> None:
        """Record a keystroke; schedules a search once input goes quiet."""
        if self._closed:
            return
        self.query = text
        self._token += 1
        self._cancel_timer()
        if len(text) < self._min_chars:
            self.results = []
            self.searching = False
            self.show_results = False
            return
        # Previous results stay unselectable until this query resolves.
        self.results = []
        self.searching = True
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_seconds, self._fire, text, self._token)

    def focus(self) -> None:
        self.show_results = True

    def dismiss(self) -> None:
        self.show_results = False

    def select(self, result: LocationSearchResultDto) -> bool:
        """Emit the triple once and reset; rejects results no longer displayed."""
        if self._closed or result not in self.results:
            return False
        self._reset()
        self._on_select(result.region, result.locality, result.postal_code)
        return True

    def submit(self) -> bool:
        if not self.results:
            return False
        return self.select(self.results[0])

    async def close(self) -> None:
        """Cancel the pending timer and any running search; no callback fires afterwards."""
        self._closed = True
        self._token += 1
        self._cancel_timer()
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def render(self, *, label: str = "", placeholder: str = "") -> QuickSearchView:
        long_enough = len(self.query) >= self._min_chars
        visible = self.show_results and long_enough
        message: str | None = None
        if visible and self.searching:
            message = "Searching..."
        elif visible and not self.results:
            message = "No locations found"
        return QuickSearchView(
            label=label,
            placeholder=placeholder,
            query=self.query,
            searching=self.searching,
            show_results=visible,
            results=list(self.results) if visible and not self.searching else [],
            message=message,
            can_submit=bool(self.results) and not self.searching,
        )

    def _fire(self, query: str, token: int) -> None:
        self._timer = None
        if self._closed or token != self._token:
            return
        task = asyncio.ensure_future(self._run_search(query, token))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_search(self, query: str, token: int) -> None:
        self.searching = True
        logger.debug("quick_search.issued query=%r token=%s", query, token)
        try:
            rows = await self._catalog.search(query)
        except CatalogUnavailable as exc:
            logger.warning("quick_search.failed query=%r error=%s", query, exc)
            rows = []
        if token != self._token:
            logger.debug("quick_search.stale query=%r token=%s current=%s", query, token, self._token)
            return
        self.results = list(rows)[: self._max_results]
        self.searching = False
        self.show_results = True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _reset(self) -> None:
        self._token += 1
        self._cancel_timer()
        self.query = ""
        self.results = []
        self.searching = False
        self.show_results = False
