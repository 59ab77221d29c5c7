"""Embeddable location selectors: three dependent selects, and a quick-search box."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Literal

from geocascade.core.config import Settings
from geocascade.infra.catalog.catalog_client import CatalogReader
from geocascade.location.cascade_controller import CascadeController, SelectionCallback, SelectionState
from geocascade.location.labels import SelectorLabels
from geocascade.location.option_widget import Option, OptionWidget, OptionWidgetView, options_from
from geocascade.location.quick_search import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_MAX_RESULTS,
    DEFAULT_MIN_CHARS,
    LocationSelectCallback,
    QuickSearchController,
    QuickSearchView,
)
from geocascade.location.scoped_cache import LocationCache

WidgetName = Literal["region", "locality", "postal_code"]


@dataclass(frozen=True)
class LocationSelectorView:
    region: OptionWidgetView
    locality: OptionWidgetView
    postal_code: OptionWidgetView
    selection: SelectionState
    sub_regions: list[str] = field(default_factory=list)


class LocationSelector:
    """Region/locality/postal-code selects wired to one `CascadeController`."""

    def __init__(
        self,
        catalog: CatalogReader,
        *,
        selected_region_id: str = "",
        selected_locality: str = "",
        selected_postal_code: str = "",
        on_region_change: SelectionCallback | None = None,
        on_locality_change: SelectionCallback | None = None,
        on_postal_code_change: SelectionCallback | None = None,
        disabled: bool = False,
        labels: SelectorLabels | None = None,
        cache: LocationCache | None = None,
    ) -> None:
        self.disabled = disabled
        self._labels = labels or SelectorLabels()
        self.controller = CascadeController(
            catalog,
            cache=cache,
            initial=SelectionState(
                region_id=selected_region_id,
                locality_name=selected_locality,
                postal_code=selected_postal_code,
            ),
            on_region_change=on_region_change,
            on_locality_change=on_locality_change,
            on_postal_code_change=on_postal_code_change,
        )
        self._tasks: set[asyncio.Task[bool]] = set()
        self.region_widget = OptionWidget(
            on_select=lambda value: self._spawn(self.controller.select_region(value)),
            label=self._labels.region.label,
            placeholder=self._labels.region.placeholder,
            search_placeholder=self._labels.region.search_placeholder,
        )
        self.locality_widget = OptionWidget(
            on_select=lambda value: self._spawn(self.controller.select_locality(value)),
            label=self._labels.locality.label,
            placeholder=self._labels.locality.blocked_placeholder,
            search_placeholder=self._labels.locality.search_placeholder,
        )
        self.postal_code_widget = OptionWidget(
            on_select=self.controller.select_postal_code,
            label=self._labels.postal_code.label,
            placeholder=self._labels.postal_code.blocked_placeholder,
            search_placeholder=self._labels.postal_code.search_placeholder,
        )

    @property
    def selection(self) -> SelectionState:
        return self.controller.state

    async def mount(self) -> None:
        await self.controller.hydrate()
        self._sync()

    def widget(self, name: WidgetName) -> OptionWidget:
        self._sync()
        return {
            "region": self.region_widget,
            "locality": self.locality_widget,
            "postal_code": self.postal_code_widget,
        }[name]

    async def choose_region(self, region_id: str) -> bool:
        return await self._choose(self.region_widget, region_id)

    async def choose_locality(self, locality_name: str) -> bool:
        return await self._choose(self.locality_widget, locality_name)

    async def choose_postal_code(self, postal_code: str) -> bool:
        return await self._choose(self.postal_code_widget, postal_code)

    async def fill_from_postal_code(self, postal_code: str) -> bool:
        """Fill all three selects from one postal code; rejected while disabled."""
        if self.disabled:
            return False
        accepted = await self.controller.fill_from_postal_code(postal_code)
        self._sync()
        return accepted

    async def settle(self) -> None:
        """Wait until every load started by a widget pick has resolved."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def render(self) -> LocationSelectorView:
        self._sync()
        return LocationSelectorView(
            region=self.region_widget.render(),
            locality=self.locality_widget.render(),
            postal_code=self.postal_code_widget.render(),
            selection=self.controller.state,
            sub_regions=[item.name for item in self.controller.sub_regions],
        )

    async def close(self) -> None:
        self.controller.close()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _choose(self, widget: OptionWidget, value: str) -> bool:
        self._sync()
        accepted = widget.select(value)
        await self.settle()
        self._sync()
        return accepted

    def _spawn(self, pending: Awaitable[bool]) -> None:
        task = asyncio.ensure_future(pending)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _sync(self) -> None:
        controller = self.controller
        state = controller.state
        loading = controller.loading
        labels = self._labels

        self.region_widget.update(
            value=state.region_id,
            options=[Option(value=item.id, label=item.name) for item in controller.regions],
            loading=loading.regions,
            disabled=self.disabled,
        )
        self.locality_widget.update(
            value=state.locality_name,
            options=options_from(controller.localities),
            loading=loading.localities,
            disabled=self.disabled
            or not state.region_id
            or (not controller.localities and not loading.localities),
            placeholder=labels.locality.placeholder if state.region_id else labels.locality.blocked_placeholder,
        )
        self.postal_code_widget.update(
            value=state.postal_code,
            options=options_from(controller.postal_codes),
            loading=loading.postal_codes,
            disabled=self.disabled
            or not state.locality_name
            or (not controller.postal_codes and not loading.postal_codes),
            placeholder=(
                labels.postal_code.placeholder
                if state.locality_name
                else labels.postal_code.blocked_placeholder
            ),
        )


class LocationQuickSearch:
    """Search input + result list; reports a picked triple to `on_location_select`."""

    def __init__(
        self,
        catalog: CatalogReader,
        on_location_select: LocationSelectCallback,
        *,
        placeholder: str | None = None,
        label: str | None = None,
        labels: SelectorLabels | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_chars: int = DEFAULT_MIN_CHARS,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        resolved = labels or SelectorLabels()
        self.label = label if label is not None else resolved.quick_search_label
        self.placeholder = placeholder if placeholder is not None else resolved.quick_search_placeholder
        self.controller = QuickSearchController(
            catalog,
            on_location_select,
            debounce_seconds=debounce_seconds,
            min_chars=min_chars,
            max_results=max_results,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        catalog: CatalogReader,
        on_location_select: LocationSelectCallback,
        *,
        labels: SelectorLabels | None = None,
    ) -> "LocationQuickSearch":
        return cls(
            catalog,
            on_location_select,
            labels=labels,
            debounce_seconds=settings.quick_search_debounce_seconds,
            min_chars=settings.quick_search_min_chars,
            max_results=settings.quick_search_max_results,
        )

    def enter_text(self, text: str) -> None:
        self.controller.set_query(text)

    def focus(self) -> None:
        self.controller.focus()

    def dismiss(self) -> None:
        self.controller.dismiss()

    def pick(self, index: int) -> bool:
        results = self.render().results
        if index < 0 or index >= len(results):
            return False
        return self.controller.select(results[index])

    def submit(self) -> bool:
        return self.controller.submit()

    def render(self) -> QuickSearchView:
        return self.controller.render(label=self.label, placeholder=self.placeholder)

    async def close(self) -> None:
        await self.controller.close()

