"""Searchable single-select view-model shared by every cascade level."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

WidgetMode = Literal["closed", "loading", "empty", "options"]

NO_OPTIONS_MESSAGE = "No options available"
NO_RESULTS_MESSAGE = "No results found"
LOADING_MESSAGE = "Loading..."


@dataclass(frozen=True)
class Option:
    """One selectable entry; `value` is reported, `label` is shown and filtered."""

    value: str
    label: str

    @classmethod
    def of(cls, text: str) -> "Option":
        return cls(value=text, label=text)


def options_from(values: Iterable[str]) -> list[Option]:
    return [Option.of(value) for value in values]


def filter_options(options: Sequence[Option], query: str) -> list[Option]:
    """Case-insensitive substring filter on labels, preserving input order.

    A blank query returns the options untouched: no sorting, no dedupe.
    """
    needle = query.strip().lower()
    if not needle:
        return list(options)
    return [option for option in options if needle in option.label.lower()]


@dataclass(frozen=True)
class OptionWidgetView:
    """Render snapshot of one widget."""

    label: str
    placeholder: str
    search_placeholder: str
    value: str
    display_value: str
    is_open: bool
    mode: WidgetMode
    disabled: bool
    loading: bool
    query: str
    options: list[Option] = field(default_factory=list)
    message: str | None = None


class OptionWidget:
    """Holds filter/open state for one select; data props are pushed by the owner."""

    def __init__(
        self,
        *,
        on_select: Callable[[str], None],
        label: str = "",
        placeholder: str = "",
        search_placeholder: str = "Search...",
    ) -> None:
        self._on_select = on_select
        self.label = label
        self.placeholder = placeholder
        self.search_placeholder = search_placeholder
        self.value = ""
        self.options: list[Option] = []
        self.loading = False
        self.disabled = False
        self.query = ""
        self.is_open = False

    def update(
        self,
        *,
        value: str,
        options: Sequence[Option],
        loading: bool,
        disabled: bool,
        placeholder: str | None = None,
    ) -> None:
        self.value = value
        self.options = list(options)
        self.loading = loading
        self.disabled = disabled
        if placeholder is not None:
            self.placeholder = placeholder
        if disabled and self.is_open:
            self.close()

    def open(self) -> bool:
        if self.disabled:
            return False
        self.is_open = True
        return True

    def close(self) -> None:
        self.is_open = False
        self.query = ""

    def set_query(self, text: str) -> None:
        self.query = text

    def filtered(self) -> list[Option]:
        return filter_options(self.options, self.query)

    def select(self, value: str) -> bool:
        """Report `value` to the owner once; returns False when the pick is rejected."""
        if self.disabled or self.loading:
            return False
        if not any(option.value == value for option in self.options):
            return False
        self.is_open = False
        self.query = ""
        self._on_select(value)
        return True

    def render(self) -> OptionWidgetView:
        display = next((option.label for option in self.options if option.value == self.value), self.value)
        visible: list[Option] = []
        message: str | None = None
        if not self.is_open:
            mode: WidgetMode = "closed"
        elif self.loading:
            mode = "loading"
            message = LOADING_MESSAGE
        else:
            visible = self.filtered()
            if visible:
                mode = "options"
            else:
                mode = "empty"
                message = NO_RESULTS_MESSAGE if self.query.strip() else NO_OPTIONS_MESSAGE
        return OptionWidgetView(
            label=self.label,
            placeholder=self.placeholder,
            search_placeholder=self.search_placeholder,
            value=self.value,
            display_value=display,
            is_open=self.is_open,
            mode=mode,
            disabled=self.disabled,
            loading=self.loading,
            query=self.query if mode != "loading" else "",
            options=visible,
            message=message,
        )
