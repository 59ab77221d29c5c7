"""Selector wording loaded from a YAML profile file."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class LevelLabels:
    label: str
    placeholder: str
    search_placeholder: str = "Search..."
    blocked_placeholder: str = ""


@dataclass(frozen=True)
class SelectorLabels:
    """Label/placeholder text for the three selects and the quick-search box."""

    region: LevelLabels = field(
        default_factory=lambda: LevelLabels("Region", "Select region", "Search regions...")
    )
    locality: LevelLabels = field(
        default_factory=lambda: LevelLabels(
            "Locality", "Select locality", "Search localities...", "Select region first"
        )
    )
    postal_code: LevelLabels = field(
        default_factory=lambda: LevelLabels(
            "Postal code", "Select postal code", "Search postal codes...", "Select locality first"
        )
    )
    quick_search_label: str = "Quick Location Search"
    quick_search_placeholder: str = "Search by locality, region, or postal code..."


def _merge_level(base: LevelLabels, payload: Any) -> LevelLabels:
    if not isinstance(payload, dict):
        return base
    overrides = {
        key: str(payload[key]).strip()
        for key in ("label", "placeholder", "search_placeholder", "blocked_placeholder")
        if isinstance(payload.get(key), str) and payload[key].strip()
    }
    return replace(base, **overrides)


def load_selector_labels(profile_file: Path, profile_name: str = "default") -> SelectorLabels:
    """Resolve one profile; unreadable files or unknown profiles yield defaults."""
    defaults = SelectorLabels()
    if not profile_file.exists():
        return defaults
    try:
        raw = yaml.safe_load(profile_file.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        return defaults
    profiles = raw.get("profiles") if isinstance(raw, dict) else None
    if not isinstance(profiles, dict):
        return defaults
    payload = profiles.get(profile_name)
    if not isinstance(payload, dict):
        payload = profiles.get("default")
    if not isinstance(payload, dict):
        return defaults

    quick = payload.get("quick_search") if isinstance(payload.get("quick_search"), dict) else {}
    return SelectorLabels(
        region=_merge_level(defaults.region, payload.get("region")),
        locality=_merge_level(defaults.locality, payload.get("locality")),
        postal_code=_merge_level(defaults.postal_code, payload.get("postal_code")),
        quick_search_label=str(quick.get("label") or defaults.quick_search_label),
        quick_search_placeholder=str(quick.get("placeholder") or defaults.quick_search_placeholder),
    )
