"""Composition layer: build and hold long-lived service objects for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from geocascade.core.config import Settings
from geocascade.infra.catalog.catalog_client import CatalogConfig, HttpCatalogClient
from geocascade.infra.catalog.local_client import LocalCatalogClient
from geocascade.infra.db.catalog_store import LocalCatalogStore
from geocascade.location.labels import SelectorLabels, load_selector_labels


@dataclass
class AppContainer:
    """Container object attached to FastAPI app state."""

    settings: Settings
    store: LocalCatalogStore
    labels: SelectorLabels
    local_catalog: LocalCatalogClient


def build_container(settings: Settings) -> AppContainer:
    """Construct runtime dependencies in one place."""
    store = LocalCatalogStore.from_jsonl(settings.catalog_data_jsonl_path)
    return AppContainer(
        settings=settings,
        store=store,
        labels=load_selector_labels(settings.selector_labels_file, settings.selector_labels_profile),
        local_catalog=LocalCatalogClient(store),
    )


def build_catalog_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpCatalogClient:
    """Remote catalog reader for embedding screens; caller owns `aclose()`."""
    return HttpCatalogClient(
        CatalogConfig(
            base_url=settings.catalog_base_url,
            timeout_seconds=settings.catalog_timeout_seconds,
        ),
        transport=transport,
    )
