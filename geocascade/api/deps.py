"""API layer: request-scoped accessors for the shared container."""

from __future__ import annotations

from fastapi import Depends, Request

from geocascade.core.container import AppContainer
from geocascade.infra.db.catalog_store import LocalCatalogStore


def get_container(request: Request) -> AppContainer:
    return request.app.state.container  # type: ignore[return-value]


def get_store(container: AppContainer = Depends(get_container)) -> LocalCatalogStore:
    return container.store
