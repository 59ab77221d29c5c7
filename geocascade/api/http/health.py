"""HTTP API layer: liveness plus catalog load diagnostics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from geocascade.api.deps import get_container
from geocascade.core.container import AppContainer

router = APIRouter(tags=["health"])


@router.get("/health")
def health(container: AppContainer = Depends(get_container)) -> dict:
    """`degraded` when the catalog file loaded no usable rows; selectors would show empty lists."""
    stats = container.store.health()
    settings = container.settings
    return {
        "status": "ok" if stats["loaded_rows"] else "degraded",
        "catalog": stats,
        "env": settings.env,
        "version": settings.app_version,
        "labels_profile": settings.selector_labels_profile,
    }
