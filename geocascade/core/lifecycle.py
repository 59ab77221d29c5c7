"""Lifecycle hooks for startup diagnostics."""

from __future__ import annotations

from geocascade.core.container import AppContainer
from geocascade.infra.observability.logger import get_logger

logger = get_logger(__name__)


def on_startup(container: AppContainer) -> None:
    stats = container.store.health()
    logger.info("Location catalog loaded: %s", stats)
    if stats["bad_lines"]:
        logger.warning("Location catalog skipped %s malformed lines.", stats["bad_lines"])


def on_shutdown() -> None:
    logger.info("Geocascade catalog shutdown complete.")
