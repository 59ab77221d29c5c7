"""Observability layer: console logging for the catalog service and selector controllers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers whose own handlers would duplicate root output.
ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx")


def resolve_level(level: str) -> str:
    """Map a level name to a known logging level; unknown names fall back to INFO."""
    normalized = (level or "").strip().upper()
    if isinstance(logging.getLevelName(normalized), int):
        return normalized
    return "INFO"


def setup_logging(level: str = "INFO") -> str:
    """Configure root once with single-line output; returns the effective level name."""
    effective = resolve_level(level)
    logging.basicConfig(level=effective, format=LOG_FORMAT, force=True)
    for name in ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers.clear()
        routed.setLevel(effective)
        routed.propagate = True
    if effective != (level or "").strip().upper():
        logging.getLogger(__name__).warning("Unknown log level %r, using %s.", level, effective)
    return effective


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
