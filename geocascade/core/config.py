"""Configuration layer: catalog service and selector settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None and value.strip() else default


def _env_int(name: str, default: int) -> int:
    return int(_env_str(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(_env_str(name, str(default)))


def _env_path(name: str, default: Path) -> Path:
    """Absolute paths pass through; relative ones are tried from CWD, then the project root."""
    candidate = Path(_env_str(name, str(default)))
    if candidate.is_absolute() or candidate.exists():
        return candidate
    rooted = PROJECT_ROOT / candidate
    return rooted if rooted.exists() else candidate


@dataclass(frozen=True)
class Settings:
    """Immutable settings shared by the catalog service and the embedded selectors."""

    app_name: str = "Geocascade Catalog API"
    app_version: str = "0.1.0"
    env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    catalog_data_jsonl_path: Path = Path("data/catalog/locations.jsonl")
    catalog_base_url: str = "http://127.0.0.1:8000"
    catalog_timeout_seconds: float = 8.0
    quick_search_debounce_seconds: float = 0.3
    quick_search_min_chars: int = 3
    quick_search_max_results: int = 10
    selector_labels_file: Path = Path("geocascade/location/profiles/labels.yaml")
    selector_labels_profile: str = "default"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    @classmethod
    def from_env(cls) -> "Settings":
        """Read every field from its env var; blank values keep the default."""
        return cls(
            app_name=_env_str("APP_NAME", cls.app_name),
            app_version=_env_str("APP_VERSION", cls.app_version),
            env=_env_str("APP_ENV", cls.env),
            log_level=_env_str("LOG_LEVEL", cls.log_level),
            host=_env_str("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            cors_allow_origins=_env_str("CORS_ALLOW_ORIGINS", cls.cors_allow_origins),
            catalog_data_jsonl_path=_env_path("CATALOG_DATA_JSONL", cls.catalog_data_jsonl_path),
            catalog_base_url=_env_str("CATALOG_BASE_URL", cls.catalog_base_url),
            catalog_timeout_seconds=_env_float("CATALOG_TIMEOUT_SECONDS", cls.catalog_timeout_seconds),
            quick_search_debounce_seconds=_env_float(
                "QUICK_SEARCH_DEBOUNCE_SECONDS", cls.quick_search_debounce_seconds
            ),
            quick_search_min_chars=_env_int("QUICK_SEARCH_MIN_CHARS", cls.quick_search_min_chars),
            quick_search_max_results=_env_int("QUICK_SEARCH_MAX_RESULTS", cls.quick_search_max_results),
            selector_labels_file=_env_path("SELECTOR_LABELS_FILE", cls.selector_labels_file),
            selector_labels_profile=_env_str("SELECTOR_LABELS_PROFILE", cls.selector_labels_profile),
        )
