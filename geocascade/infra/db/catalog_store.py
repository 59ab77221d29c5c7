"""Data layer: local JSONL-backed read store for region/locality/postal-code lookups."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

SEARCH_RESULT_LIMIT = 10


@dataclass(frozen=True)
class LoadStats:
    """Basic diagnostics collected while loading source JSONL."""

    total_lines: int
    loaded_rows: int
    bad_lines: int


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class LocalCatalogStore:
    """Read-optimized in-memory location catalog built from `locations.jsonl`.

    One row per postal code. Localities hang directly off the region; the
    sub-region column is informational and is only used for the sub-region
    listing and its locality counts.
    """

    def __init__(self, rows: list[dict[str, str]], stats: LoadStats) -> None:
        self._rows = rows
        self._stats = stats
        self._regions = self._build_region_index(rows)
        self._region_names = {item["id"]: item["name"] for item in self._regions}
        self._sub_regions = self._build_sub_region_index(rows)
        self._localities = self._build_locality_index(rows)
        self._postal_codes = self._build_postal_code_index(rows)
        self._postal_owners = self._build_postal_owner_index(self._postal_codes)

    @classmethod
    def from_jsonl(cls, path: Path) -> "LocalCatalogStore":
        if not path.exists():
            raise FileNotFoundError(f"Location catalog file not found: {path}")

        rows: list[dict[str, str]] = []
        bad_lines = 0
        total = 0

        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                total += 1
                raw_line = line.strip()
                if not raw_line:
                    bad_lines += 1
                    continue
                try:
                    payload = json.loads(raw_line)
                except json.JSONDecodeError:
                    bad_lines += 1
                    continue
                normalized = cls._normalize_row(payload)
                if normalized is None:
                    bad_lines += 1
                    continue
                rows.append(normalized)

        return cls(rows, stats=LoadStats(total_lines=total, loaded_rows=len(rows), bad_lines=bad_lines))

    @classmethod
    def from_rows(cls, raw_rows: list[dict[str, Any]]) -> "LocalCatalogStore":
        """Build a store from already-decoded rows (fixtures, embedded datasets)."""
        rows = [row for row in (cls._normalize_row(item) for item in raw_rows) if row is not None]
        return cls(
            rows,
            stats=LoadStats(
                total_lines=len(raw_rows),
                loaded_rows=len(rows),
                bad_lines=len(raw_rows) - len(rows),
            ),
        )

    @staticmethod
    def _normalize_row(raw: Any) -> dict[str, str] | None:
        if not isinstance(raw, dict):
            return None
        required = ("region_id", "region_name", "locality", "postal_code")
        if any(not _as_text(raw.get(key)) for key in required):
            return None
        return {
            "region_id": _as_text(raw.get("region_id")),
            "region_name": _as_text(raw.get("region_name")),
            "sub_region": _as_text(raw.get("sub_region")),
            "locality": _as_text(raw.get("locality")),
            "postal_code": _as_text(raw.get("postal_code")),
        }

    @staticmethod
    def _build_region_index(rows: list[dict[str, str]]) -> list[dict[str, str]]:
        mapping: dict[str, str] = {}
        for row in rows:
            mapping[row["region_id"]] = row["region_name"]
        ordered = sorted(mapping.items(), key=lambda item: (item[1].lower(), item[0]))
        return [{"id": region_id, "name": name} for region_id, name in ordered]

    @staticmethod
    def _build_sub_region_index(rows: list[dict[str, str]]) -> dict[str, list[dict[str, Any]]]:
        by_region: dict[str, dict[str, set[str]]] = {}
        for row in rows:
            if not row["sub_region"]:
                continue
            by_region.setdefault(row["region_id"], {}).setdefault(row["sub_region"], set()).add(
                row["locality"]
            )
        result: dict[str, list[dict[str, Any]]] = {}
        for region_id, entries in by_region.items():
            result[region_id] = [
                {"name": name, "locality_count": len(entries[name])} for name in sorted(entries.keys())
            ]
        return result

    @staticmethod
    def _build_locality_index(rows: list[dict[str, str]]) -> dict[str, list[str]]:
        by_region: dict[str, set[str]] = {}
        for row in rows:
            by_region.setdefault(row["region_id"], set()).add(row["locality"])
        return {region_id: sorted(names) for region_id, names in by_region.items()}

    @staticmethod
    def _build_postal_code_index(rows: list[dict[str, str]]) -> dict[tuple[str, str], list[str]]:
        by_scope: dict[tuple[str, str], set[str]] = {}
        for row in rows:
            by_scope.setdefault((row["region_id"], row["locality"]), set()).add(row["postal_code"])
        return {scope: sorted(codes) for scope, codes in by_scope.items()}

    @staticmethod
    def _build_postal_owner_index(
        postal_codes: dict[tuple[str, str], list[str]],
    ) -> dict[str, list[tuple[str, str]]]:
        owners: dict[str, list[tuple[str, str]]] = {}
        for scope in sorted(postal_codes):
            for code in postal_codes[scope]:
                owners.setdefault(code, []).append(scope)
        return owners

    def health(self) -> dict[str, int]:
        """Expose basic load/quality stats for health endpoint."""
        return {
            "total_lines": self._stats.total_lines,
            "loaded_rows": self._stats.loaded_rows,
            "bad_lines": self._stats.bad_lines,
        }

    def list_regions(self) -> list[dict[str, str]]:
        """Return all regions sorted by display name."""
        return self._regions

    def list_sub_regions(self, region_id: str) -> list[dict[str, Any]]:
        return self._sub_regions.get(region_id, [])

    def list_localities(self, region_id: str) -> list[str]:
        """Return every locality under one region id."""
        return self._localities.get(region_id, [])

    def list_postal_codes(self, region_id: str, locality: str) -> list[str]:
        return self._postal_codes.get((region_id, locality), [])

    def search(self, query: str, limit: int = SEARCH_RESULT_LIMIT) -> list[dict[str, str]]:
        """Match region name, locality name, or postal code fragment.

        A region or locality name hit contributes every postal code of that
        locality; otherwise only the postal codes containing the query do.
        """
        needle = query.strip().lower()
        safe_limit = max(1, min(limit, SEARCH_RESULT_LIMIT))
        if not needle:
            return []
        results: list[dict[str, str]] = []
        for region in self._regions:
            region_id = region["id"]
            region_hit = needle in region["name"].lower()
            for locality in self._localities.get(region_id, []):
                name_hit = region_hit or needle in locality.lower()
                for code in self._postal_codes.get((region_id, locality), []):
                    if not name_hit and needle not in code:
                        continue
                    results.append(
                        {
                            "region": self._region_names[region_id],
                            "locality": locality,
                            "postal_code": code,
                        }
                    )
                    if len(results) >= safe_limit:
                        return results
        return results

    def lookup_postal_code(self, postal_code: str) -> dict[str, str] | None:
        """Resolve a postal code to its region and locality; None when unknown.

        A code shared by several localities resolves to the first by region id,
        then locality name.
        """
        owners = self._postal_owners.get(postal_code.strip())
        if not owners:
            return None
        region_id, locality = owners[0]
        return {
            "region_id": region_id,
            "region": self._region_names[region_id],
            "locality": locality,
            "postal_code": postal_code.strip(),
        }

    def validate_postal_code(self, region_id: str, postal_code: str) -> dict[str, Any]:
        """Check that a postal code belongs to one region; unknown regions are never valid."""
        code = postal_code.strip()
        localities = [
            locality for owner, locality in self._postal_owners.get(code, []) if owner == region_id
        ]
        return {
            "region_id": region_id,
            "region": self._region_names.get(region_id, ""),
            "postal_code": code,
            "is_valid": bool(localities),
            "locality": localities[0] if localities else None,
        }
