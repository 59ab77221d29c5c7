"""Unit tests for the JSONL-backed location catalog store."""

from __future__ import annotations

from pathlib import Path

import pytest

from geocascade.infra.db.catalog_store import LocalCatalogStore


def test_region_and_locality_indexes(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert store.list_regions() == [
        {"id": "ka", "name": "Karnataka"},
        {"id": "mh", "name": "Maharashtra"},
    ]
    assert store.list_localities("mh") == ["Mumbai", "Pune"]
    assert store.list_localities("unknown") == []


def test_postal_codes_are_scoped_sorted_and_unique(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert store.list_postal_codes("mh", "Pune") == ["411001", "411002"]
    assert store.list_postal_codes("ka", "Pune") == []
    assert store.list_postal_codes("mh", "Bangalore") == []


def test_sub_regions_carry_locality_counts(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert store.list_sub_regions("ka") == [
        {"name": "Bengaluru Urban", "locality_count": 1},
        {"name": "Mysuru", "locality_count": 1},
    ]


def test_bad_lines_are_skipped_and_counted(tmp_path: Path) -> None:
    data_path = tmp_path / "broken.jsonl"
    data_path.write_text(
        "\n".join(
            [
                '{"region_id": "mh", "region_name": "Maharashtra", "locality": "Pune", "postal_code": "411001"}',
                "not json",
                '{"region_id": "mh", "region_name": "Maharashtra", "locality": "", "postal_code": "411002"}',
                "",
                "[1, 2]",
            ]
        ),
        encoding="utf-8",
    )

    store = LocalCatalogStore.from_jsonl(data_path)

    assert store.health() == {"total_lines": 5, "loaded_rows": 1, "bad_lines": 4}
    assert store.list_sub_regions("mh") == []


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        LocalCatalogStore.from_jsonl(tmp_path / "absent.jsonl")


def test_search_by_postal_code_fragment(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert store.search("400001") == [
        {"region": "Maharashtra", "locality": "Mumbai", "postal_code": "400001"}
    ]
    assert [row["postal_code"] for row in store.search("4110")] == ["411001", "411002"]


def test_search_by_name_returns_every_code_of_the_locality(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert [row["postal_code"] for row in store.search("MUM")] == ["400001", "400002"]
    region_hits = store.search("maharashtra")
    assert {row["locality"] for row in region_hits} == {"Mumbai", "Pune"}
    assert len(region_hits) == 4


def test_search_is_capped_at_ten(tmp_path: Path) -> None:
    rows = [
        {
            "region_id": "mh",
            "region_name": "Maharashtra",
            "locality": "Pune",
            "postal_code": f"4110{index:02d}",
        }
        for index in range(25)
    ]
    store = LocalCatalogStore.from_rows(rows)

    assert len(store.search("pune")) == 10
    assert len(store.search("pune", limit=50)) == 10
    assert len(store.search("pune", limit=3)) == 3
    assert store.search("   ") == []


def test_lookup_postal_code_returns_owning_region_and_locality(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert store.lookup_postal_code(" 411002 ") == {
        "region_id": "mh",
        "region": "Maharashtra",
        "locality": "Pune",
        "postal_code": "411002",
    }
    assert store.lookup_postal_code("999999") is None


def test_shared_postal_code_resolves_to_first_owner() -> None:
    store = LocalCatalogStore.from_rows(
        [
            {"region_id": "mh", "region_name": "Maharashtra", "locality": "Thane", "postal_code": "400601"},
            {"region_id": "mh", "region_name": "Maharashtra", "locality": "Kalwa", "postal_code": "400601"},
        ]
    )

    assert store.lookup_postal_code("400601")["locality"] == "Kalwa"  # type: ignore[index]
    assert store.validate_postal_code("mh", "400601")["locality"] == "Kalwa"


def test_validate_postal_code_is_scoped_to_region(catalog_path: Path) -> None:
    store = LocalCatalogStore.from_jsonl(catalog_path)

    assert store.validate_postal_code("ka", "560001") == {
        "region_id": "ka",
        "region": "Karnataka",
        "postal_code": "560001",
        "is_valid": True,
        "locality": "Bangalore",
    }
    wrong_region = store.validate_postal_code("mh", "560001")
    assert wrong_region["is_valid"] is False
    assert wrong_region["locality"] is None
    unknown_region = store.validate_postal_code("zz", "560001")
    assert unknown_region["region"] == ""
    assert unknown_region["is_valid"] is False
