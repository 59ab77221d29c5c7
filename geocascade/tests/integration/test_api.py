"""Integration tests for the catalog HTTP API and the selectors driven over it."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from geocascade.core.config import Settings
from geocascade.infra.catalog.catalog_client import CatalogConfig, HttpCatalogClient
from geocascade.location.cascade_controller import CascadeController, SelectionState
from geocascade.location.selector import LocationQuickSearch
from geocascade.main import create_app


def _settings(catalog_path: Path) -> Settings:
    return Settings(env="test", log_level="WARNING", catalog_data_jsonl_path=catalog_path)


@pytest.fixture
def client(catalog_path: Path) -> Iterator[TestClient]:
    with TestClient(create_app(_settings(catalog_path))) as test_client:
        yield test_client


def test_health_reports_catalog_stats(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["env"] == "test"
    assert body["catalog"]["loaded_rows"] == 6
    assert body["catalog"]["bad_lines"] == 0
    assert float(response.headers["X-Process-Time-Ms"]) >= 0


def test_region_locality_and_postal_endpoints(client: TestClient) -> None:
    regions = client.get("/api/v1/locations/regions").json()
    localities = client.get("/api/v1/locations/regions/mh/localities").json()
    codes = client.get("/api/v1/locations/regions/mh/localities/Pune/postal-codes").json()
    sub_regions = client.get("/api/v1/locations/regions/ka/sub-regions").json()

    assert regions == [{"id": "ka", "name": "Karnataka"}, {"id": "mh", "name": "Maharashtra"}]
    assert localities == [{"name": "Mumbai"}, {"name": "Pune"}]
    assert codes == [{"code": "411001"}, {"code": "411002"}]
    assert sub_regions == [
        {"name": "Bengaluru Urban", "locality_count": 1},
        {"name": "Mysuru", "locality_count": 1},
    ]


def test_unknown_scopes_return_empty_lists(client: TestClient) -> None:
    assert client.get("/api/v1/locations/regions/zz/localities").json() == []
    assert client.get("/api/v1/locations/regions/ka/localities/Pune/postal-codes").json() == []


def test_search_endpoint(client: TestClient) -> None:
    response = client.get("/api/v1/locations/search", params={"q": "400001"})

    assert response.status_code == 200
    assert response.json() == [
        {"region": "Maharashtra", "locality": "Mumbai", "postal_code": "400001"}
    ]


def test_search_validates_query_and_limit(client: TestClient) -> None:
    assert client.get("/api/v1/locations/search", params={"q": ""}).status_code == 422
    assert client.get("/api/v1/locations/search").status_code == 422
    assert client.get("/api/v1/locations/search", params={"q": "pun", "limit": 11}).status_code == 422


def test_empty_catalog_reports_degraded(tmp_path: Path) -> None:
    data_path = tmp_path / "empty.jsonl"
    data_path.write_text("not json\n", encoding="utf-8")

    with TestClient(create_app(_settings(data_path))) as test_client:
        body = test_client.get("/health").json()
        regions = test_client.get("/api/v1/locations/regions").json()

    assert body["status"] == "degraded"
    assert body["catalog"] == {"total_lines": 1, "loaded_rows": 0, "bad_lines": 1}
    assert regions == []


def test_postal_code_lookup_and_validation_endpoints(client: TestClient) -> None:
    found = client.get("/api/v1/locations/postal-codes/560001")
    missing = client.get("/api/v1/locations/postal-codes/999999")
    valid = client.get("/api/v1/locations/regions/mh/postal-codes/400002/validation").json()
    invalid = client.get("/api/v1/locations/regions/mh/postal-codes/560001/validation").json()

    assert found.json() == {
        "region_id": "ka",
        "region": "Karnataka",
        "locality": "Bangalore",
        "postal_code": "560001",
    }
    assert missing.status_code == 404
    assert valid["is_valid"] is True
    assert valid["locality"] == "Mumbai"
    assert invalid["is_valid"] is False
    assert invalid["locality"] is None


def test_missing_catalog_file_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        create_app(_settings(tmp_path / "absent.jsonl"))


@pytest.mark.asyncio
async def test_cascade_and_quick_search_over_http(catalog_path: Path) -> None:
    app = create_app(_settings(catalog_path))
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    catalog = HttpCatalogClient(CatalogConfig(base_url="http://testserver"), http_client=http)
    changes: list[tuple[str, str]] = []
    picked: list[tuple[str, str, str]] = []

    try:
        controller = CascadeController(
            catalog,
            on_region_change=lambda value: changes.append(("region", value)),
            on_locality_change=lambda value: changes.append(("locality", value)),
        )
        await controller.hydrate(SelectionState(region_id="mh", locality_name="Pune"))
        assert controller.postal_codes == ["411001", "411002"]
        assert changes == []

        await controller.select_region("ka")
        assert controller.localities == ["Bangalore", "Mysore"]
        assert controller.state == SelectionState(region_id="ka")
        assert changes == [("region", "ka"), ("locality", "")]

        assert await controller.fill_from_postal_code("411002") is True
        assert controller.state == SelectionState(region_id="mh", locality_name="Pune", postal_code="411002")
        assert await controller.fill_from_postal_code("999999") is False

        search = LocationQuickSearch(
            catalog,
            lambda region, locality, code: picked.append((region, locality, code)),
            debounce_seconds=0.01,
        )
        search.enter_text("400001")
        for _ in range(100):
            await asyncio.sleep(0.02)
            if search.render().can_submit:
                break
        assert search.submit() is True
        assert picked == [("Maharashtra", "Mumbai", "400001")]
        await search.close()
    finally:
        await http.aclose()
