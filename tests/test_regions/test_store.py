"""Tests for bosun/regions/store.py: RegionStore and ResourceRegionLoader."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from bosun.core.config import RegionsConfig, SignalKConfig
from bosun.core.types import Geometry, GeometryType, Region
from bosun.regions.exceptions import RegionNotFoundError, RegionSourceError
from bosun.regions.store import RegionStore, ResourceRegionLoader

SQUARE = [[[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]]
V2 = "http://sk.test/signalk/v2/api"


def _region(region_id: str, enabled: bool = True) -> Region:
    return Region(
        id=region_id,
        geometry=Geometry(type=GeometryType.POLYGON, coordinates=SQUARE),
        alert_enabled=enabled,
    )


def _mock_response(url: str, status_code: int = 200, json_data: Any = None) -> httpx.Response:
    """Build a mock httpx.Response."""
    return httpx.Response(
        status_code=status_code,
        json=json_data if json_data is not None else {},
        request=httpx.Request("GET", url),
    )


class TestRegionStore:
    def test_upsert_get_remove(self) -> None:
        store = RegionStore([_region("a")])
        assert "a" in store
        assert store.get("a") is not None
        store.upsert(_region("a", enabled=False))
        assert len(store) == 1
        assert not store.get("a").alert_enabled  # type: ignore[union-attr]
        assert store.remove("a") is not None
        assert store.remove("a") is None

    def test_enabled_filters(self) -> None:
        store = RegionStore([_region("a"), _region("b", enabled=False)])
        assert [r.id for r in store.enabled()] == ["a"]
        assert len(store.all()) == 2

    def test_set_alert_enabled(self) -> None:
        store = RegionStore([_region("a", enabled=False)])
        updated = store.set_alert_enabled("a", True)
        assert updated.alert_enabled
        assert [r.id for r in store.enabled()] == ["a"]

    def test_set_alert_enabled_unknown(self) -> None:
        with pytest.raises(RegionNotFoundError):
            RegionStore().set_alert_enabled("nope", True)

    def test_ingest_counts_accepted(self) -> None:
        store = RegionStore()
        count = store.ingest({
            "ok": {"type": "Polygon", "coordinates": SQUARE},
            "bad": {"type": "Point", "coordinates": [0, 0]},
        })
        assert count == 1
        assert "ok" in store

    def test_replace_all(self) -> None:
        store = RegionStore([_region("a")])
        store.replace_all([_region("b")])
        assert "a" not in store
        assert "b" in store


class TestResourceRegionLoader:
    def _loader(self, http: httpx.AsyncClient) -> ResourceRegionLoader:
        return ResourceRegionLoader(
            SignalKConfig(base_url="http://sk.test/signalk"),
            RegionsConfig(resource_paths=["regions", "zones_alert"]),
            http=http,
        )

    async def test_fetch_merges_paths(self) -> None:
        http = httpx.AsyncClient()
        loader = self._loader(http)
        responses = {
            f"{V2}/resources/regions": _mock_response(
                f"{V2}/resources/regions",
                json_data={"r1": {"type": "Polygon", "coordinates": SQUARE}},
            ),
            f"{V2}/resources/zones_alert": _mock_response(
                f"{V2}/resources/zones_alert",
                json_data={"z1": {"type": "Polygon", "coordinates": SQUARE}},
            ),
        }
        with patch.object(http, "get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = lambda url: responses[url]
            regions = await loader.fetch()
        assert sorted(r.id for r in regions) == ["r1", "z1"]
        await http.aclose()

    async def test_failing_path_is_skipped(self) -> None:
        http = httpx.AsyncClient()
        loader = self._loader(http)

        def _get(url: str) -> httpx.Response:
            if url.endswith("zones_alert"):
                return _mock_response(url, 404, {"message": "no such resource"})
            return _mock_response(url, json_data={"r1": {"type": "Polygon", "coordinates": SQUARE}})

        with patch.object(http, "get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = _get
            regions = await loader.fetch()
        assert [r.id for r in regions] == ["r1"]
        await http.aclose()

    async def test_all_paths_failing_raises(self) -> None:
        http = httpx.AsyncClient()
        loader = self._loader(http)
        with patch.object(http, "get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = httpx.ConnectError("refused")
            with pytest.raises(RegionSourceError):
                await loader.fetch()
        await http.aclose()

    async def test_refresh_replaces_store(self) -> None:
        http = httpx.AsyncClient()
        loader = self._loader(http)
        store = RegionStore([_region("stale")])
        with patch.object(http, "get", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = lambda url: _mock_response(
                url, json_data={"fresh": {"type": "Polygon", "coordinates": SQUARE}},
            )
            count = await loader.refresh(store)
        # both paths return the same id; the later one wins
        assert count == 2
        assert "stale" not in store
        assert "fresh" in store
        await http.aclose()

    async def test_borrowed_client_not_closed(self) -> None:
        http = httpx.AsyncClient()
        loader = self._loader(http)
        await loader.close()
        assert not http.is_closed
        await http.aclose()
