"""Region store and the loader that fills it from the Signal K resources API."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from bosun.core.config import RegionsConfig, SignalKConfig, get_settings
from bosun.core.types import Region
from bosun.regions.exceptions import RegionNotFoundError, RegionSourceError
from bosun.regions.parser import parse_regions

logger = structlog.stdlib.get_logger()


class RegionStore:
    """Keyed, in-memory collection of resolved regions."""

    def __init__(self, regions: list[Region] | None = None) -> None:
        self._regions: dict[str, Region] = {}
        for region in regions or []:
            self.upsert(region)

    def __len__(self) -> int:
        return len(self._regions)

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    def get(self, region_id: str) -> Region | None:
        return self._regions.get(region_id)

    def all(self) -> list[Region]:
        return list(self._regions.values())

    def enabled(self) -> list[Region]:
        """Regions with entry alerting switched on."""
        return [r for r in self._regions.values() if r.alert_enabled]

    def upsert(self, region: Region) -> None:
        self._regions[region.id] = region

    def remove(self, region_id: str) -> Region | None:
        return self._regions.pop(region_id, None)

    def replace_all(self, regions: list[Region]) -> None:
        self._regions = {r.id: r for r in regions}

    def ingest(self, payload: Any) -> int:
        """Parse a raw resource payload and upsert every valid region.

        Returns the number of regions accepted.
        """
        regions = parse_regions(payload)
        for region in regions:
            self.upsert(region)
        return len(regions)

    def set_alert_enabled(self, region_id: str, enabled: bool) -> Region:
        """Toggle entry alerting for one region.

        Raises:
            RegionNotFoundError: if the region is not loaded.
        """
        region = self._regions.get(region_id)
        if region is None:
            raise RegionNotFoundError(f"region {region_id!r} not found")
        updated = region.model_copy(update={"alert_enabled": enabled})
        self._regions[region_id] = updated
        return updated


class ResourceRegionLoader:
    """Fetches region resources (``resources/regions``, ``resources/zones_alert``).

    A failing resource path is logged and skipped; the refresh only fails
    when every path fails.
    """

    def __init__(
        self,
        signalk: SignalKConfig | None = None,
        config: RegionsConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._signalk = signalk or get_settings().signalk
        self._config = config or get_settings().regions
        self._http = http
        self._owns_http = http is None

    async def connect(self) -> None:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self._signalk.timeout_secs),
                headers=self._signalk.auth_headers(),
            )
            self._owns_http = True

    async def close(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
        self._http = None

    async def fetch(self) -> list[Region]:
        """Fetch and resolve regions from every configured resource path.

        Raises:
            RegionSourceError: if no resource path could be fetched.
        """
        await self.connect()
        assert self._http is not None

        regions: list[Region] = []
        failures = 0
        for path in self._config.resource_paths:
            url = f"{self._signalk.v2_api_url}/resources/{path}"
            try:
                response = await self._http.get(url)
                response.raise_for_status()
                body = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                failures += 1
                logger.warning("region_resource_fetch_failed", path=path, error=str(exc))
                continue
            parsed = parse_regions(body)
            logger.info("region_resources_loaded", path=path, count=len(parsed))
            regions.extend(parsed)

        if self._config.resource_paths and failures == len(self._config.resource_paths):
            raise RegionSourceError("no region resource path could be fetched")
        return regions

    async def refresh(self, store: RegionStore) -> int:
        """Replace the store contents with a fresh fetch; returns the count."""
        regions = await self.fetch()
        store.replace_all(regions)
        return len(regions)
