"""Vessel position feed: polls ``navigation.position`` from the Signal K REST API."""

from __future__ import annotations

import math
from typing import Any

import httpx
import structlog

from bosun.core.config import PositionConfig, SignalKConfig, get_settings
from bosun.feeds.base import BaseFeed
from bosun.feeds.exceptions import FeedConnectionError, FeedParseError

logger = structlog.stdlib.get_logger()

# (longitude, latitude), GeoJSON order
PositionFix = tuple[float, float]


def parse_position(body: Any) -> PositionFix:
    """Extract ``(lon, lat)`` from a position response.

    Accepts the full Signal K value object (``{"value": {"longitude": ..,
    "latitude": ..}, "timestamp": ..}``) or the bare value.

    Raises:
        FeedParseError: if either coordinate is missing or not finite.
    """
    if not isinstance(body, dict):
        raise FeedParseError(f"position body is {type(body).__name__}, expected object")
    value = body.get("value", body)
    if not isinstance(value, dict):
        raise FeedParseError("position value is not an object")
    try:
        lon = float(value["longitude"])
        lat = float(value["latitude"])
    except (KeyError, TypeError, ValueError) as exc:
        raise FeedParseError(f"position value missing coordinates: {value!r}") from exc
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise FeedParseError("position coordinates are not finite")
    return lon, lat


class PositionFeed(BaseFeed):
    """Polls the vessel's own position and emits ``(lon, lat)`` fixes.

    A fix carrying the same server timestamp as the previous poll is not
    re-emitted.

    Usage::

        feed = PositionFeed()
        feed.on_event(machine.update_position)
        async with feed:
            await asyncio.sleep(60)
    """

    def __init__(
        self,
        signalk: SignalKConfig | None = None,
        config: PositionConfig | None = None,
    ) -> None:
        cfg = config or get_settings().position
        super().__init__(name="position", poll_interval_ms=cfg.poll_interval_ms)
        self._signalk = signalk or get_settings().signalk
        self._config = cfg
        self._http: httpx.AsyncClient | None = None
        self._last_fix: PositionFix | None = None
        self._last_timestamp: str | None = None

    @property
    def url(self) -> str:
        return f"{self._signalk.v1_api_url}/{self._config.path.replace('.', '/').strip('/')}"

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    @property
    def last_fix(self) -> PositionFix | None:
        return self._last_fix

    async def connect(self) -> None:
        """Create the httpx async client."""
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._signalk.timeout_secs),
            headers=self._signalk.auth_headers(),
        )

    async def close(self) -> None:
        """Close the httpx async client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def poll(self) -> list[PositionFix]:
        """Fetch the current position; returns ``[fix]`` or ``[]`` if unchanged."""
        if self._http is None:
            raise FeedConnectionError("HTTP client not connected")

        try:
            response = await self._http.get(self.url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FeedConnectionError(
                f"position request returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FeedConnectionError(f"position request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise FeedParseError("position response is not JSON") from exc

        fix = parse_position(body)
        timestamp = body.get("timestamp") if isinstance(body.get("timestamp"), str) else None
        if timestamp is not None and timestamp == self._last_timestamp and fix == self._last_fix:
            return []

        self._last_fix = fix
        self._last_timestamp = timestamp
        logger.debug("position_fix", lon=fix[0], lat=fix[1], timestamp=timestamp)
        return [fix]
