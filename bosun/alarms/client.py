"""Async client for the Signal K v2 alarms API."""

from __future__ import annotations

from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from bosun.alarms.exceptions import (
    AlarmApiUnavailableError,
    AlarmEndpointUnsupportedError,
)
from bosun.core.config import SignalKConfig, get_settings

logger = structlog.stdlib.get_logger()


class AlarmApiClient:
    """Thin httpx wrapper over ``{base}/alarms``.

    A 404 is reported as :class:`AlarmEndpointUnsupportedError` so callers
    can tell "this server does not know the alarm type" apart from every
    other failure, which is reported as :class:`AlarmApiUnavailableError`.

    Usage::

        async with AlarmApiClient() as api:
            body = await api.raise_alarm("mob", "Crew overboard")
    """

    def __init__(
        self,
        config: SignalKConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_settings().signalk
        self._base_url = self._config.v2_api_url
        self._http = http
        self._owns_http = http is None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def connected(self) -> bool:
        """Whether the HTTP client is active."""
        return self._http is not None and not self._http.is_closed

    async def connect(self) -> None:
        """Create the httpx async client."""
        if self.connected:
            return
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_secs),
            headers=self._config.auth_headers(),
        )
        self._owns_http = True

    async def close(self) -> None:
        """Close the httpx async client if we created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
        self._http = None

    async def __aenter__(self) -> AlarmApiClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── Endpoints ───────────────────────────────────────────────

    async def raise_alarm(self, alarm_type: str, message: str) -> dict[str, Any]:
        """POST ``alarms/{type}`` and return the decoded response body."""
        response = await self._request(
            "POST", f"alarms/{quote(alarm_type)}", json={"message": message},
        )
        return _json_body(response)

    async def cancel_alarm(self, alarm_type: str, alarm_id: str) -> None:
        """DELETE ``alarms/{type}/{id}``."""
        await self._request("DELETE", f"alarms/{quote(alarm_type)}/{quote(alarm_id)}")

    async def silence_alarm(self, alarm_type: str, alarm_id: str) -> None:
        """POST ``alarms/{type}/{id}/silence``."""
        await self._request(
            "POST",
            f"alarms/{quote(alarm_type)}/{quote(alarm_id)}/silence",
            json={},
        )

    # ── Internal ────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        if self._http is None:
            await self.connect()
        assert self._http is not None

        url = f"{self._base_url}/{path}"
        try:
            response = await self._http.request(method, url, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                raise AlarmEndpointUnsupportedError(
                    f"{method} {path} not supported by server"
                ) from exc
            raise AlarmApiUnavailableError(
                f"{method} {path} returned {status}", status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise AlarmApiUnavailableError(f"{method} {path} failed: {exc}") from exc

        logger.debug("alarm_api_request", method=method, path=path, status=response.status_code)
        return response


def _json_body(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body; empty or non-object bodies become ``{}``."""
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        logger.warning("alarm_api_non_json_body", status=response.status_code)
        return {}
    return body if isinstance(body, dict) else {}
