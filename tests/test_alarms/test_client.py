"""Tests for bosun/alarms/client.py: URL building and error mapping."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from bosun.alarms.client import AlarmApiClient
from bosun.alarms.exceptions import AlarmApiUnavailableError, AlarmEndpointUnsupportedError
from bosun.core.config import SignalKConfig

BASE = "http://sk.test/signalk/v2/api"


def _mock_response(
    status_code: int = 200,
    json_data: Any = None,
    content: bytes | None = None,
    method: str = "POST",
) -> httpx.Response:
    """Build a mock httpx.Response."""
    request = httpx.Request(method, f"{BASE}/alarms")
    if content is not None:
        return httpx.Response(status_code=status_code, content=content, request=request)
    return httpx.Response(status_code=status_code, json=json_data, request=request)


def _client() -> AlarmApiClient:
    return AlarmApiClient(SignalKConfig(base_url="http://sk.test/signalk"))


class TestLifecycle:
    async def test_connect_and_close(self) -> None:
        client = _client()
        assert not client.connected
        await client.connect()
        assert client.connected
        await client.close()
        assert not client.connected

    async def test_context_manager(self) -> None:
        async with _client() as client:
            assert client.connected
        assert not client.connected

    async def test_borrowed_client_not_closed(self) -> None:
        http = httpx.AsyncClient()
        client = AlarmApiClient(SignalKConfig(), http=http)
        await client.close()
        assert not http.is_closed
        await http.aclose()

    def test_base_url(self) -> None:
        assert _client().base_url == BASE


class TestEndpoints:
    async def test_raise_posts_message(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.return_value = _mock_response(200, {"id": "abc", "path": "mob.abc"})
            body = await client.raise_alarm("mob", "Crew overboard")
        assert body == {"id": "abc", "path": "mob.abc"}
        mock_req.assert_awaited_once_with(
            "POST", f"{BASE}/alarms/mob", json={"message": "Crew overboard"},
        )
        await client.close()

    async def test_cancel_deletes(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.return_value = _mock_response(200, content=b"", method="DELETE")
            await client.cancel_alarm("fire", "xyz")
        mock_req.assert_awaited_once_with("DELETE", f"{BASE}/alarms/fire/xyz", json=None)
        await client.close()

    async def test_silence_posts(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.return_value = _mock_response(200, {})
            await client.silence_alarm("fire", "xyz")
        mock_req.assert_awaited_once_with("POST", f"{BASE}/alarms/fire/xyz/silence", json={})
        await client.close()

    async def test_empty_or_non_object_body_is_empty_dict(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.return_value = _mock_response(200, content=b"")
            assert await client.raise_alarm("mob", "x") == {}
            mock_req.return_value = _mock_response(200, ["not", "a", "dict"])
            assert await client.raise_alarm("mob", "x") == {}
            mock_req.return_value = _mock_response(200, content=b"<html>")
            assert await client.raise_alarm("mob", "x") == {}
        await client.close()


class TestErrorMapping:
    async def test_404_is_endpoint_unsupported(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.return_value = _mock_response(404, {"message": "not found"})
            with pytest.raises(AlarmEndpointUnsupportedError):
                await client.raise_alarm("region", "Entering region: Harbour")
        await client.close()

    async def test_500_is_unavailable_with_status(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.return_value = _mock_response(500, {"message": "boom"})
            with pytest.raises(AlarmApiUnavailableError) as exc_info:
                await client.raise_alarm("mob", "x")
        assert exc_info.value.status_code == 500
        await client.close()

    async def test_transport_error_is_unavailable(self) -> None:
        client = _client()
        await client.connect()
        with patch.object(client._http, "request", new_callable=AsyncMock) as mock_req:  # type: ignore[union-attr]
            mock_req.side_effect = httpx.ConnectError("refused")
            with pytest.raises(AlarmApiUnavailableError) as exc_info:
                await client.cancel_alarm("mob", "1")
        assert exc_info.value.status_code is None
        await client.close()

    async def test_unsupported_is_not_unavailable(self) -> None:
        assert not issubclass(AlarmEndpointUnsupportedError, AlarmApiUnavailableError)
