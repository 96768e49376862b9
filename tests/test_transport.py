"""
Tests for the HTTP transport adapter: deadline enforcement and
mapping of network failures onto the gateway error taxonomy.
"""

import asyncio
import json

import httpx
import pytest

from misp_bridge.client import HttpTransport, MispTimeout, TransportFailure
from misp_bridge.client.transport import USER_AGENT

URL = "https://misp.example.com/events/view/1"
HEADERS = {"Authorization": "k", "Accept": "application/json"}


def _transport(handler, timeout=1.0):
    return HttpTransport(timeout=timeout, transport=httpx.MockTransport(handler))


class TestHttpTransport:
    @pytest.mark.asyncio
    async def test_returns_status_and_body(self):
        t = _transport(lambda request: httpx.Response(200, json={"ok": True}))
        resp = await t.request("GET", URL, HEADERS)

        assert resp.status_code == 200
        assert json.loads(resp.text) == {"ok": True}
        assert resp.ok is True
        assert resp.elapsed_ms >= 0

    @pytest.mark.asyncio
    async def test_non_2xx_is_returned_not_raised(self):
        t = _transport(lambda request: httpx.Response(404, text="missing"))
        resp = await t.request("GET", URL, HEADERS)
        assert resp.status_code == 404
        assert resp.ok is False
        assert resp.text == "missing"

    @pytest.mark.asyncio
    async def test_body_serialized_as_json(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200, json={})

        await _transport(handler).request("POST", URL, HEADERS, body={"value": "x"})
        assert seen["body"] == {"value": "x"}
        assert seen["ua"] == USER_AGENT

    @pytest.mark.asyncio
    async def test_no_body_sends_empty_content(self):
        seen = {}

        def handler(request):
            seen["content"] = request.content
            return httpx.Response(200, json={})

        await _transport(handler).request("GET", URL, HEADERS)
        assert seen["content"] == b""

    @pytest.mark.asyncio
    async def test_params_forwarded(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, text="")

        await _transport(handler).request("GET", URL, HEADERS, params={"last": "7d"})
        assert seen["params"] == {"last": "7d"}


class TestFailures:
    @pytest.mark.asyncio
    async def test_slow_response_times_out(self):
        async def handler(request):
            await asyncio.sleep(2)
            return httpx.Response(200, json={})

        t = _transport(handler, timeout=0.05)
        with pytest.raises(MispTimeout) as exc_info:
            await t.request("GET", URL, HEADERS)

        assert exc_info.value.timeout == 0.05
        assert str(exc_info.value) == "MISP API timeout after 0.05s"

    @pytest.mark.asyncio
    async def test_httpx_timeout_maps_to_misp_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(MispTimeout):
            await _transport(handler, timeout=3).request("GET", URL, HEADERS)

    @pytest.mark.asyncio
    async def test_connect_error_is_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        with pytest.raises(TransportFailure) as exc_info:
            await _transport(handler).request("GET", URL, HEADERS)

        assert "Name or service not known" in str(exc_info.value)
        assert exc_info.value.kind == "transport_failure"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "https://misp.example.com:notaport/events/view/1",
        "https://misp.example.com/events/view/4\x002",
    ])
    async def test_unbuildable_url_is_transport_failure(self, url):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(TransportFailure) as exc_info:
            await _transport(handler).request("GET", url, HEADERS)

        assert calls == []
        assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)
