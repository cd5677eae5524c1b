"""Tests for the Cloudflare worker routes client."""

from __future__ import annotations

import json

import httpx
import pytest

from static_csp.cloudflare.routes import CloudflareRoutesClient
from static_csp.config.loader import CloudflareSettings
from static_csp.errors import CloudflareAPIError, ConfigurationError

ROUTES_URL = "https://api.cloudflare.com/client/v4/zones/zone123/workers/routes"


@pytest.fixture
def settings():
    return CloudflareSettings(zone_id="zone123", api_token="test-token")


class FakeCloudflare:
    """In-memory worker routes API for httpx.MockTransport."""

    def __init__(self, existing=None, fail_status=None):
        self.routes = [{"id": f"r{i}", "pattern": p, "script": "nonce"} for i, p in enumerate(existing or [])]
        self.fail_status = fail_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status:
            return httpx.Response(
                self.fail_status,
                json={"success": False, "errors": [{"code": 10000, "message": "Authentication error"}]},
            )
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "errors": [], "result": self.routes})
        payload = json.loads(request.content)
        route = {"id": f"r{len(self.routes)}", **payload}
        self.routes.append(route)
        return httpx.Response(200, json={"success": True, "errors": [], "result": {"id": route["id"]}})

    @property
    def posted_patterns(self):
        return [json.loads(r.content)["pattern"] for r in self.requests if r.method == "POST"]


def _client(api):
    return httpx.AsyncClient(transport=httpx.MockTransport(api))


class TestCloudflareRoutesClient:
    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            CloudflareRoutesClient(CloudflareSettings())

    @pytest.mark.asyncio
    async def test_list_routes(self, settings):
        api = FakeCloudflare(existing=["https://*.example.org/a"])
        async with CloudflareRoutesClient(settings, client=_client(api)) as cloudflare:
            routes = await cloudflare.list_routes()
        assert [r["pattern"] for r in routes] == ["https://*.example.org/a"]
        request = api.requests[0]
        assert request.method == "GET"
        assert str(request.url) == ROUTES_URL
        assert request.headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_register_routes(self, settings):
        api = FakeCloudflare()
        async with CloudflareRoutesClient(settings, client=_client(api)) as cloudflare:
            results = await cloudflare.register_routes(["https://h/a", "https://h/b"], "nonce")
        assert len(results) == 2
        assert sorted(api.posted_patterns) == ["https://h/a", "https://h/b"]
        body = json.loads(api.requests[0].content)
        assert body["script"] == "nonce"

    @pytest.mark.asyncio
    async def test_sync_routes_skips_existing(self, settings):
        api = FakeCloudflare(existing=["https://h/a"])
        async with CloudflareRoutesClient(settings, client=_client(api)) as cloudflare:
            await cloudflare.sync_routes(["https://h/a", "https://h/b", "https://h/b"], "nonce")
        assert api.posted_patterns == ["https://h/b"]

    @pytest.mark.asyncio
    async def test_api_error_raises(self, settings):
        api = FakeCloudflare(fail_status=403)
        async with CloudflareRoutesClient(settings, client=_client(api)) as cloudflare:
            with pytest.raises(CloudflareAPIError) as exc_info:
                await cloudflare.list_routes()
        assert exc_info.value.status_code == 403
        assert exc_info.value.errors[0]["code"] == 10000

    @pytest.mark.asyncio
    async def test_success_false_raises(self, settings):
        def handler(request):
            return httpx.Response(200, json={"success": False, "errors": [{"message": "bad pattern"}]})

        async with CloudflareRoutesClient(settings, client=_client(handler)) as cloudflare:
            with pytest.raises(CloudflareAPIError):
                await cloudflare.register_route("nope", "nonce")

    @pytest.mark.asyncio
    async def test_network_error_raises(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with CloudflareRoutesClient(settings, client=_client(handler)) as cloudflare:
            with pytest.raises(CloudflareAPIError, match="request failed"):
                await cloudflare.list_routes()

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, settings):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        async with CloudflareRoutesClient(settings, client=_client(handler)) as cloudflare:
            with pytest.raises(CloudflareAPIError) as exc_info:
                await cloudflare.list_routes()
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, settings):
        client = _client(FakeCloudflare())
        async with CloudflareRoutesClient(settings, client=client):
            pass
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_custom_api_base(self):
        api = FakeCloudflare()
        settings = CloudflareSettings(zone_id="z9", api_token="t", api_base="https://cf.internal/v4/")
        async with CloudflareRoutesClient(settings, client=_client(api)) as cloudflare:
            await cloudflare.list_routes()
        assert str(api.requests[0].url) == "https://cf.internal/v4/zones/z9/workers/routes"
