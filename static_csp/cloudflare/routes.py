"""Cloudflare Workers route client.

Lists and registers worker routes for a zone so that the nonce worker runs
on the generated pages. Failures raise CloudflareAPIError; nothing is
retried.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable
from typing import Any

import httpx
import structlog

from static_csp.config.loader import CloudflareSettings
from static_csp.errors import CloudflareAPIError

logger = structlog.get_logger()


class CloudflareRoutesClient:
    """Thin async wrapper over ``/zones/{zone_id}/workers/routes``."""

    def __init__(self, settings: CloudflareSettings, client: httpx.AsyncClient | None = None):
        settings.require_credentials()
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout),
            follow_redirects=False,
        )

    async def __aenter__(self) -> CloudflareRoutesClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def _routes_url(self) -> str:
        return f"{self._settings.api_base.rstrip('/')}/zones/{self._settings.zone_id}/workers/routes"

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._settings.api_token.get_secret_value()}",
        }

    async def _request(self, method: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.request(
                method,
                self._routes_url,
                headers=self._headers,
                json=payload,
            )
        except httpx.HTTPError as exc:
            raise CloudflareAPIError(f"Cloudflare request failed: {exc}") from exc

        try:
            body = response.json()
        except json.JSONDecodeError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or body.get("success") is False:
            errors = body.get("errors", [])
            raise CloudflareAPIError(
                f"Cloudflare API {method} {self._routes_url} returned {response.status_code}",
                status_code=response.status_code,
                errors=errors,
            )
        return body.get("result")

    async def list_routes(self) -> list[dict[str, Any]]:
        """Return the worker routes currently registered on the zone."""
        routes = await self._request("GET") or []
        logger.info("cloudflare_routes_listed", zone_id=self._settings.zone_id, count=len(routes))
        return routes

    async def register_route(self, pattern: str, script: str) -> dict[str, Any]:
        result = await self._request("POST", {"pattern": pattern, "script": script})
        logger.info("cloudflare_route_registered", pattern=pattern, script=script)
        return result or {}

    async def register_routes(self, patterns: Iterable[str], script: str) -> list[dict[str, Any]]:
        """Register every pattern concurrently. The first failure propagates."""
        return list(await asyncio.gather(
            *(self.register_route(pattern, script) for pattern in patterns)
        ))

    async def sync_routes(self, patterns: Iterable[str], script: str) -> list[dict[str, Any]]:
        """Register only the patterns the zone does not already route."""
        existing = {route.get("pattern") for route in await self.list_routes()}
        missing = []
        for pattern in dict.fromkeys(patterns):
            if pattern in existing:
                logger.debug("cloudflare_route_skipped", pattern=pattern)
                continue
            missing.append(pattern)
        return await self.register_routes(missing, script)
