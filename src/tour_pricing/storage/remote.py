"""
Remote Store - durable price records behind the booking server's HTTP API.

Wire format:
    GET /prices?productLine=ER&category=HOTELS&tier=all&year=2026 -> {"items": ...}
    PUT /prices {"productLine", "category", "tier", "year", "items"}

Categories travel uppercased, tiers as their string id. Shared categories
use the tier id "all".
"""
import logging
from typing import Any, Optional

import httpx

from ..errors import NotFound, RemoteReadFailed, RemoteWriteFailed

logger = logging.getLogger(__name__)

SHARED_TIER_ID = "all"


class RemoteStore:
    """Async client for the remote price store."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        year: Optional[int] = None,
        auth_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.year = year
        self.auth_token = auth_token
        self.transport = transport

    def _headers(self) -> dict:
        if self.auth_token:
            return {"Authorization": f"Bearer {self.auth_token}"}
        return {}

    async def _request(self, method: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}/prices"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.request(method, url, headers=self._headers(), **kwargs)

    async def fetch(self, product_line: str, category: str, tier: str) -> Any:
        """
        Read one record's items.

        Raises:
            NotFound: no record, or a record with no items
            RemoteReadFailed: timeout, transport error or error status
        """
        params = {"productLine": product_line, "category": category, "tier": tier}
        if self.year is not None:
            params["year"] = self.year

        try:
            response = await self._request("GET", params=params)
        except httpx.HTTPError as e:
            raise RemoteReadFailed(f"GET /prices failed: {e}") from e

        if response.status_code == 404:
            raise NotFound(f"No remote record for {product_line}/{category}/{tier}")
        if response.status_code >= 400:
            raise RemoteReadFailed(f"GET /prices returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteReadFailed(f"GET /prices returned invalid JSON: {e}") from e

        items = payload.get("items") if isinstance(payload, dict) else None
        if not items:
            raise NotFound(f"No remote items for {product_line}/{category}/{tier}")
        return items

    async def push(self, product_line: str, category: str, tier: str, items: Any) -> None:
        """
        Write one record's items.

        Raises:
            RemoteWriteFailed: timeout, transport error or error status
        """
        body = {
            "productLine": product_line,
            "category": category,
            "tier": tier,
            "items": items,
        }
        if self.year is not None:
            body["year"] = self.year

        try:
            response = await self._request("PUT", json=body)
        except httpx.HTTPError as e:
            raise RemoteWriteFailed(f"PUT /prices failed: {e}") from e

        if response.status_code >= 400:
            raise RemoteWriteFailed(f"PUT /prices returned {response.status_code}")
        logger.debug("Remote write ok for %s/%s/%s", product_line, category, tier)
