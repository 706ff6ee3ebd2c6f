"""
Stock Query Port: synchronous product lookups against the catalog service.

fetch() never raises. A 404, a timeout, a connection error, an unexpected
status or an unreadable body all come back as None, so the order workflow
treats "does not exist" and "unreachable" the same way.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from common.errors import TransportError
from common.models import ProductSnapshot
from order_service.config import PRODUCT_SERVICE_TIMEOUT_MS, PRODUCT_SERVICE_URL

logger = logging.getLogger(__name__)


class StockQuery(Protocol):
    async def fetch(self, product_id: str) -> ProductSnapshot | None: ...


class ProductServiceClient:
    """HTTP implementation of StockQuery with a bounded per-request timeout."""

    def __init__(
        self,
        base_url: str = PRODUCT_SERVICE_URL,
        timeout_ms: int = PRODUCT_SERVICE_TIMEOUT_MS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_ms / 1000.0
        self._client = client

    async def fetch(self, product_id: str) -> ProductSnapshot | None:
        try:
            return await self._get_product(product_id)
        except TransportError as e:
            logger.error(
                "Failed to fetch product from product service",
                extra={"context": {"product_id": product_id, "error": str(e)}},
            )
            return None

    async def has_available_quantity(self, product_id: str, requested: int) -> bool:
        product = await self.fetch(product_id)
        return product is not None and product.has_available_quantity(requested)

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, timeout=self._timeout)
        async with httpx.AsyncClient() as client:
            return await client.get(url, timeout=self._timeout)

    async def _get_product(self, product_id: str) -> ProductSnapshot | None:
        url = f"{self._base_url}/product/{product_id}"
        try:
            resp = await self._get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {type(e).__name__}: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise TransportError(f"GET {url} returned {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise TransportError(f"GET {url} returned a non-JSON body") from e

        # The catalog answers with the {data, meta} envelope; bare objects are accepted too
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        if not payload:
            return None

        try:
            return ProductSnapshot.model_validate(payload)
        except ValueError as e:
            raise TransportError(f"GET {url} returned a malformed product") from e
