"""Authenticated HTTP client for the collaborator services."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from .config import ServicesConfig
from .contracts import WorkflowOrder
from .errors import NotFound, UpstreamUnavailable
from .security.tokens import TokenService

logger = logging.getLogger(__name__)


class StockUpdateResult(BaseModel):
    """Outcome of a catalog stock update."""

    success: bool
    message: Optional[str] = None
    product: Optional[dict[str, Any]] = None


class ServiceClient:
    """Calls the orders, payments, shipping and catalog services.

    Every request carries a freshly minted service claims token for
    ``config.service_name``.
    """

    def __init__(
        self,
        token_service: TokenService,
        config: Optional[ServicesConfig] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._tokens = token_service
        self._config = config or ServicesConfig()
        self._http = http or httpx.AsyncClient(timeout=self._config.timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        token = self._tokens.mint_service_claims(self._config.service_name)
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self, service: str, method: str, url: str, json: Any = None
    ) -> Any:
        try:
            response = await self._http.request(
                method, url, json=json, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Authenticated request failed for {url}: {e!r}")
            raise UpstreamUnavailable(service, str(e) or type(e).__name__) from e

        if response.status_code == 404:
            raise NotFound(service, f"{url} not found")
        if response.is_error:
            logger.error(
                f"Authenticated request failed for {url}: HTTP {response.status_code}"
            )
            raise UpstreamUnavailable(
                service, f"HTTP {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError:
            return response.text

    # ------------------------------------------------------------------
    async def create_order(self, order: WorkflowOrder) -> Any:
        return await self._request(
            "orders", "POST", f"{self._config.orders_url}/orders", json=order.to_dict()
        )

    async def get_order(self, order_id: str) -> Any:
        return await self._request(
            "orders", "GET", f"{self._config.orders_url}/orders/{order_id}"
        )

    async def get_payment(self, order_id: str) -> Any:
        return await self._request(
            "payments", "GET", f"{self._config.payments_url}/payments/{order_id}"
        )

    async def get_shipping(self, order_id: str) -> Any:
        return await self._request(
            "shipping", "GET", f"{self._config.shipping_url}/shipping/{order_id}"
        )

    async def update_stock(self, product_id: str, quantity: int) -> StockUpdateResult:
        """PUT the quantity to the catalog; success is the body's ``success`` flag.

        Never retried. Transport errors and refusals come back as
        ``success=False``.
        """
        url = f"{self._config.catalog_url}/api/products/{product_id}/stock"
        try:
            response = await self._http.put(
                url, json={"quantity": quantity}, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Error updating catalog stock for product {product_id}: {e!r}")
            return StockUpdateResult(success=False, message=str(e) or type(e).__name__)

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        if body.get("success") is True:
            product = body.get("product") if isinstance(body.get("product"), dict) else None
            logger.info(
                f"Catalog stock updated for product {product_id}"
                + (f"; new quantity {product.get('quantity')}" if product else "")
            )
            return StockUpdateResult(
                success=True, message=body.get("message"), product=product
            )

        message = body.get("message") or f"HTTP {response.status_code}"
        logger.error(f"Failed to update catalog stock for product {product_id}: {message}")
        return StockUpdateResult(success=False, message=message)
