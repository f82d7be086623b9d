"""Async Etsy Open API v3 client using httpx (listing inventory and prices)."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx

from ..config import settings
from ..pricing.fees import money, to_decimal
from . import EtsyApiError

logger = logging.getLogger(__name__)


def money_to_decimal(price: Any) -> Decimal:
    """Etsy returns Money objects ({"amount": 2404, "divisor": 100}) on reads."""
    if isinstance(price, dict):
        amount = price.get("amount")
        divisor = price.get("divisor") or 1
        if amount is None:
            return Decimal("0")
        return money(to_decimal(amount) / to_decimal(divisor))
    if price is None:
        return Decimal("0")
    return money(price)


def set_sku_price(inventory: dict[str, Any], variation_sku: str, price: Decimal) -> int:
    """Set the price of every offering under products matching ``variation_sku``.

    Etsy rejects an inventory where products sharing a SKU disagree on price,
    so all of them move together. Returns the number of products changed.
    """
    updated = 0
    for product in inventory.get("products") or []:
        if product.get("sku") != variation_sku:
            continue
        for offering in product.get("offerings") or []:
            offering["price"] = price
        updated += 1
    return updated


def build_inventory_update(inventory: dict[str, Any]) -> dict[str, Any]:
    """Reduce a GET inventory payload to the body PUT inventory accepts."""
    products = []
    for product in inventory.get("products") or []:
        products.append({
            "sku": product.get("sku") or "",
            "property_values": [
                {
                    "property_id": pv.get("property_id"),
                    "property_name": pv.get("property_name"),
                    "scale_id": pv.get("scale_id"),
                    "value_ids": pv.get("value_ids"),
                    "values": pv.get("values"),
                }
                for pv in product.get("property_values") or []
            ],
            "offerings": [
                {
                    "price": float(money_to_decimal(off.get("price"))),
                    "quantity": off.get("quantity"),
                    "is_enabled": off.get("is_enabled"),
                    "readiness_state_id": off.get("readiness_state_id"),
                }
                for off in product.get("offerings") or []
            ],
        })
    return {
        "products": products,
        "price_on_property": inventory.get("price_on_property") or [],
        "quantity_on_property": inventory.get("quantity_on_property") or [],
        "sku_on_property": inventory.get("sku_on_property") or [],
    }


class EtsyClient:
    """Async Etsy client. The OAuth access token is provided by configuration."""

    def __init__(self) -> None:
        self._base_url = settings.etsy_api_base.rstrip("/")
        self._client_id = settings.etsy_client_id
        self._client_secret = settings.etsy_client_secret
        self._access_token = settings.etsy_access_token
        self._client = httpx.AsyncClient(timeout=settings.etsy_request_timeout)

    def _headers(self) -> dict[str, str]:
        api_key = (
            f"{self._client_id}:{self._client_secret}"
            if self._client_id and self._client_secret
            else self._client_id
        )
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }
        if api_key:
            headers["x-api-key"] = api_key
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise EtsyApiError(f"Etsy HTTP error: {e}") from e

        if resp.status_code >= 400:
            logger.warning("Etsy %s %s returned %d: %s", method, path, resp.status_code, resp.text[:500])
            raise EtsyApiError(
                f"Etsy API returned {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )
        return resp.json()

    # --- Listings ---

    async def get_listing(self, listing_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/application/listings/{listing_id}")

    async def get_listing_inventory(self, listing_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/application/listings/{listing_id}/inventory")

    async def update_listing_inventory(self, listing_id: int, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PUT", f"/application/listings/{listing_id}/inventory", json=body,
        )

    # --- Marketplace client interface ---

    async def fetch_variation_current_price(self, listing_id: int, variation_sku: str) -> Decimal:
        inventory = await self.get_listing_inventory(listing_id)
        for product in inventory.get("products") or []:
            if product.get("sku") == variation_sku:
                offerings = product.get("offerings") or []
                if offerings:
                    return money_to_decimal(offerings[0].get("price"))
        raise EtsyApiError(
            f"Variation SKU {variation_sku} not found in listing {listing_id}", status_code=404,
        )

    async def update_variation_price(self, listing_id: int, variation_sku: str, price: Decimal) -> None:
        """Rewrite the listing inventory with a new price for one SKU.

        Etsy has no per-offering price endpoint: read the inventory, change
        the matching products, write the whole inventory back.
        """
        inventory = await self.get_listing_inventory(listing_id)
        if set_sku_price(inventory, variation_sku, money(price)) == 0:
            raise EtsyApiError(
                f"Variation SKU {variation_sku} not found in listing {listing_id}", status_code=404,
            )
        await self.update_listing_inventory(listing_id, build_inventory_update(inventory))
        logger.info("Etsy price updated: listing=%s sku=%s price=%s", listing_id, variation_sku, price)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
