"""
Merchant API Client

HTTP client for the merchant's catalog and cart APIs, plus the adapters that
plug it into the cart core as a CatalogLookup and a CartStore.
"""

import json
import logging
from typing import Optional, Any, Sequence

import httpx

from cartsync.catalog import CatalogLookup
from cartsync.errors import CartStoreError, CatalogError
from cartsync.models import CartIdentity, CartLineItem, CartState, ProductInfo
from cartsync.stores import CartStore

logger = logging.getLogger(__name__)


class MerchantClient:
    """Client for interacting with merchant APIs"""

    def __init__(
        self,
        merchant_base_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize merchant client.

        Args:
            merchant_base_url: Base URL of merchant API
            timeout: Request timeout in seconds
            http_client: Preconfigured client to use instead of creating one
        """
        self.base_url = merchant_base_url.rstrip("/")
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _generate_headers(self, customer_id: Optional[str] = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if customer_id:
            headers["X-Customer-Id"] = customer_id
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
        customer_id: Optional[str] = None,
    ) -> Any:
        """Make an HTTP request to the merchant"""
        url = f"{self.base_url}{path}"

        response = await self._http_client.request(
            method=method,
            url=url,
            headers=self._generate_headers(customer_id),
            params=params,
            content=json.dumps(body) if body is not None else None,
        )

        if response.status_code >= 400:
            logger.error(f"Request failed: {method} {path} {response.status_code} - {response.text}")
            response.raise_for_status()

        return response.json()

    # ==================== Product APIs ====================

    async def get_product(self, product_id: str) -> dict:
        """Get product details"""
        return await self._request("GET", f"/api/products/{product_id}")

    # ==================== Cart APIs ====================

    async def get_cart(self, customer_id: str) -> dict:
        """Get the customer's cart"""
        return await self._request("GET", "/api/cart", customer_id=customer_id)

    async def add_to_cart(self, customer_id: str, product_id: str, quantity: int = 1) -> dict:
        """Add item to cart"""
        return await self._request(
            "POST",
            "/api/cart/items",
            body={"product_id": product_id, "quantity": quantity},
            customer_id=customer_id,
        )

    async def update_cart_item(self, customer_id: str, product_id: str, quantity: int) -> dict:
        """Update item quantity in cart"""
        return await self._request(
            "PUT",
            f"/api/cart/items/{product_id}",
            body={"quantity": quantity},
            customer_id=customer_id,
        )

    async def remove_from_cart(self, customer_id: str, product_id: str) -> dict:
        """Remove item from cart"""
        return await self._request(
            "DELETE",
            f"/api/cart/items/{product_id}",
            customer_id=customer_id,
        )

    async def clear_cart(self, customer_id: str) -> dict:
        """Clear the cart"""
        return await self._request("DELETE", "/api/cart", customer_id=customer_id)

    async def merge_cart(self, customer_id: str, items: list[CartLineItem]) -> dict:
        """Add several lines to the cart in one request"""
        return await self._request(
            "POST",
            "/api/cart/merge",
            body={"items": [item.model_dump() for item in items]},
            customer_id=customer_id,
        )

    async def validate_cart(self, items: list[CartLineItem]) -> dict:
        """Re-check cart lines against current price and stock"""
        return await self._request(
            "POST",
            "/api/cart/validate",
            body={"items": [item.model_dump() for item in items]},
        )


class MerchantCatalog(CatalogLookup):
    """Catalog lookups served by the merchant API"""

    def __init__(self, client: MerchantClient):
        self.client = client

    async def get_product(self, product_id: str) -> Optional[ProductInfo]:
        try:
            data = await self.client.get_product(product_id)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise CatalogError(f"Catalog lookup for {product_id} failed: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogError(f"Catalog lookup for {product_id} failed: {e}") from e

        try:
            return ProductInfo(
                product_id=data["id"],
                price=data["price"],
                stock_count=data.get("stock_quantity", 0),
                available=data.get("in_stock", True),
                name=data.get("name"),
            )
        except (KeyError, AttributeError, ValueError) as e:
            raise CatalogError(f"Malformed product {product_id}: {e}") from e


class MerchantCartStore(CartStore):
    """Server-side Cart Store for signed-in shoppers"""

    def __init__(self, client: MerchantClient):
        self.client = client

    async def _call(self, description: str, request) -> dict:
        try:
            return await request
        except httpx.HTTPStatusError as e:
            raise CartStoreError(
                f"{description} rejected: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise CartStoreError(f"{description} failed: {e}") from e
        except ValueError as e:
            raise CartStoreError(f"{description} returned an invalid response: {e}") from e

    async def load_cart(self, identity: CartIdentity) -> CartState:
        data = await self._call("Load cart", self.client.get_cart(identity.id))
        try:
            return CartState(items=data["items"])
        except (KeyError, TypeError, ValueError) as e:
            raise CartStoreError(f"Malformed cart for {identity.id}: {e}") from e

    async def write_add(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        unit_price: float,
    ) -> None:
        await self._call(
            f"Add {product_id}",
            self.client.add_to_cart(identity.id, product_id, quantity),
        )

    async def write_remove(self, identity: CartIdentity, product_id: str) -> None:
        await self._call(
            f"Remove {product_id}",
            self.client.remove_from_cart(identity.id, product_id),
        )

    async def write_update_quantity(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        unit_price: Optional[float] = None,
    ) -> None:
        await self._call(
            f"Update {product_id}",
            self.client.update_cart_item(identity.id, product_id, quantity),
        )

    async def write_clear(self, identity: CartIdentity) -> None:
        await self._call("Clear cart", self.client.clear_cart(identity.id))

    async def write_merge(self, identity: CartIdentity, items: Sequence[CartLineItem]) -> None:
        await self._call(
            f"Merge {len(items)} lines",
            self.client.merge_cart(identity.id, list(items)),
        )
