"""Pytest configuration and fixtures"""
import asyncio
import os
import pytest
from typing import Optional
from unittest.mock import AsyncMock

# Keep settings independent of a developer's config/.env
os.environ.setdefault("MERCHANT_BASE_URL", "http://merchant.test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("STOCK_POLICY", "clamp")
os.environ.setdefault("DEFAULT_MERGE_POLICY", "discard")

from cartsync.catalog import StaticCatalog
from cartsync.errors import CartStoreError
from cartsync.models import CartIdentity, CartState, ProductInfo
from cartsync.reducer import AddItem, ClearCart, RemoveItem, SetQuantity, cart_reducer
from cartsync.stores import CartStore


class InMemoryCartStore(CartStore):
    """
    Cart Store kept in a dict, with hooks for failing or stalling calls.

    `fail_writes` makes every write raise CartStoreError without changing the
    stored cart; `load_gate` blocks load_cart until the event is set.
    """

    def __init__(self, carts: Optional[dict[CartIdentity, CartState]] = None):
        self.carts: dict[CartIdentity, CartState] = dict(carts or {})
        self.fail_writes = False
        self.fail_loads = False
        self.load_gate: Optional[asyncio.Event] = None
        self.calls: list[tuple] = []

    def _check_write(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.fail_writes:
            raise CartStoreError(f"{name} rejected", status_code=500)

    def _dispatch(self, identity: CartIdentity, action) -> None:
        self.carts[identity] = cart_reducer(self.carts.get(identity, CartState()), action)

    async def load_cart(self, identity: CartIdentity) -> CartState:
        self.calls.append(("load_cart", identity))
        if self.load_gate is not None:
            await self.load_gate.wait()
        if self.fail_loads:
            raise CartStoreError("store unavailable")
        return self.carts.get(identity, CartState())

    async def write_add(self, identity, product_id, quantity, unit_price) -> None:
        self._check_write("write_add", identity, product_id, quantity, unit_price)
        self._dispatch(identity, AddItem(product_id=product_id, quantity=quantity, unit_price=unit_price))

    async def write_remove(self, identity, product_id) -> None:
        self._check_write("write_remove", identity, product_id)
        self._dispatch(identity, RemoveItem(product_id=product_id))

    async def write_update_quantity(self, identity, product_id, quantity, unit_price=None) -> None:
        self._check_write("write_update_quantity", identity, product_id, quantity, unit_price)
        self._dispatch(identity, SetQuantity(product_id=product_id, quantity=quantity, unit_price=unit_price))

    async def write_clear(self, identity) -> None:
        self._check_write("write_clear", identity)
        self._dispatch(identity, ClearCart())

    def write_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "load_cart"]


@pytest.fixture
def products():
    """Sample catalog products"""
    return [
        ProductInfo(product_id="sku-1", price=50.00, stock_count=10, name="Headphones"),
        ProductInfo(product_id="sku-2", price=20.00, stock_count=6, name="Cable"),
        ProductInfo(product_id="sku-3", price=5.50, stock_count=0, name="Sticker"),
        ProductInfo(product_id="sku-4", price=99.99, stock_count=4, available=False, name="Lamp"),
    ]


@pytest.fixture
def catalog(products):
    """Static catalog with the sample products"""
    return StaticCatalog(products)


@pytest.fixture
def store():
    """Empty in-memory cart store"""
    return InMemoryCartStore()


@pytest.fixture
def guest():
    """Guest identity"""
    return CartIdentity.guest("device-123")


@pytest.fixture
def user():
    """Signed-in identity"""
    return CartIdentity.user("user-123")


@pytest.fixture
def mock_store():
    """Cart store with every call mocked"""
    store = AsyncMock(spec=CartStore)
    store.load_cart.return_value = CartState()
    return store


@pytest.fixture
def merchant_data():
    """Reset the merchant's in-memory product and cart databases"""
    from merchant.database.carts import cart_db
    from merchant.database.products import ProductDatabase, product_db

    product_db.products = ProductDatabase().products
    cart_db.carts.clear()
    yield product_db, cart_db
    product_db.products = ProductDatabase().products
    cart_db.carts.clear()
