"""Tests for the storefront session and cart API"""
from contextlib import contextmanager
import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from cartsync.catalog import CatalogLookup
from cartsync.errors import CatalogError
from cartsync.models import CartIdentity, CartLineItem, CartState
from cartsync.policies import StockPolicy
from cartsync.stores import LocalCartStore
from merchant.main import app as merchant_app
from storefront.core.session import SessionManager
from storefront.main import app
from storefront.routes.deps import get_merchant_client, get_session_manager
from storefront.services.merchant_client import MerchantClient

from .conftest import InMemoryCartStore


@pytest.fixture
def user_store():
    """Signed-in cart store"""
    return InMemoryCartStore()


@pytest.fixture
def guest_store(tmp_path):
    """Device cart store"""
    return LocalCartStore(tmp_path / "carts")


@pytest.fixture
def manager(catalog, guest_store, user_store):
    """Session manager over the sample catalog"""
    return SessionManager(catalog=catalog, guest_store=guest_store, user_store=user_store)


@pytest.fixture
def merchant_client(merchant_data):
    """Merchant client served by the in-process merchant app"""
    return MerchantClient(
        merchant_base_url="http://merchant.test",
        http_client=httpx.AsyncClient(transport=httpx.ASGITransport(app=merchant_app)),
    )


@contextmanager
def run_app(manager, merchant_client=None):
    """Serve the storefront with the given services"""
    app.dependency_overrides[get_session_manager] = lambda: manager
    if merchant_client is not None:
        app.dependency_overrides[get_merchant_client] = lambda: merchant_client
    try:
        with TestClient(app) as client:
            yield client
            client.portal.call(manager.close)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(manager, merchant_client):
    """Storefront test client; one event loop serves every request"""
    with run_app(manager, merchant_client) as client:
        yield client


def create_session(client, device_id=None) -> dict:
    response = client.post("/api/sessions", json={"device_id": device_id})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    """Health endpoint"""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "storefront"


def test_create_session(client):
    """New sessions are guests with a loaded, empty cart"""
    session = create_session(client, "device-1")

    assert session["device_id"] == "device-1"
    assert session["authenticated"] is False
    assert session["cart"] == {"items": [], "total": 0, "item_count": 0, "loading": False}


def test_unknown_session(client):
    """Unknown sessions are 404"""
    assert client.get("/api/sessions/nope/cart").status_code == 404
    assert client.post("/api/sessions/nope/cart/items", json={"product_id": "sku-1"}).status_code == 404


def test_cart_operations(client):
    """Add, update, remove and clear through the API"""
    sid = create_session(client)["session_id"]

    cart = client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 3}).json()
    assert cart["total"] == 150.0
    assert cart["item_count"] == 3

    cart = client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-2", "quantity": 20}).json()
    assert cart["items"][1] == {"product_id": "sku-2", "quantity": 6, "unit_price": 20.0}

    cart = client.put(f"/api/sessions/{sid}/cart/items/sku-2", json={"quantity": 2}).json()
    assert cart["total"] == 190.0

    cart = client.delete(f"/api/sessions/{sid}/cart/items/sku-1").json()
    assert cart["items"] == [{"product_id": "sku-2", "quantity": 2, "unit_price": 20.0}]

    cart = client.put(f"/api/sessions/{sid}/cart/items/sku-2", json={"quantity": 0}).json()
    assert cart["items"] == []

    client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1"})
    cart = client.delete(f"/api/sessions/{sid}/cart").json()
    assert cart == {"items": [], "total": 0, "item_count": 0, "loading": False}


def test_add_rejects_non_positive_quantity(client):
    """Request validation rejects zero quantities"""
    sid = create_session(client)["session_id"]

    response = client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 0})

    assert response.status_code == 422


def test_guest_cart_persists_per_device(client, guest_store):
    """A new session on the same device sees the stored cart"""
    sid = create_session(client, "device-1")["session_id"]
    client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 2})

    session = create_session(client, "device-1")

    assert session["cart"]["items"] == [{"product_id": "sku-1", "quantity": 2, "unit_price": 50.0}]
    assert create_session(client, "device-2")["cart"]["items"] == []


def test_refresh(client, guest_store):
    """Refresh picks up changes written by another session"""
    first = create_session(client, "device-1")["session_id"]
    second = create_session(client, "device-1")["session_id"]
    client.post(f"/api/sessions/{first}/cart/items", json={"product_id": "sku-2", "quantity": 1})

    assert client.get(f"/api/sessions/{second}/cart").json()["items"] == []
    cart = client.post(f"/api/sessions/{second}/cart/refresh").json()

    assert cart["item_count"] == 1


def test_login_merge_and_logout(client, user_store, guest_store):
    """Signing in merges the guest cart; signing out returns to the device cart"""
    user = CartIdentity.user("user-1")
    user_store.carts[user] = CartState(items=(CartLineItem(product_id="sku-2", quantity=1, unit_price=20.0),))

    sid = create_session(client, "device-1")["session_id"]
    client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 2})

    session = client.post(f"/api/sessions/{sid}/login", json={"user_id": "user-1", "merge_policy": "merge"}).json()

    assert session["authenticated"] is True
    assert session["user_id"] == "user-1"
    assert {i["product_id"]: i["quantity"] for i in session["cart"]["items"]} == {"sku-2": 1, "sku-1": 2}
    assert user_store.carts[user].item_count == 3

    session = client.post(f"/api/sessions/{sid}/logout").json()

    assert session["authenticated"] is False
    assert session["cart"]["items"] == []
    assert user_store.carts[user].item_count == 3


def test_login_default_policy_discards_guest_cart(client, user_store):
    """Without a policy the guest cart is dropped and the user's cart shown"""
    sid = create_session(client, "device-1")["session_id"]
    client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 2})

    session = client.post(f"/api/sessions/{sid}/login", json={"user_id": "user-1"}).json()

    assert session["cart"]["items"] == []
    assert create_session(client, "device-1")["cart"]["items"] == []


def test_login_requires_user_id(client):
    """Blank user ids are rejected"""
    sid = create_session(client)["session_id"]

    assert client.post(f"/api/sessions/{sid}/login", json={"user_id": ""}).status_code == 422


def test_delete_session(client):
    """Deleted sessions are gone"""
    sid = create_session(client)["session_id"]

    assert client.delete(f"/api/sessions/{sid}").status_code == 200
    assert client.get(f"/api/sessions/{sid}").status_code == 404
    assert client.delete(f"/api/sessions/{sid}").status_code == 404


def test_validate_empty_cart(client):
    """Empty carts validate without calling the merchant"""
    sid = create_session(client)["session_id"]

    data = client.post(f"/api/sessions/{sid}/cart/validate").json()

    assert data == {"items": [], "items_changed": False, "removed": []}


def test_validate_cart(client):
    """Lines the merchant no longer sells are reported as removed"""
    sid = create_session(client)["session_id"]
    client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 1})

    data = client.post(f"/api/sessions/{sid}/cart/validate").json()

    assert data["items_changed"] is True
    assert data["removed"] == ["sku-1"]


def test_validate_merchant_unreachable(manager):
    """Validation is unavailable when the merchant cannot be reached"""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    unreachable = MerchantClient(
        merchant_base_url="http://merchant.test",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    with run_app(manager, unreachable) as client:
        sid = create_session(client)["session_id"]
        client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1", "quantity": 1})

        assert client.post(f"/api/sessions/{sid}/cart/validate").status_code == 503


def test_reject_policy_conflict(catalog, guest_store, user_store):
    """Under REJECT, requests above stock are a 409"""
    manager = SessionManager(
        catalog=catalog,
        guest_store=guest_store,
        user_store=user_store,
        stock_policy=StockPolicy.REJECT,
    )

    with run_app(manager) as client:
        sid = create_session(client)["session_id"]
        response = client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-2", "quantity": 7})

        assert response.status_code == 409
        assert client.get(f"/api/sessions/{sid}/cart").json()["items"] == []


def test_catalog_unavailable(guest_store, user_store):
    """Catalog outages are a 503"""
    catalog = AsyncMock(spec=CatalogLookup)
    catalog.get_product.side_effect = CatalogError("merchant down")
    manager = SessionManager(catalog=catalog, guest_store=guest_store, user_store=user_store)

    with run_app(manager) as client:
        sid = create_session(client)["session_id"]
        response = client.post(f"/api/sessions/{sid}/cart/items", json={"product_id": "sku-1"})

        assert response.status_code == 503
