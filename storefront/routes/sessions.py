"""Session and cart API routes for the storefront"""

from typing import Optional

import httpx
from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException, Depends

from cartsync.errors import CartClosedError, CatalogError, StockExceededError
from cartsync.models import CartLineItem, CartState

from ..core.session import SessionManager, ShopperSession
from ..services.merchant_client import MerchantClient
from .deps import get_merchant_client, get_session_manager

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


class CreateSessionRequest(BaseModel):
    """Request to open a shopper session"""
    device_id: Optional[str] = None


class AddItemRequest(BaseModel):
    """Request to add a product to the cart"""
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateItemRequest(BaseModel):
    """Request to change a line quantity (0 or less removes it)"""
    quantity: int


class CartView(BaseModel):
    """Cart state as shown to a UI"""
    items: list[CartLineItem]
    total: float
    item_count: int
    loading: bool

    @classmethod
    def from_state(cls, state: CartState) -> "CartView":
        return cls(
            items=list(state.items),
            total=state.total,
            item_count=state.item_count,
            loading=state.loading,
        )


class SessionResponse(BaseModel):
    """Session details"""
    session_id: str
    device_id: str
    user_id: Optional[str] = None
    authenticated: bool
    cart: CartView

    @classmethod
    def from_session(cls, session: ShopperSession) -> "SessionResponse":
        return cls(
            session_id=session.session_id,
            device_id=session.device_id,
            user_id=session.user_id,
            authenticated=session.is_authenticated,
            cart=CartView.from_state(session.cart.state),
        )


class CartValidationView(BaseModel):
    """Result of re-checking the cart against the catalog"""
    items: list[CartLineItem]
    items_changed: bool
    removed: list[str] = []


async def get_shopper_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
) -> ShopperSession:
    """Resolve a session from the path"""
    session = manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    session.touch()
    return session


async def run_cart_operation(operation) -> CartView:
    """Await a cart operation and translate cart errors to HTTP errors"""
    try:
        state = await operation
    except StockExceededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CatalogError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except CartClosedError:
        raise HTTPException(status_code=404, detail="Session closed")
    return CartView.from_state(state)


@router.post("", response_model=SessionResponse)
async def create_session(
    request: CreateSessionRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Open a guest session; its cart is loaded from the device store"""
    session = await manager.create_session(request.device_id)
    return SessionResponse.from_session(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session: ShopperSession = Depends(get_shopper_session)):
    """Get session details"""
    return SessionResponse.from_session(session)


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """Delete a session"""
    if await manager.delete_session(session_id):
        return {"message": "Session deleted"}
    raise HTTPException(status_code=404, detail="Session not found")


@router.get("/{session_id}/cart", response_model=CartView)
async def get_cart(session: ShopperSession = Depends(get_shopper_session)):
    """Current cart state"""
    return CartView.from_state(session.cart.state)


@router.post("/{session_id}/cart/items", response_model=CartView)
async def add_to_cart(
    request: AddItemRequest,
    session: ShopperSession = Depends(get_shopper_session),
):
    """Add a product; quantities above stock are clamped"""
    return await run_cart_operation(session.cart.add(request.product_id, request.quantity))


@router.put("/{session_id}/cart/items/{product_id}", response_model=CartView)
async def update_cart_item(
    product_id: str,
    request: UpdateItemRequest,
    session: ShopperSession = Depends(get_shopper_session),
):
    """Set a line quantity"""
    return await run_cart_operation(session.cart.update_quantity(product_id, request.quantity))


@router.delete("/{session_id}/cart/items/{product_id}", response_model=CartView)
async def remove_from_cart(
    product_id: str,
    session: ShopperSession = Depends(get_shopper_session),
):
    """Remove a product from the cart"""
    return await run_cart_operation(session.cart.remove(product_id))


@router.delete("/{session_id}/cart", response_model=CartView)
async def clear_cart(session: ShopperSession = Depends(get_shopper_session)):
    """Empty the cart"""
    return await run_cart_operation(session.cart.clear())


@router.post("/{session_id}/cart/refresh", response_model=CartView)
async def refresh_cart(session: ShopperSession = Depends(get_shopper_session)):
    """Reload the cart from its store"""
    return await run_cart_operation(session.cart.refresh())


@router.post("/{session_id}/cart/validate", response_model=CartValidationView)
async def validate_cart(
    session: ShopperSession = Depends(get_shopper_session),
    client: MerchantClient = Depends(get_merchant_client),
):
    """Report lines whose price or stock changed since they were added"""
    items = list(session.cart.state.items)
    if not items:
        return CartValidationView(items=[], items_changed=False)

    try:
        result = await client.validate_cart(items)
    except httpx.HTTPError as e:
        raise HTTPException(status_code=503, detail=f"Validation unavailable: {e}")

    return CartValidationView(**result)
