"""Cart API models for the merchant"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from cartsync.models import CartLineItem, CartState


class Cart(BaseModel):
    """A customer's cart as held by the store of record"""
    customer_id: str
    state: CartState = CartState()
    currency: str = "NGN"
    created_at: datetime
    updated_at: datetime


class AddToCartRequest(BaseModel):
    """Request to add item to cart"""
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(BaseModel):
    """Request to update cart item quantity (0 removes the item)"""
    quantity: int = Field(ge=0)


class CartLine(BaseModel):
    """Line submitted by a client for merge or validation"""
    product_id: str
    quantity: int = Field(gt=0)
    unit_price: Optional[float] = None


class CartLinesRequest(BaseModel):
    """Request carrying client-side cart lines"""
    items: list[CartLine]


class CartResponse(BaseModel):
    """Cart API response"""
    customer_id: str
    items: list[CartLineItem]
    total: float
    item_count: int
    currency: str = "NGN"
    updated_at: datetime
    message: Optional[str] = None

    @classmethod
    def from_cart(cls, cart: Cart, message: Optional[str] = None) -> "CartResponse":
        return cls(
            customer_id=cart.customer_id,
            items=list(cart.state.items),
            total=cart.state.total,
            item_count=cart.state.item_count,
            currency=cart.currency,
            updated_at=cart.updated_at,
            message=message,
        )


class CartValidationResponse(BaseModel):
    """Lines re-checked against the current catalog"""
    items: list[CartLineItem]
    items_changed: bool
    removed: list[str] = []
