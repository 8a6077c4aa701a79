"""
Cart reducer

Pure state transitions over CartState. Every holder of cart state (the
reconciler, the device-local store and the merchant's server store) goes
through `cart_reducer`, so the line-item invariants are enforced in one place:

- a product appears at most once; adding it again increments the quantity
- a quantity of zero or less removes the line
- totals are derived from the items, never set

Stock clamping is not done here; callers resolve quantities against the
catalog before dispatching.
"""

import logging
from typing import Optional, Union

from pydantic import BaseModel, Field

from .models import CartLineItem, CartState

logger = logging.getLogger(__name__)


class CartAction(BaseModel):
    """Base class for cart actions"""

    class Config:
        frozen = True


class AddItem(CartAction):
    """Insert a line or increment an existing one, capturing the unit price"""
    product_id: str
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)


class SetQuantity(CartAction):
    """Set the quantity of an existing line (0 or less removes it)"""
    product_id: str
    quantity: int
    unit_price: Optional[float] = Field(default=None, ge=0)


class RemoveItem(CartAction):
    """Drop a line if present"""
    product_id: str


class ClearCart(CartAction):
    """Empty the cart"""
    pass


class LoadCart(CartAction):
    """Replace the cart wholesale with authoritative items"""
    items: tuple[CartLineItem, ...] = ()


class SetLoading(CartAction):
    """Toggle the loading flag"""
    loading: bool


Action = Union[AddItem, SetQuantity, RemoveItem, ClearCart, LoadCart, SetLoading]


def _without(items: tuple[CartLineItem, ...], product_id: str) -> tuple[CartLineItem, ...]:
    return tuple(item for item in items if item.product_id != product_id)


def cart_reducer(state: CartState, action: Action) -> CartState:
    """Apply an action to a cart state and return the new state"""
    logger.debug(f"Cart action: {type(action).__name__}")

    if isinstance(action, AddItem):
        existing = state.get_cart_item(action.product_id)
        if existing:
            items = tuple(
                item.model_copy(update={
                    "quantity": item.quantity + action.quantity,
                    "unit_price": action.unit_price,
                })
                if item.product_id == action.product_id else item
                for item in state.items
            )
        else:
            items = state.items + (
                CartLineItem(
                    product_id=action.product_id,
                    quantity=action.quantity,
                    unit_price=action.unit_price,
                ),
            )
        return state.model_copy(update={"items": items})

    if isinstance(action, SetQuantity):
        existing = state.get_cart_item(action.product_id)
        if not existing:
            return state
        if action.quantity <= 0:
            return state.model_copy(update={"items": _without(state.items, action.product_id)})

        update = {"quantity": action.quantity}
        if action.unit_price is not None:
            update["unit_price"] = action.unit_price
        items = tuple(
            item.model_copy(update=update) if item.product_id == action.product_id else item
            for item in state.items
        )
        return state.model_copy(update={"items": items})

    if isinstance(action, RemoveItem):
        if not state.is_in_cart(action.product_id):
            return state
        return state.model_copy(update={"items": _without(state.items, action.product_id)})

    if isinstance(action, ClearCart):
        return state.model_copy(update={"items": ()})

    if isinstance(action, LoadCart):
        return CartState(items=action.items, loading=False)

    if isinstance(action, SetLoading):
        return state.model_copy(update={"loading": action.loading})

    return state
