"""Cart API routes for the merchant"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Header

from ..models.cart import (
    AddToCartRequest,
    UpdateCartItemRequest,
    CartLinesRequest,
    CartResponse,
    CartValidationResponse,
)
from ..database.carts import cart_db
from ..database.products import product_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def get_customer_id(x_customer_id: Optional[str] = Header(None)) -> str:
    """Extract the signed-in customer's identity from the request"""
    if not x_customer_id:
        raise HTTPException(status_code=401, detail="Customer identity required")
    return x_customer_id


@router.get("", response_model=CartResponse)
async def get_cart(customer_id: str = Depends(get_customer_id)):
    """Get the customer's cart, creating an empty one on first access"""
    cart = cart_db.get_or_create_cart(customer_id)
    return CartResponse.from_cart(cart)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    customer_id: str = Depends(get_customer_id),
):
    """Add an item to the cart"""
    product = product_db.get_product(request.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    existing = cart_db.get_or_create_cart(customer_id).state.get_cart_item(product.id)
    wanted = request.quantity + (existing.quantity if existing else 0)
    if not product.in_stock or wanted > product.stock_quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock. Available: {product.stock_quantity}",
        )

    updated_cart = cart_db.add_item(customer_id, product, request.quantity)
    logger.info(f"Cart {customer_id}: +{request.quantity} x {product.id}")
    return CartResponse.from_cart(
        updated_cart,
        message=f"Added {request.quantity}x {product.name} to cart",
    )


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    customer_id: str = Depends(get_customer_id),
):
    """Update item quantity in cart"""
    product = product_db.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if request.quantity > 0 and (not product.in_stock or request.quantity > product.stock_quantity):
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock. Available: {product.stock_quantity}",
        )

    updated_cart = cart_db.update_item_quantity(
        customer_id, product_id, request.quantity, unit_price=product.price
    )
    if not updated_cart:
        raise HTTPException(status_code=404, detail="Item not in cart")

    return CartResponse.from_cart(updated_cart, message="Cart updated")


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    customer_id: str = Depends(get_customer_id),
):
    """Remove an item from the cart"""
    updated_cart = cart_db.remove_item(customer_id, product_id)
    return CartResponse.from_cart(updated_cart, message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(customer_id: str = Depends(get_customer_id)):
    """Clear all items from cart"""
    updated_cart = cart_db.clear_cart(customer_id)
    return CartResponse.from_cart(updated_cart, message="Cart cleared")


@router.post("/merge", response_model=CartResponse)
async def merge_cart(
    request: CartLinesRequest,
    customer_id: str = Depends(get_customer_id),
):
    """Merge a guest cart into the customer's cart"""
    updated_cart = cart_db.merge_items(customer_id, request.items)
    return CartResponse.from_cart(updated_cart, message="Cart merged")


@router.post("/validate", response_model=CartValidationResponse)
async def validate_cart(request: CartLinesRequest):
    """Re-check cart lines against current price and stock"""
    items, items_changed, removed = cart_db.validate_items(request.items)
    return CartValidationResponse(items=items, items_changed=items_changed, removed=removed)
