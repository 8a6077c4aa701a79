# Merchant Models

from .product import Product, ProductCategory, ProductSearchResponse
from .cart import (
    Cart,
    AddToCartRequest,
    UpdateCartItemRequest,
    CartLine,
    CartLinesRequest,
    CartResponse,
    CartValidationResponse,
)

__all__ = [
    "Product",
    "ProductCategory",
    "ProductSearchResponse",
    "Cart",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartLine",
    "CartLinesRequest",
    "CartResponse",
    "CartValidationResponse",
]
