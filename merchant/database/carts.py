"""Cart storage for the merchant"""

import logging
from datetime import datetime
from typing import Optional

from cartsync.models import CartLineItem
from cartsync.reducer import Action, AddItem, ClearCart, RemoveItem, SetQuantity, cart_reducer

from ..models.cart import Cart, CartLine
from ..models.product import Product
from .products import ProductDatabase, product_db

logger = logging.getLogger(__name__)


class CartDatabase:
    """In-memory cart storage, one cart per customer"""

    def __init__(self, products: ProductDatabase = product_db):
        self.products = products
        self.carts: dict[str, Cart] = {}

    def get_or_create_cart(self, customer_id: str) -> Cart:
        """Get existing cart or create an empty one"""
        cart = self.carts.get(customer_id)
        if cart is None:
            now = datetime.utcnow()
            cart = Cart(customer_id=customer_id, created_at=now, updated_at=now)
            self.carts[customer_id] = cart
        return cart

    def _dispatch(self, cart: Cart, action: Action) -> Cart:
        cart.state = cart_reducer(cart.state, action)
        cart.updated_at = datetime.utcnow()
        return cart

    def add_item(self, customer_id: str, product: Product, quantity: int = 1) -> Cart:
        """Add units of a product at its current price"""
        cart = self.get_or_create_cart(customer_id)
        return self._dispatch(
            cart,
            AddItem(product_id=product.id, quantity=quantity, unit_price=product.price),
        )

    def update_item_quantity(
        self,
        customer_id: str,
        product_id: str,
        quantity: int,
        unit_price: Optional[float] = None,
    ) -> Optional[Cart]:
        """Update item quantity in cart. Returns None if the item is not in the cart."""
        cart = self.get_or_create_cart(customer_id)
        if not cart.state.is_in_cart(product_id):
            return None

        return self._dispatch(
            cart,
            SetQuantity(product_id=product_id, quantity=quantity, unit_price=unit_price),
        )

    def remove_item(self, customer_id: str, product_id: str) -> Cart:
        """Remove an item from the cart; absent items leave it unchanged"""
        cart = self.get_or_create_cart(customer_id)
        return self._dispatch(cart, RemoveItem(product_id=product_id))

    def clear_cart(self, customer_id: str) -> Cart:
        """Clear all items from cart"""
        cart = self.get_or_create_cart(customer_id)
        return self._dispatch(cart, ClearCart())

    def merge_items(self, customer_id: str, lines: list[CartLine]) -> Cart:
        """
        Merge client-side lines into the customer's cart.

        Quantities add up per product and are clamped to current stock; lines
        for unknown or out-of-stock products are skipped.
        """
        cart = self.get_or_create_cart(customer_id)

        for line in lines:
            info = self.products.lookup(line.product_id)
            if info is None:
                logger.warning(f"Skipping unknown product {line.product_id} in merge for {customer_id}")
                continue

            existing = cart.state.get_cart_item(line.product_id)
            current = existing.quantity if existing else 0
            target = min(current + line.quantity, info.effective_stock)
            if target > current:
                self._dispatch(
                    cart,
                    AddItem(product_id=line.product_id, quantity=target - current, unit_price=info.price),
                )

        return cart

    def validate_items(self, lines: list[CartLine]) -> tuple[list[CartLineItem], bool, list[str]]:
        """
        Re-check lines against the current catalog.

        Returns:
            Tuple of (corrected lines, whether anything changed, dropped product ids)
        """
        validated: list[CartLineItem] = []
        removed: list[str] = []
        changed = False

        for line in lines:
            info = self.products.lookup(line.product_id)
            quantity = min(line.quantity, info.effective_stock) if info else 0
            if info is None or quantity <= 0:
                removed.append(line.product_id)
                changed = True
                continue

            if quantity != line.quantity or (line.unit_price is not None and line.unit_price != info.price):
                changed = True

            validated.append(
                CartLineItem(product_id=line.product_id, quantity=quantity, unit_price=info.price)
            )

        return validated, changed, removed


# Singleton instance
cart_db = CartDatabase()
