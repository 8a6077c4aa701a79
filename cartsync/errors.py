"""Cart synchronization errors"""

from typing import Optional


class CartSyncError(Exception):
    """Base exception for cart synchronization errors"""
    pass


class CartStoreError(CartSyncError):
    """A Cart Store read or write was rejected or could not be performed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StockExceededError(CartSyncError):
    """Requested quantity is above current stock (reject policy only)"""

    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class CartClosedError(CartSyncError):
    """Operation issued on a reconciler that has been closed"""
    pass


class CatalogError(CartSyncError):
    """The Product Catalog could not be reached"""
    pass
