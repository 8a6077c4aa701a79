# Cart consistency core
# Optimistic cart updates reconciled against a Product Catalog and a Cart Store

from .catalog import CatalogLookup, StaticCatalog
from .errors import CartClosedError, CartStoreError, CartSyncError, CatalogError, StockExceededError
from .models import CartIdentity, CartLineItem, CartState, IdentityKind, ProductInfo
from .policies import MergePolicy, StockPolicy, resolve_quantity
from .reconciler import CartReconciler
from .reducer import cart_reducer
from .stores import CartStore, LocalCartStore

__all__ = [
    "CatalogLookup",
    "StaticCatalog",
    "CartClosedError",
    "CartStoreError",
    "CartSyncError",
    "CatalogError",
    "StockExceededError",
    "CartIdentity",
    "CartLineItem",
    "CartState",
    "IdentityKind",
    "ProductInfo",
    "MergePolicy",
    "StockPolicy",
    "resolve_quantity",
    "CartReconciler",
    "cart_reducer",
    "CartStore",
    "LocalCartStore",
]
