"""Product Catalog Lookup port"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .models import ProductInfo


class CatalogLookup(ABC):
    """Read-only source of current price, stock and availability"""

    @abstractmethod
    async def get_product(self, product_id: str) -> Optional[ProductInfo]:
        """Return the product, or None when the catalog does not know it"""
        pass


class StaticCatalog(CatalogLookup):
    """Catalog backed by a fixed set of products"""

    def __init__(self, products: Iterable[ProductInfo] = ()):
        self.products: dict[str, ProductInfo] = {p.product_id: p for p in products}

    async def get_product(self, product_id: str) -> Optional[ProductInfo]:
        return self.products.get(product_id)

    def put(self, product: ProductInfo) -> None:
        """Add or replace a product"""
        self.products[product.product_id] = product
