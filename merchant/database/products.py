"""Product catalog storage for the merchant"""

from typing import Optional

from cartsync.models import ProductInfo

from ..models.product import Product, ProductCategory

# Seed catalog
PRODUCTS: dict[str, Product] = {
    "sku-001": Product(
        id="sku-001",
        name="Wireless Earbuds",
        description="Premium wireless earbuds with noise cancellation and crystal-clear sound quality.",
        brand="SoundWave",
        price=1299.00,
        original_price=1499.00,
        category=ProductCategory.AUDIO,
        stock_quantity=15,
    ),
    "sku-002": Product(
        id="sku-002",
        name='65" 4K Smart TV',
        description="65-inch 4K smart TV with HDR, built-in streaming apps and voice control.",
        brand="VisionPlus",
        price=11999.00,
        original_price=13999.00,
        category=ProductCategory.ELECTRONICS,
        stock_quantity=5,
    ),
    "sku-003": Product(
        id="sku-003",
        name="Professional Blender",
        description="High-performance blender with variable speed control and pulse feature.",
        brand="KitchenPro",
        price=2499.00,
        category=ProductCategory.APPLIANCES,
        stock_quantity=8,
    ),
    "sku-004": Product(
        id="sku-004",
        name="Ergonomic Office Chair",
        description="Adjustable lumbar support, breathable mesh back and cushioned seat.",
        brand="ComfortPlus",
        price=1899.00,
        category=ProductCategory.FURNITURE,
        stock_quantity=12,
    ),
    "sku-005": Product(
        id="sku-005",
        name="Smartphone 5G",
        description="5G smartphone with professional-grade camera system and all-day battery.",
        brand="PhoneTech",
        price=9999.00,
        category=ProductCategory.ELECTRONICS,
        stock_quantity=20,
    ),
    "sku-006": Product(
        id="sku-006",
        name="Wireless Charging Pad",
        description="Fast wireless charging pad compatible with all Qi-enabled devices.",
        brand="PowerUp",
        price=499.00,
        category=ProductCategory.ACCESSORIES,
        stock_quantity=30,
    ),
    "sku-007": Product(
        id="sku-007",
        name="Smart Home Security Camera",
        description="1080p HD camera with night vision, motion detection and real-time alerts.",
        brand="SecureView",
        price=1699.00,
        category=ProductCategory.SMART_HOME,
        stock_quantity=15,
    ),
    "sku-008": Product(
        id="sku-008",
        name="Premium Coffee Maker",
        description="Customizable brew strength with a built-in grinder.",
        brand="BrewMaster",
        price=1999.00,
        category=ProductCategory.APPLIANCES,
        stock_quantity=10,
    ),
}


class ProductDatabase:
    """In-memory product database for the merchant"""

    def __init__(self, products: Optional[dict[str, Product]] = None):
        source = PRODUCTS if products is None else products
        self.products = {pid: p.model_copy() for pid, p in source.items()}

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID"""
        return self.products.get(product_id)

    def lookup(self, product_id: str) -> Optional[ProductInfo]:
        """Price, stock and availability of a product, or None if unknown"""
        product = self.products.get(product_id)
        return product.to_info() if product else None

    def search_products(
        self,
        query: Optional[str] = None,
        category: Optional[ProductCategory] = None,
        in_stock_only: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Product], int]:
        """
        Search products with filters.

        Returns:
            Tuple of (matching products, total count)
        """
        results = list(self.products.values())

        if query:
            query_lower = query.lower()
            results = [
                p for p in results
                if query_lower in p.name.lower() or query_lower in p.description.lower()
            ]

        if category:
            results = [p for p in results if p.category == category]

        if in_stock_only:
            results = [p for p in results if p.in_stock and p.stock_quantity > 0]

        total = len(results)
        results = results[offset : offset + limit]

        return results, total

    def set_stock(self, product_id: str, stock_quantity: int) -> bool:
        """
        Set a product's stock level.

        Returns:
            True if the product exists
        """
        product = self.products.get(product_id)
        if not product:
            return False

        product.stock_quantity = max(stock_quantity, 0)
        product.in_stock = product.stock_quantity > 0
        return True


# Singleton instance
product_db = ProductDatabase()
