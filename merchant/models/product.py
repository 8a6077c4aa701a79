"""Product models for the merchant"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum

from cartsync.models import ProductInfo


class ProductCategory(str, Enum):
    AUDIO = "audio"
    ELECTRONICS = "electronics"
    APPLIANCES = "appliances"
    FURNITURE = "furniture"
    ACCESSORIES = "accessories"
    SMART_HOME = "smart-home"


class Product(BaseModel):
    """Product in the catalog"""
    id: str
    name: str
    description: str
    brand: Optional[str] = None
    price: float = Field(gt=0)
    original_price: Optional[float] = None
    currency: str = "NGN"
    category: ProductCategory
    image_url: Optional[str] = None
    in_stock: bool = True
    stock_quantity: int = Field(ge=0, default=100)

    class Config:
        from_attributes = True

    def to_info(self) -> ProductInfo:
        """Catalog lookup view used by cart operations"""
        return ProductInfo(
            product_id=self.id,
            price=self.price,
            stock_count=self.stock_quantity,
            available=self.in_stock,
            name=self.name,
        )


class ProductSearchResponse(BaseModel):
    """Response from product search"""
    products: list[Product]
    total: int
    limit: int
    offset: int
