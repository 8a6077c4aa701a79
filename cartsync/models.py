"""Cart data models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class IdentityKind(str, Enum):
    """Who owns a cart"""
    GUEST = "guest"
    AUTHENTICATED = "authenticated"


class CartIdentity(BaseModel):
    """Key of a cart in a Cart Store (device id for guests, user id otherwise)"""
    kind: IdentityKind
    id: str = Field(min_length=1)

    class Config:
        frozen = True

    @classmethod
    def guest(cls, device_id: str) -> "CartIdentity":
        return cls(kind=IdentityKind.GUEST, id=device_id)

    @classmethod
    def user(cls, user_id: str) -> "CartIdentity":
        return cls(kind=IdentityKind.AUTHENTICATED, id=user_id)

    @property
    def is_guest(self) -> bool:
        return self.kind == IdentityKind.GUEST


class ProductInfo(BaseModel):
    """Catalog view of a product at lookup time"""
    product_id: str
    price: float = Field(ge=0)
    stock_count: int = Field(ge=0)
    available: bool = True
    name: Optional[str] = None

    class Config:
        frozen = True

    @property
    def effective_stock(self) -> int:
        """Units that may be put in a cart right now"""
        return self.stock_count if self.available else 0


class CartLineItem(BaseModel):
    """One product row of a cart"""
    product_id: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)

    class Config:
        frozen = True

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class CartState(BaseModel):
    """
    Immutable snapshot of a cart.

    `total` and `item_count` are derived from `items` on every read and are
    never stored on their own.
    """
    items: tuple[CartLineItem, ...] = ()
    loading: bool = False

    class Config:
        frozen = True

    @computed_field
    @property
    def total(self) -> float:
        return sum(item.line_total for item in self.items)

    @computed_field
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def is_in_cart(self, product_id: str) -> bool:
        return self.get_cart_item(product_id) is not None

    def get_cart_item(self, product_id: str) -> Optional[CartLineItem]:
        return next(
            (item for item in self.items if item.product_id == product_id),
            None,
        )

    def same_items(self, other: "CartState") -> bool:
        """Compare line items only, ignoring the loading flag"""
        return self.items == other.items
