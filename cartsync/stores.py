"""
Cart Store port and device-local implementation.

The Cart Store holds the authoritative CartState for an identity. The server
side store for signed-in shoppers is reached over HTTP (see
storefront.services.merchant_client); guests keep their cart on the device,
one JSON document per identity.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Union

from .errors import CartStoreError
from .models import CartIdentity, CartLineItem, CartState
from .reducer import AddItem, ClearCart, RemoveItem, SetQuantity, cart_reducer

logger = logging.getLogger(__name__)


class CartStore(ABC):
    """Persistence boundary for carts. Every method may raise CartStoreError."""

    @abstractmethod
    async def load_cart(self, identity: CartIdentity) -> CartState:
        pass

    @abstractmethod
    async def write_add(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        unit_price: float,
    ) -> None:
        pass

    @abstractmethod
    async def write_remove(self, identity: CartIdentity, product_id: str) -> None:
        pass

    @abstractmethod
    async def write_update_quantity(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        unit_price: Optional[float] = None,
    ) -> None:
        pass

    @abstractmethod
    async def write_clear(self, identity: CartIdentity) -> None:
        pass

    async def write_merge(self, identity: CartIdentity, items: Sequence[CartLineItem]) -> None:
        """
        Add several lines to the stored cart.

        Quantities are deltas already bounded by stock. Stores that can apply
        the lines in one request override this.
        """
        for item in items:
            await self.write_add(identity, item.product_id, item.quantity, item.unit_price)


class LocalCartStore(CartStore):
    """
    Device key-value cart storage.

    Each identity is stored as `<directory>/cart-<id>.json`. Writes read the
    stored document, apply the same reducer the reconciler uses and write it
    back whole.
    """

    KEY_PREFIX = "cart"

    def __init__(self, directory: Union[Path, str]):
        self.directory = Path(directory)

    def _path(self, identity: CartIdentity) -> Path:
        safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", identity.id)
        return self.directory / f"{self.KEY_PREFIX}-{safe_id}.json"

    def _read(self, identity: CartIdentity) -> CartState:
        path = self._path(identity)
        if not path.exists():
            return CartState()
        try:
            return CartState.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CartStoreError(f"Could not read cart {path.name}: {e}") from e

    def _write(self, identity: CartIdentity, state: CartState) -> None:
        path = self._path(identity)
        payload = {"items": [item.model_dump() for item in state.items]}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as e:
            raise CartStoreError(f"Could not write cart {path.name}: {e}") from e

    async def load_cart(self, identity: CartIdentity) -> CartState:
        return self._read(identity)

    async def write_add(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        unit_price: float,
    ) -> None:
        state = self._read(identity)
        self._write(
            identity,
            cart_reducer(state, AddItem(product_id=product_id, quantity=quantity, unit_price=unit_price)),
        )

    async def write_remove(self, identity: CartIdentity, product_id: str) -> None:
        state = self._read(identity)
        self._write(identity, cart_reducer(state, RemoveItem(product_id=product_id)))

    async def write_update_quantity(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        unit_price: Optional[float] = None,
    ) -> None:
        state = self._read(identity)
        self._write(
            identity,
            cart_reducer(state, SetQuantity(product_id=product_id, quantity=quantity, unit_price=unit_price)),
        )

    async def write_clear(self, identity: CartIdentity) -> None:
        state = self._read(identity)
        self._write(identity, cart_reducer(state, ClearCart()))

