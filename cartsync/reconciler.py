"""
Cart Reconciliation Core

Mediates between cart actions from a UI, the Product Catalog and a Cart
Store. Each cart is owned by one CartReconciler which runs a single worker
task; every operation is queued and handled in order:

1. resolve the request against the live catalog (stock clamp, price capture)
2. apply the change to local state and publish it to subscribers
3. await the matching Cart Store write
4. if the write fails, drop the optimistic state and reload from the store

Because one worker handles one command at a time, writes for a cart never
overlap and a reload can never interleave with another local mutation.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .catalog import CatalogLookup
from .errors import CartClosedError, CartStoreError, CatalogError
from .models import CartIdentity, CartLineItem, CartState
from .policies import MergePolicy, StockPolicy, resolve_quantity
from .reducer import (
    Action,
    AddItem,
    ClearCart,
    LoadCart,
    RemoveItem,
    SetLoading,
    SetQuantity,
    cart_reducer,
)
from .stores import CartStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[CartState], None]


class CartReconciler:
    """
    Owner of one cart's state.

    Usage:
        async with CartReconciler(catalog, store, CartIdentity.guest("device-1")) as cart:
            await cart.add("sku-1", 3)
            print(cart.state.total)
    """

    def __init__(
        self,
        catalog: CatalogLookup,
        store: CartStore,
        identity: CartIdentity,
        stock_policy: StockPolicy = StockPolicy.CLAMP,
    ):
        self.catalog = catalog
        self.store = store
        self.identity = identity
        self.stock_policy = stock_policy

        self._state = CartState(loading=True)
        self._confirmed = CartState()
        self._subscribers: list[Subscriber] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._ready: Optional[asyncio.Future] = None
        self._current: Optional[asyncio.Future] = None
        self._closed = False

    async def __aenter__(self) -> "CartReconciler":
        self.start()
        await self.wait_ready()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Start the worker and queue the initial load. Must run inside an event loop."""
        if self._closed:
            raise CartClosedError("Cart has been closed")
        if self._worker is not None:
            return

        loop = asyncio.get_running_loop()
        self._worker = loop.create_task(self._run())
        self._ready = loop.create_future()
        self._queue.put_nowait((self._load, (), self._ready))
        logger.debug(f"Cart worker started for {self.identity.kind.value}:{self.identity.id}")

    async def wait_ready(self) -> CartState:
        """Wait until the initial load has finished"""
        if self._ready is None:
            self.start()
        return await asyncio.shield(self._ready)

    async def close(self) -> None:
        """Stop the worker. Commands still queued fail with CartClosedError."""
        if self._closed:
            return
        self._closed = True

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass

        if self._current is not None and not self._current.done():
            self._current.set_exception(CartClosedError("Cart closed during operation"))

        while not self._queue.empty():
            _, _, future = self._queue.get_nowait()
            if not future.done():
                future.set_exception(CartClosedError("Cart has been closed"))

    @property
    def closed(self) -> bool:
        return self._closed

    # ==================== State access ====================

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return not self._state.loading

    def is_in_cart(self, product_id: str) -> bool:
        return self._state.is_in_cart(product_id)

    def get_cart_item(self, product_id: str) -> Optional[CartLineItem]:
        return self._state.get_cart_item(product_id)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with every new state. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ==================== Operations ====================

    async def add(self, product_id: str, quantity: int = 1) -> CartState:
        """Add units of a product, clamped to current stock"""
        return await self._submit(self._add, product_id, quantity)

    async def remove(self, product_id: str) -> CartState:
        """Remove a product; a no-op when it is not in the cart"""
        return await self._submit(self._remove, product_id)

    async def update_quantity(self, product_id: str, quantity: int) -> CartState:
        """Set the quantity of a line; 0 or less removes it"""
        return await self._submit(self._update_quantity, product_id, quantity)

    async def clear(self) -> CartState:
        """Empty the cart"""
        return await self._submit(self._clear)

    async def refresh(self) -> CartState:
        """Reload the cart from the Cart Store"""
        return await self._submit(self._load)

    async def switch_identity(
        self,
        identity: CartIdentity,
        store: CartStore,
        merge_policy: MergePolicy = MergePolicy.DISCARD,
    ) -> CartState:
        """Move the cart to a new identity and store (sign in / sign out)"""
        return await self._submit(self._switch_identity, identity, store, merge_policy)

    # ==================== Worker ====================

    async def _submit(self, handler: Callable[..., Awaitable[CartState]], *args: Any) -> CartState:
        if self._closed:
            raise CartClosedError("Cart has been closed")
        if self._worker is None:
            self.start()

        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((handler, args, future))
        return await future

    async def _run(self) -> None:
        while True:
            handler, args, future = await self._queue.get()
            self._current = future
            try:
                result = await handler(*args)
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._queue.task_done()

    def _apply(self, action: Action) -> None:
        new_state = cart_reducer(self._state, action)
        if new_state == self._state:
            return
        self._state = new_state
        for callback in list(self._subscribers):
            try:
                callback(new_state)
            except Exception:
                logger.exception("Cart subscriber failed")

    async def _persist(self, description: str, write: Awaitable[None]) -> CartState:
        try:
            await write
        except CartStoreError as e:
            logger.warning(f"Cart write failed ({description}): {e} - reloading from store")
            return await self._load()
        except Exception:
            logger.exception(f"Unexpected cart store failure ({description}) - reloading from store")
            return await self._load()

        self._confirmed = self._state
        return self._state

    # ==================== Handlers ====================

    async def _load(self) -> CartState:
        self._apply(SetLoading(loading=True))
        try:
            loaded = await self.store.load_cart(self.identity)
        except CartStoreError as e:
            logger.error(f"Failed to load cart for {self.identity.id}: {e}")
            loaded = self._confirmed
        except Exception:
            logger.exception(f"Unexpected failure loading cart for {self.identity.id}")
            loaded = self._confirmed
        else:
            self._confirmed = CartState(items=loaded.items)

        self._apply(LoadCart(items=loaded.items))
        logger.info(
            f"Cart loaded for {self.identity.kind.value}:{self.identity.id} "
            f"({self._state.item_count} items, total {self._state.total:.2f})"
        )
        return self._state

    async def _add(self, product_id: str, quantity: int) -> CartState:
        if quantity <= 0:
            logger.warning(f"Ignoring add of {quantity} x {product_id}")
            return self._state

        product = await self.catalog.get_product(product_id)
        if product is None:
            logger.warning(f"Product {product_id} not found in catalog - nothing added")
            return self._state

        existing = self._state.get_cart_item(product_id)
        current = existing.quantity if existing else 0
        target = resolve_quantity(
            product_id, current + quantity, product.effective_stock, self.stock_policy
        )

        if target == current:
            logger.info(f"Product {product_id} already at available stock ({product.effective_stock})")
            return self._state

        if target < current:
            # Stock fell below what the cart already holds
            return await self._set_line(product_id, target, product.price)

        delta = target - current
        if target < current + quantity:
            logger.info(f"Clamped {product_id} to stock: requested {current + quantity}, kept {target}")

        self._apply(AddItem(product_id=product_id, quantity=delta, unit_price=product.price))
        return await self._persist(
            f"add {product_id}",
            self.store.write_add(self.identity, product_id, delta, product.price),
        )

    async def _remove(self, product_id: str) -> CartState:
        if not self._state.is_in_cart(product_id):
            return self._state

        self._apply(RemoveItem(product_id=product_id))
        return await self._persist(
            f"remove {product_id}",
            self.store.write_remove(self.identity, product_id),
        )

    async def _update_quantity(self, product_id: str, quantity: int) -> CartState:
        if quantity <= 0:
            return await self._remove(product_id)

        if not self._state.is_in_cart(product_id):
            logger.warning(f"Cannot update {product_id}: not in cart")
            return self._state

        product = await self.catalog.get_product(product_id)
        if product is None:
            logger.warning(f"Cannot update {product_id}: not found in catalog")
            return self._state

        target = resolve_quantity(product_id, quantity, product.effective_stock, self.stock_policy)
        return await self._set_line(product_id, target, product.price)

    async def _set_line(self, product_id: str, quantity: int, unit_price: float) -> CartState:
        if quantity <= 0:
            return await self._remove(product_id)

        existing = self._state.get_cart_item(product_id)
        if existing and existing.quantity == quantity and existing.unit_price == unit_price:
            return self._state

        self._apply(SetQuantity(product_id=product_id, quantity=quantity, unit_price=unit_price))
        return await self._persist(
            f"update {product_id}",
            self.store.write_update_quantity(self.identity, product_id, quantity, unit_price),
        )

    async def _clear(self) -> CartState:
        self._apply(ClearCart())
        return await self._persist("clear", self.store.write_clear(self.identity))

    async def _switch_identity(
        self,
        identity: CartIdentity,
        store: CartStore,
        merge_policy: MergePolicy,
    ) -> CartState:
        previous_identity, previous_store = self.identity, self.store
        carried = self._state.items if previous_identity.is_guest else ()

        logger.info(
            f"Cart identity {previous_identity.kind.value}:{previous_identity.id} -> "
            f"{identity.kind.value}:{identity.id} (policy {merge_policy.value})"
        )

        self.identity, self.store = identity, store
        self._confirmed = CartState()
        self._apply(SetLoading(loading=True))

        carried_over = True
        if carried and merge_policy != MergePolicy.DISCARD:
            try:
                await self._carry_items(carried, replace=merge_policy == MergePolicy.REPLACE)
            except (CartStoreError, CatalogError) as e:
                logger.warning(f"Could not carry guest cart to {identity.id}: {e}")
                carried_over = False
            except Exception:
                logger.exception(f"Unexpected failure carrying guest cart to {identity.id}")
                carried_over = False

        state = await self._load()

        if previous_identity.is_guest and not identity.is_guest and carried_over:
            try:
                await previous_store.write_clear(previous_identity)
            except CartStoreError as e:
                logger.warning(f"Could not clear guest cart {previous_identity.id}: {e}")

        return state

    async def _carry_items(self, items: tuple[CartLineItem, ...], replace: bool) -> None:
        """Write guest lines into the current store, clamped to live stock"""
        held: dict[str, int] = {}
        if not replace:
            server_state = await self.store.load_cart(self.identity)
            held = {item.product_id: item.quantity for item in server_state.items}

        lines: list[CartLineItem] = []
        for item in items:
            product = await self.catalog.get_product(item.product_id)
            if product is None:
                logger.warning(f"Dropping {item.product_id} from guest cart: not in catalog")
                continue

            current = held.get(item.product_id, 0)
            target = min(current + item.quantity, product.effective_stock)
            if target > current:
                lines.append(
                    CartLineItem(product_id=item.product_id, quantity=target - current, unit_price=product.price)
                )
                held[item.product_id] = target

        # Every lookup succeeds before the stored cart is touched
        if replace:
            await self.store.write_clear(self.identity)
        if lines:
            await self.store.write_merge(self.identity, lines)
