"""Session management for shoppers"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from cartsync.catalog import CatalogLookup
from cartsync.models import CartIdentity, CartState
from cartsync.policies import MergePolicy, StockPolicy
from cartsync.reconciler import CartReconciler
from cartsync.stores import CartStore

logger = logging.getLogger(__name__)


@dataclass
class ShopperSession:
    """One shopper's browsing session and the cart it owns"""
    session_id: str
    device_id: str
    cart: CartReconciler
    created_at: datetime
    updated_at: datetime
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()


class SessionManager:
    """
    Manages shopper sessions.

    Guests keep their cart in `guest_store` under their device id; signed-in
    shoppers use `user_store` under their user id.
    """

    def __init__(
        self,
        catalog: CatalogLookup,
        guest_store: CartStore,
        user_store: CartStore,
        stock_policy: StockPolicy = StockPolicy.CLAMP,
        max_age_hours: int = 24,
    ):
        self.catalog = catalog
        self.guest_store = guest_store
        self.user_store = user_store
        self.stock_policy = stock_policy
        self.max_age_hours = max_age_hours
        self.sessions: dict[str, ShopperSession] = {}

    async def create_session(self, device_id: Optional[str] = None) -> ShopperSession:
        """Create a guest session and load its device cart"""
        await self.cleanup_old_sessions()

        now = datetime.utcnow()
        device_id = device_id or str(uuid.uuid4())
        cart = CartReconciler(
            catalog=self.catalog,
            store=self.guest_store,
            identity=CartIdentity.guest(device_id),
            stock_policy=self.stock_policy,
        )
        cart.start()
        await cart.wait_ready()

        session = ShopperSession(
            session_id=str(uuid.uuid4()),
            device_id=device_id,
            cart=cart,
            created_at=now,
            updated_at=now,
        )
        self.sessions[session.session_id] = session
        logger.info(f"Session {session.session_id} created for device {device_id}")
        return session

    def get_session(self, session_id: str) -> Optional[ShopperSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    async def login(
        self,
        session: ShopperSession,
        user_id: str,
        merge_policy: MergePolicy = MergePolicy.DISCARD,
    ) -> CartState:
        """Switch the session's cart to the signed-in user's cart"""
        state = await session.cart.switch_identity(
            CartIdentity.user(user_id), self.user_store, merge_policy
        )
        session.user_id = user_id
        session.touch()
        return state

    async def logout(self, session: ShopperSession) -> CartState:
        """Switch the session back to the device's guest cart"""
        state = await session.cart.switch_identity(
            CartIdentity.guest(session.device_id), self.guest_store, MergePolicy.DISCARD
        )
        session.user_id = None
        session.touch()
        return state

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and stop its cart"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.cart.close()
        return True

    async def cleanup_old_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Remove sessions idle for longer than max_age_hours"""
        max_age_hours = self.max_age_hours if max_age_hours is None else max_age_hours
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            await self.delete_session(sid)
        return len(old_sessions)

    async def close(self) -> None:
        """Stop every session's cart"""
        for sid in list(self.sessions):
            await self.delete_session(sid)
