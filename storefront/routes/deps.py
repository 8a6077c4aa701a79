"""Service dependencies for the storefront routes"""

from typing import Optional

from cartsync.stores import LocalCartStore

from ..core.config import settings
from ..core.session import SessionManager
from ..services.merchant_client import MerchantClient, MerchantCatalog, MerchantCartStore

# Initialize services (overridable through app.dependency_overrides)
merchant_client: Optional[MerchantClient] = None
session_manager: Optional[SessionManager] = None


def get_merchant_client() -> MerchantClient:
    """Get or create merchant client"""
    global merchant_client
    if merchant_client is None:
        merchant_client = MerchantClient(
            merchant_base_url=settings.merchant_base_url,
            timeout=settings.request_timeout,
        )
    return merchant_client


def get_session_manager() -> SessionManager:
    """Get or create the session manager"""
    global session_manager
    if session_manager is None:
        client = get_merchant_client()
        session_manager = SessionManager(
            catalog=MerchantCatalog(client),
            guest_store=LocalCartStore(settings.guest_cart_dir),
            user_store=MerchantCartStore(client),
            stock_policy=settings.stock_policy,
            max_age_hours=settings.session_max_age_hours,
        )
    return session_manager


async def close_services() -> None:
    """Stop sessions and close the merchant client"""
    global merchant_client, session_manager
    if session_manager is not None:
        await session_manager.close()
        session_manager = None
    if merchant_client is not None:
        await merchant_client.close()
        merchant_client = None
