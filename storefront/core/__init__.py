# Core modules

from .config import settings
from .session import SessionManager, ShopperSession

__all__ = ["settings", "SessionManager", "ShopperSession"]
