# Storefront Routes

from .sessions import router as sessions_router
from .auth import router as auth_router

__all__ = ["sessions_router", "auth_router"]
