"""
Storefront Application

Shopper sessions and cart operations for a UI. Guest carts live on the
device; signed-in carts live in the merchant's cart store.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import sessions_router, auth_router
from .routes.deps import close_services
from .core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Merchant URL: {settings.merchant_base_url}")
    logger.info(f"Stock policy: {settings.stock_policy.value}, merge policy: {settings.default_merge_policy.value}")

    yield

    logger.info("Storefront shutting down...")
    await close_services()


# Create FastAPI app
app = FastAPI(
    title="Storefront",
    description="Shopper sessions and cart reconciliation",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sessions_router)
app.include_router(auth_router)


@app.get("/")
async def home():
    """Storefront API index"""
    return {
        "message": "Storefront API",
        "docs": "/docs",
        "endpoints": {
            "sessions": "/api/sessions",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront",
        "merchant_configured": bool(settings.merchant_base_url),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
