"""
Merchant Application

Product catalog and the server-side Cart Store of record for signed-in
shoppers.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import products_router, cart_router

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG", "").lower() in ("1", "true") else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Merchant starting up...")
    yield
    logger.info("Merchant shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Merchant",
    description="Product catalog and cart store of record",
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

# Include API routers
app.include_router(products_router)
app.include_router(cart_router)


@app.get("/")
async def home():
    """Merchant API index"""
    return {
        "message": "Merchant API",
        "docs": "/docs",
        "endpoints": {
            "products": "/api/products",
            "cart": "/api/cart",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "merchant"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "merchant.main:app",
        host="0.0.0.0",
        port=int(os.getenv("MERCHANT_PORT", "8001")),
        reload=True,
    )
