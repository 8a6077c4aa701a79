"""Storefront Configuration"""

from pydantic_settings import BaseSettings
from functools import lru_cache

from cartsync.policies import MergePolicy, StockPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Storefront"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Merchant Configuration
    merchant_base_url: str = "http://localhost:8001"
    request_timeout: float = 30.0

    # Cart Configuration
    guest_cart_dir: str = ".carts"
    stock_policy: StockPolicy = StockPolicy.CLAMP
    default_merge_policy: MergePolicy = MergePolicy.DISCARD
    session_max_age_hours: int = 24

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
