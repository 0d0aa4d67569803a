"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Cache settings
    CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "redis")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX: str = os.getenv("CACHE_KEY_PREFIX", "catalog:")
    PRODUCT_LIST_CACHE_TTL_SECONDS: int = int(
        os.getenv("PRODUCT_LIST_CACHE_TTL_SECONDS", "60")
    )
    PRODUCT_DETAIL_CACHE_TTL_SECONDS: int = int(
        os.getenv("PRODUCT_DETAIL_CACHE_TTL_SECONDS", "90")
    )

    # Catalog settings
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "12"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))

    # Audience target lookups issued concurrently per filtering pass
    AUDIENCE_TARGET_CONCURRENCY: int = int(
        os.getenv("AUDIENCE_TARGET_CONCURRENCY", "8")
    )

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def uses_redis_cache(self) -> bool:
        """Return True when the product cache should be backed by Redis."""
        return self.CACHE_BACKEND.lower() == "redis"

    def __init__(self):
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
