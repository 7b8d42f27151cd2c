"""
Configuration settings for the application.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_TAXONOMY_SEED = Path(__file__).resolve().parent / "data" / "taxonomy.json"


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Document store
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")
    FIRESTORE_PROJECT: str | None = os.getenv("FIRESTORE_PROJECT")
    FIRESTORE_DATABASE: str = os.getenv("FIRESTORE_DATABASE", "(default)")
    PRODUCTS_COLLECTION: str = os.getenv("PRODUCTS_COLLECTION", "products")
    TAXONOMY_COLLECTION: str = os.getenv("TAXONOMY_COLLECTION", "categories")
    TAXONOMY_DOCUMENT: str = os.getenv("TAXONOMY_DOCUMENT", "all")
    TAXONOMY_SEED_FILE: str = os.getenv(
        "TAXONOMY_SEED_FILE",
        str(_DEFAULT_TAXONOMY_SEED),
    )
    STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))

    # Listing / pagination
    LISTING_DEFAULT_PAGE_SIZE: int = int(os.getenv("LISTING_DEFAULT_PAGE_SIZE", "20"))
    LISTING_MAX_PAGE_SIZE: int = int(os.getenv("LISTING_MAX_PAGE_SIZE", "100"))
    CATEGORY_DEFAULT_PAGE_SIZE: int = int(
        os.getenv("CATEGORY_DEFAULT_PAGE_SIZE", "24")
    )
    ADMIN_DEFAULT_PAGE_SIZE: int = int(os.getenv("ADMIN_DEFAULT_PAGE_SIZE", "24"))
    ADMIN_MAX_PAGE_SIZE: int = int(os.getenv("ADMIN_MAX_PAGE_SIZE", "50"))
    # "end" returns an empty terminal page, "restart" ignores the cursor
    STALE_CURSOR_POLICY: str = os.getenv("STALE_CURSOR_POLICY", "end")
    RECOMMENDED_LIMIT: int = int(os.getenv("RECOMMENDED_LIMIT", "24"))

    # Taxonomy maintenance
    TAXONOMY_MAX_ATTEMPTS: int = int(os.getenv("TAXONOMY_MAX_ATTEMPTS", "5"))

    # Search
    SEARCH_DEFAULT_LIMIT: int = int(os.getenv("SEARCH_DEFAULT_LIMIT", "10"))
    SEARCH_MAX_LIMIT: int = int(os.getenv("SEARCH_MAX_LIMIT", "50"))
    SEARCH_MAX_OFFSET: int = int(os.getenv("SEARCH_MAX_OFFSET", "500"))
    SEARCH_RATE_LIMIT: int = int(os.getenv("SEARCH_RATE_LIMIT", "30"))
    SEARCH_RATE_WINDOW_SECONDS: int = int(
        os.getenv("SEARCH_RATE_WINDOW_SECONDS", "60")
    )
    SEARCH_RATE_KEY_PREFIX: str = os.getenv(
        "SEARCH_RATE_KEY_PREFIX",
        "ratelimit:search:",
    )

    # Redis
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Image storage (product images and brand logos)
    IMAGE_BUCKET: str | None = os.getenv("IMAGE_BUCKET")

    # Decoder / LLM settings
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # Admin auth
    AUTH_REQUIRED: bool = os.getenv("AUTH_REQUIRED", "false").lower() == "true"
    ADMIN_JWT_SECRET: str | None = os.getenv("ADMIN_JWT_SECRET")
    JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE")
    JWT_ISSUER: str | None = os.getenv("JWT_ISSUER")

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def decoder_enabled(self) -> bool:
        """Return True when a decoder client can be initialized."""
        return bool(self.OPENAI_API_KEY)

    @property
    def image_storage_enabled(self) -> bool:
        """Return True when product images live in a configured bucket."""
        return bool(self.IMAGE_BUCKET)

    def __init__(self):
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"store_backend={self.STORE_BACKEND}, log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
