"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.routes import include_api_routes
from src.config import settings
from src.services.catalog.taxonomy import TaxonomyRepository
from src.services.ratelimit.sliding_window import get_redis_client
from src.services.storage.document_store import get_document_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    if settings.STORE_BACKEND.lower() == "memory":
        # the in-memory store starts empty; give it the bundled taxonomy
        repository = TaxonomyRepository(get_document_store())
        await repository.seed_if_missing()
    else:
        logger.info("Using %s document store", settings.STORE_BACKEND)

    yield

    try:
        await get_redis_client().aclose()
    except Exception:
        logger.debug("Redis client was not open at shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Cycling Gear Catalog",
        description="Product catalog, search and pagination for the cycling gear storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    register_exception_handlers(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
