"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.routes import include_api_routes
from src.config import settings
from src.services.cache.store import get_cache_store
from src.services.catalog.errors import CatalogServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""

    store = get_cache_store()
    try:
        await store.connect()
    except Exception:
        # The catalog still serves from the repository without a cache
        logger.exception("Failed connecting the product cache on startup")

    yield

    await store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Catalog Service",
        description="Per-caller product visibility and pricing resolution",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    _register_exception_handlers(app)
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


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CatalogServiceError)
    async def _catalog_error(_: Request, exc: CatalogServiceError) -> JSONResponse:
        logger.error(
            "[catalog-error] %s",
            exc.message,
            extra={
                "operation_id": exc.operation_id,
                "original_error": exc.original_error,
                "context": exc.context,
            },
        )
        return JSONResponse(status_code=exc.status_code, content=exc.payload)
