"""System-level routes such as health checks."""

from __future__ import annotations

from fastapi import APIRouter

from src.config import settings
from src.services.cache.store import CacheStoreDependency

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Service banner used by smoke tests."""

    return {"message": "Catalog service"}


@router.get("/health")
async def health_check(store: CacheStoreDependency) -> dict[str, str]:
    """Health check endpoint with product cache connectivity check."""

    cache_status = "connected" if await store.ping() else "disconnected"

    return {
        "status": "healthy",
        "cache": cache_status,
        "cache_backend": settings.CACHE_BACKEND,
        "environment": settings.ENVIRONMENT,
    }
