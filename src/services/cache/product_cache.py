"""Read-through cache helpers for raw catalog products."""

from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from src.config import settings
from src.models.catalog import CatalogFilters
from src.models.product import Product
from src.services.cache.store import CacheStore

logger = logging.getLogger(__name__)

_PRODUCT_LIST = TypeAdapter(list[Product])

CATALOG_PREFIX = "products:catalog"
DETAILS_PREFIX = "products:details"
CODE_PREFIX = "products:code"


def catalog_key(filters: CatalogFilters) -> str:
    """Cache key for a list query, derived from the effective filters."""

    status = filters.status.value if filters.status else "all"
    return ":".join(
        [
            CATALOG_PREFIX,
            filters.organization_id or "all",
            status,
            filters.category or "all",
            filters.product_year or "all",
            filters.order_by or "default",
        ]
    )


def details_key(product_id: str) -> str:
    return f"{DETAILS_PREFIX}:{product_id}"


def code_key(code: str) -> str:
    return f"{CODE_PREFIX}:{code}"


class ProductCache:
    """Typed wrapper storing Products in a CacheStore."""

    def __init__(
        self,
        store: CacheStore,
        *,
        list_ttl_seconds: int | None = None,
        item_ttl_seconds: int | None = None,
    ) -> None:
        self._store = store
        self._list_ttl = list_ttl_seconds or settings.PRODUCT_LIST_CACHE_TTL_SECONDS
        self._item_ttl = item_ttl_seconds or settings.PRODUCT_DETAIL_CACHE_TTL_SECONDS

    async def get_list(self, key: str) -> list[Product] | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return _PRODUCT_LIST.validate_python(raw)
        except ValidationError:
            logger.warning("Discarding malformed cache entry %s", key, exc_info=True)
            await self._store.invalidate(key)
            return None

    async def set_list(self, key: str, products: list[Product]) -> None:
        await self._store.set(
            key,
            _PRODUCT_LIST.dump_python(products, mode="json"),
            self._list_ttl,
        )

    async def get_item(self, key: str) -> Product | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return Product.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed cache entry %s", key, exc_info=True)
            await self._store.invalidate(key)
            return None

    async def set_item(self, key: str, product: Product) -> None:
        await self._store.set(key, product.model_dump(mode="json"), self._item_ttl)

    async def invalidate_product(self, product_id: str, code: str | None = None) -> None:
        """Drop the per-item entries of a product after it changed.

        List entries are left to expire on their own TTL.
        """
        await self._store.invalidate(details_key(product_id))
        if code:
            await self._store.invalidate(code_key(code))
