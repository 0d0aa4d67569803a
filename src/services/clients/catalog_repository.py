"""Catalog repository abstractions and an in-memory registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date
from threading import RLock
from typing import Annotated

from fastapi import Depends

from src.models.catalog import CatalogFilters
from src.models.product import Product, ProductStatus

logger = logging.getLogger(__name__)


class CatalogRepository(ABC):
    """Read access to the source of truth for products."""

    @abstractmethod
    async def find_all(self, filters: CatalogFilters) -> list[Product]:
        """Return every product matching ``filters``."""

    @abstractmethod
    async def find_by_id(self, product_id: str) -> Product | None:
        """Return the product with the opaque id ``product_id``."""

    @abstractmethod
    async def find_by_business_id(self, business_id: str) -> Product | None:
        """Return the product with the human readable ``business_id``."""

    @abstractmethod
    async def find_by_code(self, code: str) -> Product | None:
        """Return the product with product code ``code``."""

    @abstractmethod
    async def find_by_category(self, category: str) -> list[Product]:
        """Return every product in ``category``."""

    @abstractmethod
    async def search(self, text: str) -> list[Product]:
        """Return products whose name, code or description mention ``text``."""

    @abstractmethod
    async def find_active_by_date(
        self,
        day: date,
        status: ProductStatus | None = None,
    ) -> list[Product]:
        """Return products whose date window contains ``day``."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of products."""

    @abstractmethod
    async def count_available(self) -> int:
        """Return the number of AVAILABLE products."""


def _ordered(products: list[Product], order_by: str) -> list[Product]:
    """Sort on a product field; products without a value always come last."""

    descending = order_by.startswith("-")
    field_name = order_by.lstrip("-")
    if field_name not in Product.model_fields:
        raise ValueError(f"Cannot order products by {field_name!r}")

    present = [p for p in products if getattr(p, field_name) is not None]
    missing = [p for p in products if getattr(p, field_name) is None]
    present.sort(key=lambda product: getattr(product, field_name), reverse=descending)
    return present + missing


class InMemoryCatalogRepository(CatalogRepository):
    """Naive in-memory product registry for local runs and tests."""

    def __init__(self, products: Iterable[Product] | None = None) -> None:
        self._lock = RLock()
        self._storage: dict[str, Product] = {}
        for product in products or []:
            self.register(product)

    def register(self, product: Product) -> Product:
        """Add or replace a product and log it for observability."""

        with self._lock:
            self._storage[product.id] = product

        logger.info(
            "Registered product %s (code=%s, org=%s)",
            product.id,
            product.code,
            product.organization_id,
        )
        logger.debug("Product payload: %s", product.model_dump_json())
        return product

    def _snapshot(self) -> list[Product]:
        with self._lock:
            return list(self._storage.values())

    async def find_all(self, filters: CatalogFilters) -> list[Product]:
        products = [
            product
            for product in self._snapshot()
            if (
                filters.organization_id is None
                or product.organization_id == filters.organization_id
            )
            and (filters.status is None or product.status == filters.status)
            and (filters.category is None or product.category == filters.category)
            and (
                filters.product_year is None
                or product.product_year == filters.product_year
            )
        ]
        if filters.order_by:
            products = _ordered(products, filters.order_by)
        return products

    async def find_by_id(self, product_id: str) -> Product | None:
        with self._lock:
            return self._storage.get(product_id)

    async def find_by_business_id(self, business_id: str) -> Product | None:
        for product in self._snapshot():
            if product.business_id == business_id:
                return product
        return None

    async def find_by_code(self, code: str) -> Product | None:
        for product in self._snapshot():
            if product.code == code:
                return product
        return None

    async def find_by_category(self, category: str) -> list[Product]:
        return [p for p in self._snapshot() if p.category == category]

    async def search(self, text: str) -> list[Product]:
        needle = text.strip().lower()
        return [
            product
            for product in self._snapshot()
            if needle in product.name.lower()
            or needle in product.code.lower()
            or needle in (product.description or "").lower()
        ]

    async def find_active_by_date(
        self,
        day: date,
        status: ProductStatus | None = None,
    ) -> list[Product]:
        return [
            product
            for product in self._snapshot()
            if product.is_active_on(day)
            and (status is None or product.status == status)
        ]

    async def count(self) -> int:
        with self._lock:
            return len(self._storage)

    async def count_available(self) -> int:
        return sum(
            1
            for product in self._snapshot()
            if product.status == ProductStatus.AVAILABLE
        )


_repository: CatalogRepository = InMemoryCatalogRepository()


def get_catalog_repository() -> CatalogRepository:
    """FastAPI dependency factory."""

    return _repository


CatalogRepositoryDependency = Annotated[
    CatalogRepository, Depends(get_catalog_repository)
]
