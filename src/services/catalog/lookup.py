"""Catalog resolution: fetch, enrich, filter and paginate products per caller.

Every public operation runs the same funnel::

    FETCH -> ENRICH -> (elevated bypass | user type -> membership -> audience)
          -> PAGINATE

Repository failures are fatal and raised as ``CatalogServiceError``. The
membership and audience layers fail open: on error they pass their input
through unchanged and the failure is only logged.
"""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Annotated, Any, TypeVar

from fastapi import Depends

from src.models.caller import ANONYMOUS, CallerContext
from src.models.catalog import (
    CatalogFilters,
    PaginatedProducts,
    PaginationMeta,
    ProductQuery,
)
from src.models.product import EnrichedProduct, Product, ProductStatus
from src.services.cache.product_cache import (
    ProductCache,
    catalog_key,
    code_key,
    details_key,
)
from src.services.cache.store import CacheStoreDependency
from src.services.catalog.audience import AudienceTargetFilter
from src.services.catalog.business_rules import PurchaseRules, PurchaseRulesDependency
from src.services.catalog.errors import CatalogServiceError
from src.services.catalog.filters import (
    ProfileLoader,
    filter_by_membership,
    filter_by_user_type,
)
from src.services.catalog.outcome import LayerOutcome
from src.services.catalog.pricing import find_exclusive_category, resolve_price
from src.services.clients.catalog_repository import (
    CatalogRepository,
    CatalogRepositoryDependency,
)
from src.services.clients.profile_provider import (
    ProfileProviderDependency,
    UserProfileProvider,
)
from src.services.clients.target_provider import (
    AudienceTargetProvider,
    TargetProviderDependency,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SHARED_FIELDS = set(Product.model_fields) & set(EnrichedProduct.model_fields)


def paginate(
    products: list[EnrichedProduct],
    page: int,
    page_size: int,
) -> PaginatedProducts:
    """Slice ``products`` to one page and describe the remaining pages."""

    total_items = len(products)
    total_pages = math.ceil(total_items / page_size)
    start = (page - 1) * page_size
    return PaginatedProducts(
        data=products[start : start + page_size],
        meta=PaginationMeta(
            current_page=page,
            items_per_page=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )


def _operation_id(prefix: str, operation_id: str | None) -> str:
    return operation_id or f"{prefix}-{uuid.uuid4().hex[:12]}"


class CatalogLookupService:
    """Resolves which products a caller sees and at what price."""

    def __init__(
        self,
        *,
        repository: CatalogRepository,
        cache: ProductCache,
        profile_provider: UserProfileProvider,
        target_provider: AudienceTargetProvider,
        purchase_rules: PurchaseRules,
        clock: Callable[[], date] | None = None,
        target_concurrency: int | None = None,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._profile_provider = profile_provider
        self._audience_filter = AudienceTargetFilter(
            target_provider,
            concurrency=target_concurrency,
        )
        self._purchase_rules = purchase_rules
        self._clock = clock or date.today

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def find_all(
        self,
        query: ProductQuery,
        caller: CallerContext = ANONYMOUS,
        operation_id: str | None = None,
    ) -> PaginatedProducts:
        """Return one page of the catalog as seen by ``caller``."""

        op_id = _operation_id("find-all-products", operation_id)
        logger.info(
            "Listing products page=%d size=%d (operation %s)",
            query.page,
            query.page_size,
            op_id,
        )

        filters = self._effective_filters(query, caller)
        key = catalog_key(filters)
        products = await self._fetch(
            "Failed to find products",
            op_id,
            lambda: self._cached_list(key, filters),
        )
        products = self._restrict_for(caller, products)

        visible = await self._resolve(products, caller, op_id)
        return paginate(visible, query.page, query.page_size)

    async def find_by_category(
        self,
        category: str,
        caller: CallerContext = ANONYMOUS,
        operation_id: str | None = None,
    ) -> list[EnrichedProduct]:
        op_id = _operation_id("find-category", operation_id)
        logger.info("Finding products by category %s (operation %s)", category, op_id)

        products = await self._fetch(
            "Failed to find products by category",
            op_id,
            lambda: self._repository.find_by_category(category),
            category=category,
        )
        return await self._resolve(self._restrict_for(caller, products), caller, op_id)

    async def search(
        self,
        text: str,
        caller: CallerContext = ANONYMOUS,
        operation_id: str | None = None,
    ) -> list[EnrichedProduct]:
        op_id = _operation_id("search-products", operation_id)
        if not text or not text.strip():
            return []
        logger.info("Searching products for %r (operation %s)", text, op_id)

        products = await self._fetch(
            "Failed to search products",
            op_id,
            lambda: self._repository.search(text.strip()),
            search_query=text,
        )
        return await self._resolve(self._restrict_for(caller, products), caller, op_id)

    async def find_active(
        self,
        reference_date: date | None = None,
        caller: CallerContext = ANONYMOUS,
        operation_id: str | None = None,
    ) -> list[EnrichedProduct]:
        """Return products whose date window contains ``reference_date``."""

        op_id = _operation_id("find-active-products", operation_id)
        day = reference_date or self._clock()
        status = None if caller.is_elevated else ProductStatus.AVAILABLE
        logger.info(
            "Finding products active on %s (operation %s)", day.isoformat(), op_id
        )

        products = await self._fetch(
            "Failed to find active products",
            op_id,
            lambda: self._repository.find_active_by_date(day, status),
        )
        return await self._resolve(products, caller, op_id)

    # ------------------------------------------------------------------
    # Single items
    # ------------------------------------------------------------------

    async def find_by_id(
        self,
        identifier: str,
        caller: CallerContext = ANONYMOUS,
        operation_id: str | None = None,
        organization_id: str | None = None,
    ) -> EnrichedProduct | None:
        """Look a product up by opaque id, falling back to its business id."""

        op_id = _operation_id("find-product", operation_id)
        logger.info("Finding product %s (operation %s)", identifier, op_id)

        async def _load() -> Product | None:
            product = await self._cached_item(
                details_key(identifier),
                lambda: self._repository.find_by_id(identifier),
            )
            if product is not None:
                return product
            product = await self._repository.find_by_business_id(identifier)
            if product is not None:
                await self._cache.set_item(details_key(product.id), product)
            return product

        product = await self._fetch(
            "Failed to find product", op_id, _load, product_id=identifier
        )
        return await self._resolve_single(product, caller, op_id, organization_id)

    async def find_by_code(
        self,
        code: str,
        caller: CallerContext = ANONYMOUS,
        operation_id: str | None = None,
        organization_id: str | None = None,
    ) -> EnrichedProduct | None:
        op_id = _operation_id("find-product-code", operation_id)
        logger.info("Finding product by code %s (operation %s)", code, op_id)

        product = await self._fetch(
            "Failed to find product by code",
            op_id,
            lambda: self._cached_item(
                code_key(code),
                lambda: self._repository.find_by_code(code),
            ),
            product_code=code,
        )
        return await self._resolve_single(product, caller, op_id, organization_id)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def count(self, operation_id: str | None = None) -> int:
        op_id = _operation_id("count-products", operation_id)
        return await self._fetch("Failed to count products", op_id, self._repository.count)

    async def count_available(self, operation_id: str | None = None) -> int:
        op_id = _operation_id("count-available", operation_id)
        return await self._fetch(
            "Failed to count available products",
            op_id,
            self._repository.count_available,
        )

    # ------------------------------------------------------------------
    # Funnel stages
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        message: str,
        op_id: str,
        load: Callable[[], Awaitable[T]],
        **context: Any,
    ) -> T:
        try:
            return await load()
        except CatalogServiceError:
            raise
        except Exception as exc:
            logger.error(
                "%s (operation %s): %s", message, op_id, exc, exc_info=True
            )
            raise CatalogServiceError(
                message=message,
                operation_id=op_id,
                original_error=str(exc),
                context=context,
            ) from exc

    @staticmethod
    def _effective_filters(
        query: ProductQuery,
        caller: CallerContext,
    ) -> CatalogFilters:
        # Non-elevated callers only ever see AVAILABLE products, whatever
        # status they asked for.
        status = query.status if caller.is_elevated else ProductStatus.AVAILABLE
        return CatalogFilters(
            organization_id=query.organization,
            status=status,
            category=query.category,
            product_year=query.year,
            order_by=query.order_by,
        )

    def _restrict_for(
        self,
        caller: CallerContext,
        products: list[Product],
    ) -> list[Product]:
        """Keep AVAILABLE products inside their date window for non-elevated callers."""

        if caller.is_elevated:
            return products
        today = self._clock()
        return [
            product
            for product in products
            if product.status == ProductStatus.AVAILABLE and product.is_active_on(today)
        ]

    async def _cached_list(self, key: str, filters: CatalogFilters) -> list[Product]:
        cached = await self._cache.get_list(key)
        if cached is not None:
            logger.debug("Product cache hit for %s (%d products)", key, len(cached))
            return cached

        logger.debug("Product cache miss for %s", key)
        products = await self._repository.find_all(filters)
        await self._cache.set_list(key, products)
        return products

    async def _cached_item(
        self,
        key: str,
        load: Callable[[], Awaitable[Product | None]],
    ) -> Product | None:
        cached = await self._cache.get_item(key)
        if cached is not None:
            logger.debug("Product cache hit for %s", key)
            return cached

        product = await load()
        if product is not None:
            await self._cache.set_item(key, product)
        return product

    async def _resolve(
        self,
        products: list[Product],
        caller: CallerContext,
        op_id: str,
    ) -> list[EnrichedProduct]:
        enriched = await self._enrich(products, caller, op_id)
        return await self.filter_visible(enriched, caller, op_id)

    async def _resolve_single(
        self,
        product: Product | None,
        caller: CallerContext,
        op_id: str,
        organization_id: str | None,
    ) -> EnrichedProduct | None:
        if product is None:
            return None

        if (
            organization_id
            and product.organization_id
            and product.organization_id.lower() != organization_id.lower()
        ):
            logger.warning(
                "Product %s not found in organization %s (operation %s)",
                product.id,
                organization_id,
                op_id,
            )
            return None

        if not self._restrict_for(caller, [product]):
            logger.info(
                "Product %s (status %s) hidden from non-elevated caller",
                product.id,
                product.status.value,
            )
            return None

        visible = await self._resolve([product], caller, op_id)
        return visible[0] if visible else None

    async def _enrich(
        self,
        products: list[Product],
        caller: CallerContext,
        op_id: str,
    ) -> list[EnrichedProduct]:
        try:
            return list(
                await asyncio.gather(
                    *(self._enrich_one(product, caller) for product in products)
                )
            )
        except Exception as exc:
            logger.error(
                "Failed to enrich products (operation %s): %s", op_id, exc, exc_info=True
            )
            raise CatalogServiceError(
                message="Failed to resolve product prices",
                operation_id=op_id,
                original_error=str(exc),
            ) from exc

    async def _enrich_one(
        self,
        product: Product,
        caller: CallerContext,
    ) -> EnrichedProduct:
        price = resolve_price(product, caller.membership_category)
        eligibility = await self._purchase_rules.can_purchase(product, caller.caller_id)
        return EnrichedProduct(
            **product.model_dump(include=_SHARED_FIELDS),
            in_stock=product.in_stock,
            low_stock=product.low_stock,
            is_active=product.is_active_on(self._clock()),
            display_price=price.price,
            price_field_used=price.field_used,
            is_general_price=price.is_general,
            exclusive_category=find_exclusive_category(product),
            can_purchase=eligibility.available,
        )

    async def filter_visible(
        self,
        products: list[EnrichedProduct],
        caller: CallerContext,
        operation_id: str,
    ) -> list[EnrichedProduct]:
        """Run the visibility layers that apply to ``caller``."""

        if caller.is_elevated:
            logger.debug(
                "Caller %s has %s privilege, showing all %d products",
                caller.caller_id,
                caller.privilege.value if caller.privilege else None,
                len(products),
            )
            return products

        caller_id = caller.caller_id
        if not caller.requires_filtering or caller_id is None:
            return products

        profiles = ProfileLoader(self._profile_provider, caller_id)

        stage = products
        if caller.account_kind is not None:
            stage = filter_by_user_type(stage, caller.account_kind)

        outcome = await filter_by_membership(stage, profiles)
        self._report("membership", outcome, caller, operation_id)
        stage = outcome.products

        outcome = await self._filter_by_audience(stage, profiles, operation_id)
        self._report("audience-target", outcome, caller, operation_id)

        logger.info(
            "Filtered %d -> %d products for caller %s (operation %s)",
            len(products),
            len(outcome.products),
            caller.caller_id,
            operation_id,
        )
        return outcome.products

    async def _filter_by_audience(
        self,
        products: list[EnrichedProduct],
        profiles: ProfileLoader,
        operation_id: str,
    ) -> LayerOutcome:
        if not products:
            return LayerOutcome.ok(products)
        try:
            profile = await profiles.load()
            return await self._audience_filter.apply(products, profile, operation_id)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return LayerOutcome.degraded(products, exc)

    @staticmethod
    def _report(
        layer: str,
        outcome: LayerOutcome,
        caller: CallerContext,
        operation_id: str,
    ) -> None:
        if outcome.is_degraded:
            logger.error(
                "Layer %s failed open for caller %s with %d products (operation %s): %s",
                layer,
                caller.caller_id,
                len(outcome.products),
                operation_id,
                outcome.cause,
                exc_info=outcome.cause,
                extra={"layer": layer, "caller_id": caller.caller_id},
            )
        if outcome.failed_lookups:
            logger.warning(
                "Layer %s treated %d products as public after lookup failures",
                layer,
                len(outcome.failed_lookups),
                extra={
                    "layer": layer,
                    "caller_id": caller.caller_id,
                    "product_ids": list(outcome.failed_lookups),
                    "operation_id": operation_id,
                },
            )


def get_catalog_lookup_service(
    repository: CatalogRepositoryDependency,
    store: CacheStoreDependency,
    profile_provider: ProfileProviderDependency,
    target_provider: TargetProviderDependency,
    purchase_rules: PurchaseRulesDependency,
) -> CatalogLookupService:
    """FastAPI dependency wiring the lookup service to its collaborators."""

    return CatalogLookupService(
        repository=repository,
        cache=ProductCache(store),
        profile_provider=profile_provider,
        target_provider=target_provider,
        purchase_rules=purchase_rules,
    )


CatalogLookupServiceDependency = Annotated[
    CatalogLookupService, Depends(get_catalog_lookup_service)
]
