"""Routes resolving the product catalog for the calling user."""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import ValidationError

from src.config import settings
from src.models.caller import AccountKind, CallerContext, Privilege
from src.models.catalog import (
    CatalogStats,
    PaginatedProducts,
    ProductEnvelope,
    ProductList,
    ProductQuery,
)
from src.models.product import ProductStatus
from src.services.catalog.lookup import CatalogLookupServiceDependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _parse_enum(enum_cls, raw: str | None, header: str):
    if raw is None or not raw.strip():
        return None
    try:
        return enum_cls(raw.strip().lower())
    except ValueError as exc:
        logger.warning("Rejected %s header value %r", header, raw)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header} header: {raw}",
        ) from exc


def get_caller_context(
    caller_id: Annotated[str | None, Header(alias="X-Caller-Id")] = None,
    caller_kind: Annotated[str | None, Header(alias="X-Caller-Kind")] = None,
    privilege: Annotated[str | None, Header(alias="X-Caller-Privilege")] = None,
    membership_category: Annotated[
        int | None, Header(alias="X-Membership-Category", ge=0, le=14)
    ] = None,
) -> CallerContext:
    """Build the caller identity forwarded by the authenticating gateway.

    Prices are resolved from ``X-Membership-Category``, so the gateway must set
    it from the caller's verified membership record and strip any value sent
    by the client.
    """

    return CallerContext(
        caller_id=caller_id or None,
        account_kind=_parse_enum(AccountKind, caller_kind, "X-Caller-Kind"),
        privilege=_parse_enum(Privilege, privilege, "X-Caller-Privilege"),
        membership_category=membership_category,
    )


CallerDependency = Annotated[CallerContext, Depends(get_caller_context)]


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


@router.get(
    "",
    response_model=PaginatedProducts,
    response_model_by_alias=True,
    summary="List the catalog visible to the caller",
)
async def list_products(
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
    category: str | None = None,
    product_status: Annotated[ProductStatus | None, Query(alias="status")] = None,
    year: str | None = None,
    organization: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
    page_size_camel: Annotated[int | None, Query(alias="pageSize", ge=1)] = None,
    order_by: str | None = None,
    order_by_camel: Annotated[str | None, Query(alias="orderBy")] = None,
) -> PaginatedProducts:
    requested_size = page_size or page_size_camel or settings.DEFAULT_PAGE_SIZE
    try:
        query = ProductQuery(
            category=category,
            status=product_status,
            year=year,
            organization=organization,
            page=page,
            page_size=min(requested_size, settings.MAX_PAGE_SIZE),
            order_by=order_by or order_by_camel,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    return await service.find_all(query, caller)


@router.get(
    "/active",
    response_model=ProductList,
    response_model_by_alias=True,
    summary="Products whose date window contains a day",
)
async def list_active_products(
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
    reference_date: Annotated[date | None, Query(alias="date")] = None,
) -> ProductList:
    products = await service.find_active(reference_date, caller)
    return ProductList(
        data=products,
        meta={
            "count": len(products),
            "date": reference_date.isoformat() if reference_date else None,
        },
    )


@router.get(
    "/search",
    response_model=ProductList,
    response_model_by_alias=True,
    summary="Search products by name, code or description",
)
async def search_products(
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
    q: str = "",
) -> ProductList:
    products = await service.search(q, caller)
    return ProductList(data=products, meta={"count": len(products), "query": q})


@router.get(
    "/stats",
    response_model=CatalogStats,
    response_model_by_alias=True,
    summary="Catalog size statistics",
)
async def product_stats(
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
) -> CatalogStats:
    available = await service.count_available()
    # The full count includes drafts, so only elevated callers get it
    total = await service.count() if caller.is_elevated else None
    return CatalogStats(total_products=total, available_products=available)


@router.get(
    "/category/{category}",
    response_model=ProductList,
    response_model_by_alias=True,
    summary="Products in one category",
)
async def list_products_by_category(
    category: str,
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
) -> ProductList:
    products = await service.find_by_category(category, caller)
    return ProductList(
        data=products,
        meta={"count": len(products), "category": category},
    )


@router.get(
    "/code/{code}",
    response_model=ProductEnvelope,
    response_model_by_alias=True,
    summary="Fetch one product by its code",
)
async def get_product_by_code(
    code: str,
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
    organization: str | None = None,
) -> ProductEnvelope:
    product = await service.find_by_code(code, caller, organization_id=organization)
    if product is None:
        raise _not_found(f"Product with code {code}")
    return ProductEnvelope(data=product)


@router.get(
    "/{identifier}",
    response_model=ProductEnvelope,
    response_model_by_alias=True,
    summary="Fetch one product by id or business id",
)
async def get_product(
    identifier: str,
    caller: CallerDependency,
    service: CatalogLookupServiceDependency,
    organization: str | None = None,
) -> ProductEnvelope:
    product = await service.find_by_id(identifier, caller, organization_id=organization)
    if product is None:
        raise _not_found(f"Product {identifier}")
    return ProductEnvelope(data=product)
