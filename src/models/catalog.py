"""Query and response envelopes for catalog lookups."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.config import settings
from src.models.product import EnrichedProduct, Product, ProductStatus


class ProductQuery(BaseModel):
    """Filters and paging requested for a catalog listing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: str | None = None
    status: ProductStatus | None = None
    year: str | None = Field(None, description="Product year, e.g. 2025")
    organization: str | None = Field(
        None,
        description="Organization the listing is scoped to",
    )
    page: int = Field(1, ge=1)
    page_size: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    order_by: str | None = Field(
        None,
        description="Product field to sort by; prefix with '-' for descending",
    )

    @field_validator("order_by")
    @classmethod
    def _known_sort_field(cls, value: str | None) -> str | None:
        if value and value.lstrip("-") not in Product.model_fields:
            raise ValueError(f"Cannot order products by {value.lstrip('-')!r}")
        return value


class CatalogFilters(BaseModel):
    """Effective filters handed to the catalog repository."""

    model_config = ConfigDict(frozen=True)

    organization_id: str | None = None
    status: ProductStatus | None = None
    category: str | None = None
    product_year: str | None = None
    order_by: str | None = None


class PaginationMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class PaginatedProducts(BaseModel):
    """Response body for paginated catalog listings."""

    data: list[EnrichedProduct] = Field(default_factory=list)
    meta: PaginationMeta


class ProductList(BaseModel):
    """Response body for unpaginated listings (category, search, active)."""

    data: list[EnrichedProduct] = Field(default_factory=list)
    meta: dict[str, int | str | None] = Field(default_factory=dict)


class ProductEnvelope(BaseModel):
    """Response body for single-item lookups."""

    data: EnrichedProduct


class CatalogStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_products: int | None = None
    available_products: int
