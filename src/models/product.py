"""Product domain models and API schemas."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.config import settings


class ProductStatus(str, Enum):
    """Lifecycle status of a catalog product."""

    DRAFT = "DRAFT"
    AVAILABLE = "AVAILABLE"
    DISCONTINUED = "DISCONTINUED"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    UNAVAILABLE = "UNAVAILABLE"


class AudienceType(str, Enum):
    """Kind of account a product is intended for."""

    OT_OTA = "OT_OTA"
    AFFILIATE = "AFFILIATE"
    BOTH = "BOTH"


GENERAL_PRICE_FIELD = "general_price"


class Product(BaseModel):
    """Raw product record as returned by the catalog repository."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque identifier of the product")
    code: str = Field(..., description="Human readable product code")
    business_id: str | None = Field(
        None,
        description="Human readable business identifier, e.g. prod-0000003",
    )
    name: str
    description: str | None = None
    category: str
    organization_id: str | None = Field(
        None,
        description="Tenant that owns the product",
    )
    product_year: str | None = None
    status: ProductStatus = ProductStatus.DRAFT
    audience_type: AudienceType | None = Field(
        None,
        description="Intended audience; unset means BOTH",
    )
    membership_only: bool = False
    start_date: date | None = None
    end_date: date | None = None
    inventory: int | None = Field(
        None,
        description="Units in stock; unset means unlimited",
    )

    general_price: float | None = Field(None, ge=0)
    otstu_price: float | None = Field(None, ge=0)
    otng_price: float | None = Field(None, ge=0)
    otpr_price: float | None = Field(None, ge=0)
    otnp_price: float | None = Field(None, ge=0)
    otret_price: float | None = Field(None, ge=0)
    otlife_price: float | None = Field(None, ge=0)
    otastu_price: float | None = Field(None, ge=0)
    otang_price: float | None = Field(None, ge=0)
    otanp_price: float | None = Field(None, ge=0)
    otaret_price: float | None = Field(None, ge=0)
    otapr_price: float | None = Field(None, ge=0)
    otalife_price: float | None = Field(None, ge=0)
    assoc_price: float | None = Field(None, ge=0)
    affprim_price: float | None = Field(None, ge=0)
    affprem_price: float | None = Field(None, ge=0)

    def is_active_on(self, day: date) -> bool:
        """Return True when ``day`` falls inside the product's date window.

        Both ends are inclusive and a missing bound is open on that side.
        """
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True

    @property
    def in_stock(self) -> bool:
        return self.inventory is None or self.inventory > 0

    @property
    def low_stock(self) -> bool:
        if self.inventory is None:
            return False
        return 0 < self.inventory <= settings.LOW_STOCK_THRESHOLD


class EnrichedProduct(BaseModel):
    """Product resolved for one caller, with price and purchase eligibility."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    code: str
    business_id: str | None = None
    name: str
    description: str | None = None
    category: str
    organization_id: str | None = None
    product_year: str | None = None
    status: ProductStatus
    membership_only: bool = False
    start_date: date | None = None
    end_date: date | None = None
    inventory: int | None = None
    in_stock: bool
    low_stock: bool
    is_active: bool

    display_price: float | None = Field(
        None,
        description="Price applicable to the caller",
    )
    price_field_used: str = Field(
        GENERAL_PRICE_FIELD,
        description="Name of the product price field the display price came from",
    )
    is_general_price: bool = True
    exclusive_category: int | None = Field(
        None,
        description="Membership category the product is priced exclusively for",
    )
    can_purchase: bool = False

    # Needed by the user-type filter, never serialized
    audience_type: AudienceType | None = Field(None, exclude=True)
