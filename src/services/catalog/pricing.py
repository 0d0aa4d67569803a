"""Resolve the price a caller pays based on their membership category."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from src.models.product import GENERAL_PRICE_FIELD, Product

# Membership category (0-14) to the product field holding its price.
CATEGORY_TO_PRICE_FIELD: dict[int, str] = {
    0: "otstu_price",  # OT-STU
    1: "otng_price",  # OT-NG
    2: "otpr_price",  # OT-PR
    3: "otnp_price",  # OT-NP
    4: "otret_price",  # OT-RET
    5: "otlife_price",  # OT-LIFE
    6: "otastu_price",  # OTA-STU
    7: "otang_price",  # OTA-NG
    8: "otanp_price",  # OTA-NP
    9: "otaret_price",  # OTA-RET
    10: "otapr_price",  # OTA-PR
    11: "otalife_price",  # OTA-LIFE
    12: "assoc_price",  # ASSOC
    13: "affprim_price",  # AFF-PRIM
    14: "affprem_price",  # AFF-PREM
}


class PriceResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float | None
    field_used: str
    is_general: bool


def resolve_price(
    product: Product,
    membership_category: int | None = None,
) -> PriceResolution:
    """Return the category price when one applies, else the general price."""

    field_name = (
        CATEGORY_TO_PRICE_FIELD.get(membership_category)
        if membership_category is not None
        else None
    )
    if field_name is not None:
        category_price = getattr(product, field_name)
        if category_price is not None:
            return PriceResolution(
                price=category_price,
                field_used=field_name,
                is_general=False,
            )

    return PriceResolution(
        price=product.general_price,
        field_used=GENERAL_PRICE_FIELD,
        is_general=True,
    )


def find_exclusive_category(product: Product) -> int | None:
    """Return the only category with a price set, if exactly one has one."""

    populated = [
        category
        for category, field_name in CATEGORY_TO_PRICE_FIELD.items()
        if getattr(product, field_name) is not None
    ]
    if len(populated) == 1:
        return populated[0]
    return None
