"""Purchase eligibility rules consulted while enriching products."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends
from pydantic import BaseModel, ConfigDict

from src.models.product import Product, ProductStatus


class PurchaseEligibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    available: bool
    reason: str | None = None
    inventory: int | None = None


class PurchaseRules(ABC):
    """Decides whether a caller may buy a product."""

    @abstractmethod
    async def can_purchase(
        self,
        product: Product,
        caller_id: str | None,
    ) -> PurchaseEligibility:
        """Return the purchase eligibility of ``product`` for ``caller_id``."""


class ProductPurchaseRules(PurchaseRules):
    """Default rules: signed-in caller, AVAILABLE product, stock left.

    Membership-only products are not checked here; visibility already hides
    them from callers without an active membership.
    """

    async def can_purchase(
        self,
        product: Product,
        caller_id: str | None,
    ) -> PurchaseEligibility:
        if not caller_id:
            return PurchaseEligibility(
                available=False,
                reason="Caller must be authenticated to purchase products",
            )

        if product.status != ProductStatus.AVAILABLE:
            return PurchaseEligibility(
                available=False,
                reason=f"Product is {product.status.value}, not available for purchase",
            )

        if not product.in_stock:
            return PurchaseEligibility(
                available=False,
                reason="Product is out of stock",
                inventory=product.inventory,
            )

        return PurchaseEligibility(available=True, inventory=product.inventory)


_purchase_rules: PurchaseRules = ProductPurchaseRules()


def get_purchase_rules() -> PurchaseRules:
    """FastAPI dependency returning the purchase rules in use."""

    return _purchase_rules


PurchaseRulesDependency = Annotated[PurchaseRules, Depends(get_purchase_rules)]
