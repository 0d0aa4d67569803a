"""Result type returned by filter layers that are allowed to fail open."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.models.product import EnrichedProduct


class LayerOutcome(BaseModel):
    """Either the filtered products, or the untouched input plus the failure.

    A degraded outcome still carries a usable product list; callers log the
    cause and carry on instead of raising.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    products: list[EnrichedProduct]
    cause: BaseException | None = None
    failed_lookups: tuple[str, ...] = Field(
        default=(),
        description="Product ids whose audience target lookup raised",
    )

    @classmethod
    def ok(
        cls,
        products: list[EnrichedProduct],
        *,
        failed_lookups: tuple[str, ...] = (),
    ) -> LayerOutcome:
        return cls(products=products, failed_lookups=failed_lookups)

    @classmethod
    def degraded(
        cls,
        products: list[EnrichedProduct],
        cause: BaseException,
    ) -> LayerOutcome:
        return cls(products=products, cause=cause)

    @property
    def is_degraded(self) -> bool:
        return self.cause is not None
