"""Audience target provider abstractions and implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends

from src.models.audience_target import AudienceTarget


class AudienceTargetProvider(ABC):
    """Looks up the audience target attached to a product."""

    @abstractmethod
    async def find_by_product_id(self, product_id: str) -> AudienceTarget | None:
        """Return the product's target, or None when it has none."""


class InMemoryAudienceTargetProvider(AudienceTargetProvider):
    """Target provider serving pre-registered targets, one per product."""

    def __init__(self, targets: list[AudienceTarget] | None = None) -> None:
        self._targets: dict[str, AudienceTarget] = {}
        for target in targets or []:
            self.register(target)

    def register(self, target: AudienceTarget) -> None:
        if not target.product_id:
            raise ValueError("Audience target must reference a product")
        self._targets[target.product_id] = target

    async def find_by_product_id(self, product_id: str) -> AudienceTarget | None:
        return self._targets.get(product_id)


_target_provider: AudienceTargetProvider = InMemoryAudienceTargetProvider()


def get_target_provider() -> AudienceTargetProvider:
    """FastAPI dependency returning the configured target provider."""

    return _target_provider


TargetProviderDependency = Annotated[
    AudienceTargetProvider, Depends(get_target_provider)
]
