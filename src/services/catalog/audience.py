"""Audience target matching (layer 2 of the visibility funnel).

Matching is inclusive: a caller qualifies for a target as soon as any one
constrained attribute is satisfied. A target without constraints, or no
target at all, makes the product public.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from src.config import settings
from src.models.audience_target import AudienceTarget
from src.models.caller import CallerProfile
from src.models.product import EnrichedProduct
from src.services.catalog.outcome import LayerOutcome
from src.services.clients.target_provider import AudienceTargetProvider

logger = logging.getLogger(__name__)


def _caller_values(profile: CallerProfile, attribute: str) -> list[int]:
    value = getattr(profile, attribute)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def matches_target(profile: CallerProfile, target: AudienceTarget | None) -> bool:
    """Return True when ``profile`` may see content restricted by ``target``."""

    if target is None or target.is_public:
        return True

    for attribute, allowed in target.constraints().items():
        matched = [v for v in _caller_values(profile, attribute) if v in allowed]
        if matched:
            logger.debug(
                "Caller %s matches target on %s=%s",
                profile.caller_id,
                attribute,
                matched,
            )
            return True
    return False


class _LookupFailed:
    """Marker for a target lookup that raised."""

    def __init__(self, error: Exception) -> None:
        self.error = error


class AudienceTargetFilter:
    """Fetches targets for a batch of products and keeps the matching ones."""

    def __init__(
        self,
        provider: AudienceTargetProvider,
        *,
        concurrency: int | None = None,
    ) -> None:
        self._provider = provider
        self._concurrency = max(1, concurrency or settings.AUDIENCE_TARGET_CONCURRENCY)

    async def fetch_targets(
        self,
        product_ids: Sequence[str],
    ) -> dict[str, AudienceTarget | None | _LookupFailed]:
        """Look up every product's target with bounded concurrency."""

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _lookup(product_id: str) -> AudienceTarget | None | _LookupFailed:
            async with semaphore:
                try:
                    return await self._provider.find_by_product_id(product_id)
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    return _LookupFailed(exc)

        results = await asyncio.gather(*(_lookup(pid) for pid in product_ids))
        return dict(zip(product_ids, results))

    async def apply(
        self,
        products: list[EnrichedProduct],
        profile: CallerProfile,
        operation_id: str,
    ) -> LayerOutcome:
        product_ids = [product.id for product in products if product.id]
        targets = await self.fetch_targets(product_ids)

        failed: list[str] = []
        kept: list[EnrichedProduct] = []
        for product in products:
            if not product.id:
                logger.warning("Product missing id, skipping: %s", product.name)
                continue

            target = targets.get(product.id)
            if isinstance(target, _LookupFailed):
                # Treated as public; reported separately so audits can tell
                # an outage apart from a product without a target.
                failed.append(product.id)
                logger.warning(
                    "Audience target lookup failed for product %s: %s",
                    product.id,
                    target.error,
                    extra={"operation_id": operation_id},
                )
                kept.append(product)
                continue

            if matches_target(profile, target):
                kept.append(product)
            else:
                logger.debug(
                    "Product %s hidden from caller %s by audience target",
                    product.code,
                    profile.caller_id,
                )

        logger.debug(
            "[layer-2] %d -> %d products for caller %s (operation %s)",
            len(products),
            len(kept),
            profile.caller_id,
            operation_id,
        )
        return LayerOutcome.ok(kept, failed_lookups=tuple(failed))
