"""User-type and membership-status filter layers."""

from __future__ import annotations

import logging

from src.models.caller import AccountKind, CallerProfile
from src.models.product import AudienceType, EnrichedProduct
from src.services.catalog.outcome import LayerOutcome
from src.services.clients.profile_provider import UserProfileProvider

logger = logging.getLogger(__name__)

_KIND_FOR_AUDIENCE: dict[AudienceType, AccountKind] = {
    AudienceType.OT_OTA: AccountKind.ACCOUNT,
    AudienceType.AFFILIATE: AccountKind.AFFILIATE,
}


def normalize_audience_type(audience_type: AudienceType | None) -> AudienceType:
    """Legacy products without an audience type are meant for everyone."""
    return audience_type or AudienceType.BOTH


def passes_user_type(
    audience_type: AudienceType | None,
    account_kind: AccountKind,
) -> bool:
    target = normalize_audience_type(audience_type)
    if target is AudienceType.BOTH:
        return True
    return _KIND_FOR_AUDIENCE[target] == account_kind


def passes_membership(membership_only: bool, profile: CallerProfile) -> bool:
    if not membership_only:
        return True
    return profile.active_membership is True


def filter_by_user_type(
    products: list[EnrichedProduct],
    account_kind: AccountKind,
) -> list[EnrichedProduct]:
    """Layer 1: cheap pre-filter on the product's intended audience."""

    filtered = [
        product
        for product in products
        if passes_user_type(product.audience_type, account_kind)
    ]
    logger.debug(
        "[layer-1] %d -> %d products for account kind %s",
        len(products),
        len(filtered),
        account_kind.value,
    )
    return filtered


class ProfileLoader:
    """Builds a caller profile at most once for one filtering pass.

    A failure is remembered as well, so every layer of the pass sees the
    same outcome without asking the provider again.
    """

    def __init__(self, provider: UserProfileProvider, caller_id: str) -> None:
        self._provider = provider
        self.caller_id = caller_id
        self._result: CallerProfile | Exception | None = None

    async def load(self) -> CallerProfile:
        if self._result is None:
            try:
                self._result = await self._provider.build_profile(self.caller_id)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self._result = exc
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


async def filter_by_membership(
    products: list[EnrichedProduct],
    profiles: ProfileLoader,
) -> LayerOutcome:
    """Layer 1.5: hide membership-only products from callers without one."""

    try:
        profile = await profiles.load()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return LayerOutcome.degraded(products, exc)

    filtered = [
        product
        for product in products
        if passes_membership(product.membership_only, profile)
    ]
    logger.debug(
        "[layer-1.5] %d -> %d products (active membership=%s)",
        len(products),
        len(filtered),
        profile.active_membership,
    )
    return LayerOutcome.ok(filtered)
