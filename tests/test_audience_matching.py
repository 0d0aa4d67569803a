"""Tests for audience target matching and the target lookup fan-out."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.models.audience_target import TARGET_ATTRIBUTES, AudienceTarget
from src.models.caller import ANONYMOUS, CallerProfile
from src.services.catalog.audience import AudienceTargetFilter, matches_target
from src.services.clients.target_provider import AudienceTargetProvider

ONTARIO = 1
QUEBEC = 2


def test_target_attributes_exist_on_profile():
    profile = CallerProfile(caller_id="c1")
    for attribute in TARGET_ATTRIBUTES:
        assert hasattr(profile, attribute)
    assert len(TARGET_ATTRIBUTES) == 34


def test_missing_or_empty_target_is_public():
    profile = CallerProfile(caller_id="c1")

    assert matches_target(profile, None) is True
    assert matches_target(profile, AudienceTarget(product_id="p1")) is True
    assert matches_target(profile, AudienceTarget(product_id="p1", province=[])) is True
    assert AudienceTarget(product_id="p1", province=[]).is_public
    assert not AudienceTarget(product_id="p1", province=[1]).is_public


def test_single_attribute_match():
    target = AudienceTarget(product_id="p1", province=[ONTARIO])

    assert matches_target(CallerProfile(caller_id="on", province=ONTARIO), target)
    assert not matches_target(CallerProfile(caller_id="qc", province=QUEBEC), target)


def test_any_attribute_is_enough():
    target = AudienceTarget(product_id="p1", province=[ONTARIO], gender=[7])
    caller = CallerProfile(caller_id="c1", province=QUEBEC, gender=7)

    assert matches_target(caller, target) is True


def test_caller_without_value_does_not_match_constrained_attribute():
    target = AudienceTarget(product_id="p1", province=[ONTARIO])

    assert matches_target(CallerProfile(caller_id="c1"), target) is False


def test_multi_choice_attribute_matches_on_overlap():
    target = AudienceTarget(product_id="p1", language=[3, 4])

    assert matches_target(CallerProfile(caller_id="c1", language=[1, 4]), target)
    assert not matches_target(CallerProfile(caller_id="c2", language=[1, 2]), target)


@pytest.mark.asyncio
async def test_filter_keeps_matching_products(service, products):
    enriched = await service._enrich(products[:3], ANONYMOUS, "op-test")
    provider = AsyncMock(spec=AudienceTargetProvider)
    provider.find_by_product_id.side_effect = lambda product_id: (
        AudienceTarget(product_id=product_id, province=[ONTARIO])
        if product_id == "p1"
        else None
    )
    layer = AudienceTargetFilter(provider)

    on = await layer.apply(enriched, CallerProfile(caller_id="on", province=ONTARIO), "op")
    qc = await layer.apply(enriched, CallerProfile(caller_id="qc", province=QUEBEC), "op")

    assert [product.id for product in on.products] == ["p1", "p2", "p3"]
    assert [product.id for product in qc.products] == ["p2", "p3"]
    assert on.failed_lookups == ()


@pytest.mark.asyncio
async def test_failed_lookups_are_public_and_reported(service, products):
    enriched = await service._enrich(products, ANONYMOUS, "op-test")
    provider = AsyncMock(spec=AudienceTargetProvider)
    provider.find_by_product_id.side_effect = ConnectionError("targets down")
    layer = AudienceTargetFilter(provider)

    outcome = await layer.apply(enriched, CallerProfile(caller_id="c1"), "op")

    assert outcome.products == enriched
    assert set(outcome.failed_lookups) == {"p1", "p2", "p3", "p4", "p5"}
    assert not outcome.is_degraded

    again = await layer.apply(outcome.products, CallerProfile(caller_id="c1"), "op")
    assert again.products == outcome.products


@pytest.mark.asyncio
async def test_lookups_respect_concurrency_limit():
    in_flight = 0
    peak = 0

    class _SlowProvider(AudienceTargetProvider):
        async def find_by_product_id(self, product_id):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return None

    layer = AudienceTargetFilter(_SlowProvider(), concurrency=3)

    targets = await layer.fetch_targets([f"p{i}" for i in range(10)])

    assert len(targets) == 10
    assert peak <= 3
