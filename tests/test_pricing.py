"""Tests for membership category price resolution."""

import pytest
from pydantic import ValidationError

from src.services.catalog.pricing import (
    CATEGORY_TO_PRICE_FIELD,
    find_exclusive_category,
    resolve_price,
)


def test_category_price_used_when_set(product_factory):
    product = product_factory("p1", otpr_price=80.0)

    resolution = resolve_price(product, membership_category=2)

    assert resolution.price == 80.0
    assert resolution.field_used == "otpr_price"
    assert resolution.is_general is False


def test_falls_back_to_general_price_when_category_price_missing(product_factory):
    product = product_factory("p1", otpr_price=80.0)

    resolution = resolve_price(product, membership_category=7)

    assert resolution.price == 100.0
    assert resolution.field_used == "general_price"
    assert resolution.is_general is True


@pytest.mark.parametrize("category", [None, 15, -1])
def test_unknown_or_missing_category_uses_general_price(product_factory, category):
    product = product_factory("p1", otpr_price=80.0)

    resolution = resolve_price(product, membership_category=category)

    assert resolution.field_used == "general_price"
    assert resolution.price == 100.0


def test_zero_category_price_is_a_real_price(product_factory):
    product = product_factory("p1", otstu_price=0.0)

    resolution = resolve_price(product, membership_category=0)

    assert resolution.price == 0.0
    assert resolution.is_general is False


def test_no_prices_at_all(product_factory):
    product = product_factory("p1", general_price=None)

    resolution = resolve_price(product, membership_category=3)

    assert resolution.price is None
    assert resolution.is_general is True


def test_every_category_maps_to_a_product_field(product_factory):
    product = product_factory("p1")

    assert sorted(CATEGORY_TO_PRICE_FIELD) == list(range(15))
    for field_name in CATEGORY_TO_PRICE_FIELD.values():
        assert hasattr(product, field_name)


def test_exclusive_category(product_factory):
    assert find_exclusive_category(product_factory("p1", affprem_price=5.0)) == 14
    assert find_exclusive_category(product_factory("p2")) is None
    assert (
        find_exclusive_category(product_factory("p3", otpr_price=1.0, otng_price=2.0))
        is None
    )


def test_price_resolution_is_immutable(product_factory):
    resolution = resolve_price(product_factory("p1"), membership_category=None)

    with pytest.raises(ValidationError):
        resolution.price = 1.0
