"""Tests for the cache stores and the product cache wrapper."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.models.catalog import CatalogFilters, ProductQuery
from src.models.product import ProductStatus
from src.services.cache.product_cache import (
    ProductCache,
    catalog_key,
    code_key,
    details_key,
)
from src.services.cache.store import InMemoryCacheStore, RedisCacheStore
from src.services.catalog.business_rules import ProductPurchaseRules
from src.services.catalog.lookup import CatalogLookupService


def test_catalog_key_uses_effective_filters():
    key = catalog_key(
        CatalogFilters(
            organization_id="org-1",
            status=ProductStatus.AVAILABLE,
            category="Workshop",
            product_year="2025",
            order_by="-name",
        )
    )

    assert key == "products:catalog:org-1:AVAILABLE:Workshop:2025:-name"
    assert catalog_key(CatalogFilters()) == "products:catalog:all:all:all:all:default"


def test_item_keys():
    assert details_key("p1") == "products:details:p1"
    assert code_key("ABC") == "products:code:ABC"


@pytest.mark.asyncio
async def test_in_memory_store_expires_entries():
    now = [1000.0]
    store = InMemoryCacheStore(clock=lambda: now[0])

    await store.set("k", {"a": 1}, ttl_seconds=60)
    assert await store.get("k") == {"a": 1}

    now[0] += 61
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_redis_store_round_trip_with_prefix(redis_store, redis_client):
    await redis_store.set("products:details:p1", {"id": "p1"}, ttl_seconds=90)

    assert await redis_store.get("products:details:p1") == {"id": "p1"}
    assert await redis_client.exists("test:products:details:p1") == 1
    assert 0 < await redis_client.ttl("test:products:details:p1") <= 90

    await redis_store.invalidate("products:details:p1")
    assert await redis_store.get("products:details:p1") is None


@pytest.mark.asyncio
async def test_redis_errors_read_as_miss():
    client = MagicMock()
    client.get = AsyncMock(side_effect=RedisConnectionError("down"))
    client.set = AsyncMock(side_effect=RedisConnectionError("down"))
    store = RedisCacheStore(client, key_prefix="")

    assert await store.get("k") is None
    await store.set("k", [1], ttl_seconds=10)


@pytest.mark.asyncio
async def test_undecodable_redis_entry_reads_as_miss(redis_store, redis_client):
    await redis_client.set("test:products:details:p1", "not-json{")

    assert await redis_store.get("products:details:p1") is None
    assert await redis_client.exists("test:products:details:p1") == 0


@pytest.mark.asyncio
async def test_corrupt_catalog_entry_falls_back_to_repository(
    redis_store, redis_client, repository, profile_provider, target_provider
):
    key = catalog_key(CatalogFilters(status=ProductStatus.AVAILABLE))
    await redis_client.set(f"test:{key}", "not-json{")
    service = CatalogLookupService(
        repository=repository,
        cache=ProductCache(redis_store),
        profile_provider=profile_provider,
        target_provider=target_provider,
        purchase_rules=ProductPurchaseRules(),
        clock=lambda: date(2025, 6, 15),
    )

    page = await service.find_all(ProductQuery())

    assert [product.id for product in page.data] == ["p1", "p2", "p3"]
    assert await redis_store.get(key) is not None


@pytest.mark.asyncio
async def test_redis_ping(redis_store):
    assert await redis_store.ping() is True
    assert await RedisCacheStore(key_prefix="").ping() is False


@pytest.mark.asyncio
async def test_product_cache_round_trip(redis_store, products):
    cache = ProductCache(redis_store)

    await cache.set_list("list", products)
    await cache.set_item(details_key("p1"), products[0])

    assert await cache.get_list("list") == products
    assert await cache.get_item(details_key("p1")) == products[0]


@pytest.mark.asyncio
async def test_malformed_entries_are_discarded(cache_store):
    cache = ProductCache(cache_store)
    await cache_store.set("list", [{"id": "broken"}], ttl_seconds=60)

    assert await cache.get_list("list") is None
    assert await cache_store.get("list") is None


@pytest.mark.asyncio
async def test_invalidate_product(cache_store, products):
    cache = ProductCache(cache_store)
    await cache.set_item(details_key("p1"), products[0])
    await cache.set_item(code_key("CODE-p1"), products[0])

    await cache.invalidate_product("p1", code="CODE-p1")

    assert await cache.get_item(details_key("p1")) is None
    assert await cache.get_item(code_key("CODE-p1")) is None
