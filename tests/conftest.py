"""Pytest configuration and fixtures for the catalog service."""

from datetime import date

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from src.models.audience_target import AudienceTarget
from src.models.caller import CallerProfile
from src.models.product import AudienceType, Product, ProductStatus
from src.services.cache.product_cache import ProductCache
from src.services.cache.store import InMemoryCacheStore, RedisCacheStore, get_cache_store
from src.services.catalog.business_rules import ProductPurchaseRules
from src.services.catalog.lookup import CatalogLookupService
from src.services.clients.catalog_repository import (
    InMemoryCatalogRepository,
    get_catalog_repository,
)
from src.services.clients.profile_provider import (
    InMemoryUserProfileProvider,
    get_profile_provider,
)
from src.services.clients.target_provider import (
    InMemoryAudienceTargetProvider,
    get_target_provider,
)

TODAY = date(2025, 6, 15)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


def make_product(product_id: str, **overrides) -> Product:
    """Build an AVAILABLE product with sensible defaults."""
    fields = {
        "id": product_id,
        "code": f"CODE-{product_id}",
        "business_id": f"prod-{product_id}",
        "name": f"Product {product_id}",
        "description": "Workshop material",
        "category": "Workshop",
        "organization_id": "org-1",
        "product_year": "2025",
        "status": ProductStatus.AVAILABLE,
        "general_price": 100.0,
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture()
def product_factory():
    return make_product


@pytest.fixture()
def products():
    return [
        make_product("p1", audience_type=AudienceType.OT_OTA, otpr_price=80.0),
        make_product("p2", audience_type=AudienceType.AFFILIATE),
        make_product("p3", membership_only=True),
        make_product("p4", status=ProductStatus.DRAFT),
        make_product("p5", end_date=date(2024, 12, 31)),
    ]


@pytest.fixture()
def repository(products):
    return InMemoryCatalogRepository(products)


@pytest.fixture()
def profile_provider():
    return InMemoryUserProfileProvider(
        [
            CallerProfile(caller_id="member-on", active_membership=True, province=1),
            CallerProfile(caller_id="lapsed-qc", active_membership=False, province=2),
        ]
    )


@pytest.fixture()
def target_provider():
    return InMemoryAudienceTargetProvider(
        [AudienceTarget(id="t1", product_id="p1", province=[1])]
    )


@pytest.fixture()
def cache_store():
    store = InMemoryCacheStore()
    yield store
    store.clear()


@pytest.fixture()
def service(repository, cache_store, profile_provider, target_provider):
    return CatalogLookupService(
        repository=repository,
        cache=ProductCache(cache_store),
        profile_provider=profile_provider,
        target_provider=target_provider,
        purchase_rules=ProductPurchaseRules(),
        clock=lambda: TODAY,
    )


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    client = fakeredis.FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()


@pytest_asyncio.fixture()
async def redis_store(redis_client):
    return RedisCacheStore(redis_client, key_prefix="test:")


@pytest_asyncio.fixture()
async def client(repository, profile_provider, target_provider, redis_store):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from src.main import app

    app.dependency_overrides[get_catalog_repository] = lambda: repository
    app.dependency_overrides[get_profile_provider] = lambda: profile_provider
    app.dependency_overrides[get_target_provider] = lambda: target_provider
    app.dependency_overrides[get_cache_store] = lambda: redis_store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
