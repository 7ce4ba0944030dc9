import asyncio

import pytest

from gitfolio.domain.models.common import CacheKey
from gitfolio.infrastructure.cache.caching_service import (
    DEFAULT_TTL_SECONDS, CacheEntry, InMemoryCacheService, build_cache_key,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock):
    return InMemoryCacheService(default_ttl=60, clock=clock)


def test_cache_entry_expires_at_boundary():
    entry = CacheEntry(data="x", timestamp=100.0, ttl=10.0)
    assert not entry.is_expired(109.999)
    assert entry.is_expired(110.0)


@pytest.mark.asyncio
async def test_get_returns_value_while_fresh(cache: InMemoryCacheService, clock: FakeClock):
    await cache.set(CacheKey("k"), {"a": 1}, ttl=30)
    clock.advance(29.9)
    assert await cache.get(CacheKey("k")) == {"a": 1}


@pytest.mark.asyncio
async def test_expired_entry_returns_none_and_is_evicted(cache: InMemoryCacheService, clock: FakeClock):
    await cache.set(CacheKey("k"), "value", ttl=30)
    clock.advance(30)
    assert CacheKey("k") in cache
    assert await cache.get(CacheKey("k")) is None
    assert CacheKey("k") not in cache
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_set_uses_default_ttl(cache: InMemoryCacheService, clock: FakeClock):
    await cache.set(CacheKey("k"), "value")
    clock.advance(59)
    assert await cache.get(CacheKey("k")) == "value"
    clock.advance(1)
    assert await cache.get(CacheKey("k")) is None


@pytest.mark.asyncio
async def test_set_overwrites_and_resets_timestamp(cache: InMemoryCacheService, clock: FakeClock):
    await cache.set(CacheKey("k"), "old", ttl=10)
    clock.advance(8)
    await cache.set(CacheKey("k"), "new", ttl=10)
    clock.advance(8)
    assert await cache.get(CacheKey("k")) == "new"


@pytest.mark.asyncio
async def test_delete_and_clear(cache: InMemoryCacheService):
    await cache.set(CacheKey("a"), 1)
    await cache.set(CacheKey("b"), 2)
    await cache.delete(CacheKey("a"))
    assert await cache.get(CacheKey("a")) is None
    await cache.delete(CacheKey("missing"))
    await cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_concurrent_access_is_consistent(cache: InMemoryCacheService):
    await asyncio.gather(*(cache.set(CacheKey(f"k{i}"), i) for i in range(50)))
    values = await asyncio.gather(*(cache.get(CacheKey(f"k{i}")) for i in range(50)))
    assert values == list(range(50))


def test_default_ttl_is_five_minutes():
    assert InMemoryCacheService().default_ttl == DEFAULT_TTL_SECONDS == 300


def test_build_cache_key_without_params():
    assert build_cache_key("repo", "octocat/Hello-World") == "repo:octocat/Hello-World"


def test_build_cache_key_ignores_param_order():
    first = build_cache_key("repos", "octocat", {"page": 1, "sort": "updated"})
    second = build_cache_key("repos", "octocat", {"sort": "updated", "page": 1})
    assert first == second
    assert first == 'repos:octocat?{"page":1,"sort":"updated"}'


def test_build_cache_key_distinguishes_params():
    assert build_cache_key("repos", "octocat", {"page": 1}) != build_cache_key("repos", "octocat", {"page": 2})
