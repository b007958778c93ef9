"""Tests for the fail-open cache store, TTL policy and key builders."""

from __future__ import annotations

import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from flightbooker_api.cache import cache_keys
from flightbooker_api.cache.redis_client import (
    KEY_ABSENT,
    NO_EXPIRY,
    CacheStats,
    CacheStore,
    close_redis,
    get_cache_store,
    init_redis,
)
from flightbooker_api.cache.ttl import TTL_POLICY, CacheCategory, ttl_for


class BrokenRedis:
    """Client whose every command fails as if Redis were unreachable."""

    def _fail(self, *args, **kwargs):
        msg = "Connection refused"
        raise RedisConnectionError(msg)

    async def get(self, *args, **kwargs):
        self._fail()

    set = delete = exists = ttl = incr = expire = mget = mset = get
    ping = flushdb = info = dbsize = get

    def pipeline(self, *args, **kwargs):
        self._fail()

    async def scan_iter(self, *args, **kwargs):
        self._fail()
        yield  # pragma: no cover


class SlowRedis(BrokenRedis):
    async def get(self, *args, **kwargs):
        await asyncio.sleep(5)


# ---------------------------------------------------------------------------
# TTL policy
# ---------------------------------------------------------------------------


def test_every_category_has_a_ttl():
    assert set(TTL_POLICY) == set(CacheCategory)
    assert all(ttl > 0 for ttl in TTL_POLICY.values())


def test_ttl_values():
    assert ttl_for(CacheCategory.FLIGHT_SEARCH) == 300
    assert ttl_for(CacheCategory.FLIGHT_SEARCH_FALLBACK) == 60
    assert ttl_for(CacheCategory.IDEMPOTENCY) == 86400
    assert ttl_for(CacheCategory.RATE_LIMIT_SHORT) == 60


def test_ttl_policy_is_read_only():
    with pytest.raises(TypeError):
        TTL_POLICY[CacheCategory.FLIGHT_SEARCH] = 1  # type: ignore[index]


# ---------------------------------------------------------------------------
# Key builders
# ---------------------------------------------------------------------------


def test_flight_search_key_is_case_insensitive():
    a = cache_keys.flight_search_key("jfk", "lax", "2025-12-01", None, 1, 0, "ECONOMY")
    b = cache_keys.flight_search_key("JFK", "LAX", "2025-12-01", None, 1, 0, "economy")
    assert a == b == "flight:search:jfk-lax-2025-12-01-oneway-1-0-economy-0-usd"


def test_flight_search_key_distinguishes_fields():
    base = cache_keys.flight_search_key("JFK", "LAX", "2025-12-01")
    assert base != cache_keys.flight_search_key("JFK", "LAX", "2025-12-02")
    assert base != cache_keys.flight_search_key(
        "JFK", "LAX", "2025-12-01", "2025-12-08"
    )
    assert base != cache_keys.flight_search_key("JFK", "LAX", "2025-12-01", adults=2)
    assert base != cache_keys.flight_search_key(
        "JFK", "LAX", "2025-12-01", cabin_class="business"
    )
    assert base != cache_keys.flight_search_key("JFK", "LAX", "2025-12-01", infants=1)
    assert base != cache_keys.flight_search_key(
        "JFK", "LAX", "2025-12-01", currency="EUR"
    )
    assert base == cache_keys.flight_search_key(
        "JFK", "LAX", "2025-12-01", currency="usd"
    )


def test_normalised_key_helpers():
    assert cache_keys.airport_key("jfk") == "airport:JFK"
    assert cache_keys.airport_search_key("New York") == "airport:search:new york"
    assert cache_keys.promo_code_key("summer10") == "promo:SUMMER10"
    assert cache_keys.provider_health_key("amadeus") == "provider:health:amadeus"
    assert cache_keys.idempotency_key("idem-42") == "idempotency:idem-42"
    assert cache_keys.rate_limit_key("ip:1.2.3.4", "100") == "rate_limit:ip:1.2.3.4:100"


# ---------------------------------------------------------------------------
# Store against a live (in-process) Redis
# ---------------------------------------------------------------------------


async def test_set_get_round_trip(cache_store: CacheStore):
    value = {"flights": [{"id": "OFF-1", "price": 299.5}], "count": 1}
    assert await cache_store.set("flight:search:x", value, 300) is True
    assert await cache_store.get("flight:search:x") == value


async def test_get_missing_key_returns_none(cache_store: CacheStore):
    assert await cache_store.get("nope") is None


@pytest.mark.timeout(10)
async def test_entry_expires(cache_store: CacheStore):
    await cache_store.set("short", "lived", 1)
    assert await cache_store.get("short") == "lived"
    await asyncio.sleep(1.5)
    assert await cache_store.get("short") is None


async def test_ttl_reporting(cache_store: CacheStore):
    await cache_store.set("forever", 1)
    await cache_store.set("bounded", 1, 120)
    assert await cache_store.ttl("forever") == NO_EXPIRY
    assert 0 < await cache_store.ttl("bounded") <= 120
    assert await cache_store.ttl("absent") == KEY_ABSENT


async def test_undecodable_payload_is_a_miss(cache_store: CacheStore, redis_client):
    await redis_client.set("raw", "{not json")
    assert await cache_store.get("raw") is None


async def test_unserialisable_value_is_rejected(cache_store: CacheStore):
    circular: dict = {}
    circular["self"] = circular
    assert await cache_store.set("bad", circular) is False


async def test_delete_and_exists(cache_store: CacheStore):
    await cache_store.set("k", "v")
    assert await cache_store.exists("k") is True
    assert await cache_store.delete("k") is True
    assert await cache_store.exists("k") is False


async def test_increment_sets_ttl_only_on_create(cache_store: CacheStore):
    assert await cache_store.increment("counter", 60) == 1
    assert await cache_store.increment("counter", 600) == 2
    assert 0 < await cache_store.ttl("counter") <= 60


async def test_get_many_and_set_many(cache_store: CacheStore):
    assert await cache_store.set_many({"a": 1, "b": [2]}, ttl=60) is True
    assert await cache_store.get_many(["a", "missing", "b"]) == [1, None, [2]]
    assert await cache_store.set_many({"c": "x"}) is True
    assert await cache_store.ttl("c") == NO_EXPIRY


async def test_delete_pattern_only_touches_matches(cache_store: CacheStore):
    for i in range(5):
        await cache_store.set(f"flight:search:k{i}", i)
    await cache_store.set("airport:JFK", {"code": "JFK"})
    assert await cache_store.delete_pattern("flight:search:*") == 5
    assert await cache_store.exists("airport:JFK") is True


async def test_flush_all(cache_store: CacheStore):
    await cache_store.set("a", 1)
    await cache_store.set("b", 2)
    assert await cache_store.flush_all() is True
    assert await cache_store.scan_keys("*") == []


async def test_stats_on_live_backend(cache_store: CacheStore):
    stats = await cache_store.stats()
    assert stats.connected is True
    assert await cache_store.ping() is True


def test_hit_rate():
    assert CacheStats(connected=True, hits=3, misses=1).hit_rate == 0.75
    assert CacheStats(connected=True).hit_rate == 0.0


# ---------------------------------------------------------------------------
# Fail-open behaviour
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "store",
    [CacheStore(None), CacheStore(BrokenRedis())],  # type: ignore[arg-type]
    ids=["disabled", "unreachable"],
)
async def test_operations_fail_open(store: CacheStore):
    assert await store.get("k") is None
    assert await store.set("k", "v", 60) is False
    assert await store.delete("k") is False
    assert await store.exists("k") is False
    assert await store.ttl("k") == KEY_ABSENT
    assert await store.increment("k", 60) == 0
    assert await store.get_many(["a", "b"]) == [None, None]
    assert await store.set_many({"a": 1}, ttl=60) is False
    assert await store.delete_pattern("flight:search:*") == 0
    assert await store.scan_keys("*") == []
    assert await store.flush_all() is False
    assert await store.ping() is False
    assert (await store.stats()).connected is False


@pytest.mark.timeout(5)
async def test_slow_backend_times_out_as_miss():
    store = CacheStore(SlowRedis(), operation_timeout=0.1)  # type: ignore[arg-type]
    assert await store.get("k") is None


# ---------------------------------------------------------------------------
# Shared pool lifecycle
# ---------------------------------------------------------------------------


async def test_disabled_pool_lifecycle():
    store = await init_redis("redis://localhost:6379/0", enabled=False)
    try:
        assert get_cache_store() is store
        assert store.enabled is False
    finally:
        await close_redis()
    with pytest.raises(RuntimeError):
        get_cache_store()
