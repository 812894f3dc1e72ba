from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from conftest import DAI, USDC
from stableswap.errors import RpcFailureError
from stableswap.models.pricing import PriceCacheEntry, PriceKey
from stableswap.pricing.activity import ManualActivity
from stableswap.pricing.price_cache import PriceCache
from stableswap.pricing.snapshots import PriceSnapshotStore

KEY = PriceKey.of(1, USDC)


class _FakeRateSource:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def fetch(self, network, token):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return Decimal(result)


def _cache(source, clock, **kwargs) -> PriceCache:
    kwargs.setdefault("ttl_ms", 14_000)
    kwargs.setdefault("poll_interval_ms", 15_000)
    return PriceCache(source, clock=clock, **kwargs)


def test_get_is_non_blocking_for_unknown_key(fake_clock):
    cache = _cache(_FakeRateSource("2500"), fake_clock)
    snapshot = cache.get(KEY)

    assert snapshot.price is None
    assert snapshot.is_stale is True
    assert str(KEY) == f"1:{USDC}"


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_fetch(fake_clock):
    source = _FakeRateSource("2500")
    source.gate = asyncio.Event()
    cache = _cache(source, fake_clock)

    first = cache.ensure_fresh(KEY)
    second = cache.ensure_fresh(KEY)
    third = cache.refresh(KEY)
    await asyncio.sleep(0)

    assert first is second is third
    assert cache.get(KEY).fetch_in_flight is True
    source.gate.set()
    snapshots = await asyncio.gather(first, second, third)

    assert source.calls == 1
    assert all(s.price == Decimal(2500) for s in snapshots)
    assert cache.get(KEY).fetch_in_flight is False


@pytest.mark.asyncio
async def test_ttl_and_poll_interval_scenario(fake_clock):
    source = _FakeRateSource("2500", "2510")
    cache = _cache(source, fake_clock)

    await cache.ensure_fresh(KEY)
    assert cache.get(KEY).price == Decimal(2500)

    fake_clock.now = 5_000
    await cache.ensure_fresh(KEY)
    assert source.calls == 1
    assert cache.get(KEY).is_stale is False

    fake_clock.now = 14_500
    stale = cache.get(KEY)
    assert stale.price == Decimal(2500)
    assert stale.is_stale is True

    fake_clock.now = 15_000
    fresh = await cache.ensure_fresh(KEY)
    assert source.calls == 2
    assert fresh.price == Decimal(2510)
    assert fresh.fetched_at == 15_000
    assert fresh.is_stale is False


@pytest.mark.asyncio
async def test_failed_fetch_serves_stale_value_and_records_error(fake_clock):
    source = _FakeRateSource("2500", RpcFailureError("node unreachable"))
    cache = _cache(source, fake_clock)
    await cache.ensure_fresh(KEY)

    fake_clock.now = 20_000
    snapshot = await cache.ensure_fresh(KEY)

    assert snapshot.price == Decimal(2500)
    assert snapshot.fetched_at == 0
    assert snapshot.is_stale is True
    assert "node unreachable" in snapshot.last_error


@pytest.mark.asyncio
async def test_failure_throttles_until_next_poll_interval(fake_clock):
    source = _FakeRateSource(RpcFailureError("down"), RpcFailureError("down"), "2500")
    cache = _cache(source, fake_clock)

    await cache.ensure_fresh(KEY)
    fake_clock.now = 10_000
    await cache.ensure_fresh(KEY)
    assert source.calls == 1

    fake_clock.now = 15_000
    await cache.ensure_fresh(KEY)
    assert source.calls == 2

    # explicit refresh ignores the throttle
    recovered = await cache.refresh(KEY)
    assert source.calls == 3
    assert recovered.price == Decimal(2500)
    assert recovered.last_error is None


@pytest.mark.asyncio
async def test_value_is_replaced_only_by_strictly_newer_fetch(fake_clock):
    source = _FakeRateSource("2500", "2501", "2502")
    cache = _cache(source, fake_clock)
    seen = []
    for now in (0, 1_000, 1_000):
        fake_clock.now = now
        seen.append((await cache.refresh(KEY)).fetched_at)

    assert seen == [0, 1_000, 1_000]
    assert cache.get(KEY).price == Decimal(2501)


@pytest.mark.asyncio
async def test_subscribers_receive_updates_and_errors(fake_clock):
    source = _FakeRateSource("2500", RpcFailureError("boom"))
    cache = _cache(source, fake_clock)
    queue = cache.subscribe(KEY)

    await cache.refresh(KEY)
    await cache.refresh(KEY)

    first = queue.get_nowait()
    second = queue.get_nowait()
    assert first.price == Decimal(2500) and first.last_error is None
    assert second.price == Decimal(2500) and "boom" in second.last_error

    cache.unsubscribe(KEY, queue)
    await cache.refresh(KEY)
    assert queue.empty()


@pytest.mark.asyncio
async def test_polling_is_reference_counted_and_gated_on_activity(fake_clock):
    source = _FakeRateSource("2500")
    activity = ManualActivity(active=False)
    cache = _cache(source, fake_clock, activity=activity)

    cache.start(KEY, interval_ms=10)
    cache.start(KEY, interval_ms=10)
    await asyncio.sleep(0.12)
    assert source.calls == 0

    activity.set_active(True)
    await asyncio.sleep(0.12)
    assert source.calls == 1

    activity.set_active(False)
    assert cache.get(KEY).price == Decimal(2500)

    cache.stop(KEY)
    assert cache.is_polling(KEY) is True
    cache.stop(KEY)
    assert cache.is_polling(KEY) is False
    await cache.close()


@pytest.mark.asyncio
async def test_lru_bound_keeps_polled_keys(fake_clock):
    cache = _cache(_FakeRateSource("1"), fake_clock, max_entries=1, activity=ManualActivity(active=False))
    polled = PriceKey.of(1, DAI)
    idle = PriceKey.of(1, USDC)
    newest = PriceKey.of(1, "0x0000000000000000000000000000000000000001")

    cache.start(polled)
    await cache.refresh(idle)
    await cache.refresh(newest)

    assert polled in cache
    assert idle not in cache
    assert newest in cache
    await cache.close()


@pytest.mark.asyncio
async def test_restore_seeds_entry_from_redis_snapshot(fake_clock, fake_redis):
    store = PriceSnapshotStore(fake_redis, prefix="stableswap:price:")
    writer = _cache(_FakeRateSource("2500"), fake_clock, snapshot_store=store)
    fake_clock.now = 1_000
    await writer.refresh(KEY)
    assert f"stableswap:price:1:{USDC}" in fake_redis.data

    fake_clock.now = 60_000
    reader = _cache(_FakeRateSource("2600"), fake_clock, snapshot_store=store)
    assert await reader.restore(KEY) is True
    snapshot = reader.get(KEY)

    assert snapshot.price == Decimal(2500)
    assert snapshot.fetched_at == 1_000
    assert snapshot.is_stale is True
    assert await reader.restore(KEY) is False


def test_snapshot_store_tolerates_redis_failures():
    class _BrokenRedis:
        def set(self, key, value):
            raise ConnectionError("redis down")

        def get(self, key):
            raise ConnectionError("redis down")

    store = PriceSnapshotStore(_BrokenRedis())
    store.save(PriceCacheEntry(key=KEY, value=Decimal(1), fetched_at=0))
    assert store.load(KEY) is None
