from __future__ import annotations

import asyncio
import gc

import pytest

from matchfeed.core.cache import DisabledCacheStore, MatchCache, RedisCacheStore, SingleFlight, build_cache_store
from matchfeed.types import RankedJob, RankedJobList


class CountingCompute:
    def __init__(self, *, delay: float = 0.05, scored: bool = True) -> None:
        self.calls = 0
        self.delay = delay
        self.scored = scored

    async def __call__(self) -> RankedJobList:
        self.calls += 1
        await asyncio.sleep(self.delay)
        job = RankedJob(id=f"job-{self.calls}", title="Engineer", match_score=80, match_reason="fit")
        return RankedJobList(jobs=[job], scored=self.scored)


class BrokenRedisClient:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")

    async def delete(self, key):
        raise ConnectionError("redis down")


def test_concurrent_misses_share_one_computation(memory_cache) -> None:
    compute = CountingCompute()
    cache = MatchCache(memory_cache, compute)

    async def scenario() -> list[RankedJobList]:
        return await asyncio.gather(*[cache.get_ranked_jobs() for _ in range(10)])

    results = asyncio.run(scenario())

    assert compute.calls == 1
    assert len({result.model_dump_json() for result in results}) == 1
    assert not cache.flight.in_flight


def test_hit_skips_computation_and_invalidate_forces_recompute(memory_cache) -> None:
    compute = CountingCompute(delay=0)
    cache = MatchCache(memory_cache, compute, ttl_sec=3600)

    async def scenario() -> tuple[RankedJobList, RankedJobList, RankedJobList]:
        first = await cache.get_ranked_jobs()
        second = await cache.get_ranked_jobs()
        await cache.invalidate()
        third = await cache.get_ranked_jobs()
        return first, second, third

    first, second, third = asyncio.run(scenario())

    assert compute.calls == 2
    assert first.jobs[0].id == second.jobs[0].id == "job-1"
    assert third.jobs[0].id == "job-2"
    assert memory_cache.ttls["jobs:all"] == 3600


def test_unscored_lists_are_not_cached(memory_cache) -> None:
    compute = CountingCompute(delay=0, scored=False)
    cache = MatchCache(memory_cache, compute)

    asyncio.run(cache.get_ranked_jobs())

    assert "jobs:all" not in memory_cache.values


def test_undecodable_cache_entry_is_a_miss(memory_cache) -> None:
    memory_cache.values["jobs:all"] = "not json"
    compute = CountingCompute(delay=0)

    result = asyncio.run(MatchCache(memory_cache, compute).get_ranked_jobs())

    assert compute.calls == 1
    assert result.jobs[0].id == "job-1"


def test_failed_computation_clears_in_flight_handle(memory_cache) -> None:
    flight = SingleFlight()
    attempts = {"count": 0}

    async def failing() -> RankedJobList:
        attempts["count"] += 1
        raise RuntimeError("db offline")

    async def scenario() -> None:
        with pytest.raises(RuntimeError):
            await flight.do(failing)
        assert not flight.in_flight
        with pytest.raises(RuntimeError):
            await flight.do(failing)

    asyncio.run(scenario())
    assert attempts["count"] == 2


def test_unavailable_redis_degrades_to_always_miss() -> None:
    compute = CountingCompute(delay=0)
    cache = MatchCache(RedisCacheStore(BrokenRedisClient()), compute)

    async def scenario() -> RankedJobList:
        await cache.get_ranked_jobs()
        await cache.invalidate()
        return await cache.get_ranked_jobs()

    result = asyncio.run(scenario())

    assert compute.calls == 2
    assert len(result) == 1


def test_missing_redis_url_disables_cache() -> None:
    assert isinstance(build_cache_store(""), DisabledCacheStore)


class CountingBrokenRedisClient(BrokenRedisClient):
    def __init__(self) -> None:
        self.calls = 0

    async def get(self, key):
        self.calls += 1
        return await super().get(key)

    async def set(self, key, value, ex=None):
        self.calls += 1
        return await super().set(key, value, ex=ex)


def test_redis_failure_suspends_the_store_until_retry_window_passes() -> None:
    client = CountingBrokenRedisClient()
    now = {"value": 100.0}
    store = RedisCacheStore(client, retry_after_sec=30, clock=lambda: now["value"])

    async def scenario() -> None:
        assert await store.get("jobs:all") is None
        await store.set("jobs:all", "[]", 3600)
        assert await store.get("jobs:all") is None
        assert client.calls == 1
        assert store.suspended

        now["value"] += 31
        assert await store.get("jobs:all") is None
        assert client.calls == 2

    asyncio.run(scenario())


def test_failure_with_every_waiter_cancelled_is_not_reported_unretrieved() -> None:
    flight = SingleFlight()
    reported: list[dict] = []

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        gate = asyncio.Event()

        async def failing() -> RankedJobList:
            await gate.wait()
            raise RuntimeError("db offline")

        waiter = asyncio.ensure_future(flight.do(failing))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        gate.set()
        while flight.in_flight:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0)
        gc.collect()
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert not [context for context in reported if "never retrieved" in context.get("message", "")]
