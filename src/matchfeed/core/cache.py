from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from pydantic import ValidationError

from matchfeed.types import RankedJobList

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheStore(Protocol):
    """Best-effort key/value store. Implementations never raise."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_sec: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class DisabledCacheStore:
    """Used when no cache is configured: every read misses, every write is dropped."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str, ttl_sec: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None


class RedisCacheStore:
    """Redis-backed store. After any failure it stops calling Redis for `retry_after_sec`."""

    def __init__(self, client: Any, *, retry_after_sec: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.client = client
        self.retry_after_sec = retry_after_sec
        self.clock = clock
        self._suspended_until = 0.0

    @classmethod
    def from_url(cls, url: str, *, retry_after_sec: float = 30.0) -> "RedisCacheStore":
        from redis.asyncio import Redis

        return cls(
            Redis.from_url(url, decode_responses=True, socket_timeout=2, socket_connect_timeout=2),
            retry_after_sec=retry_after_sec,
        )

    @property
    def suspended(self) -> bool:
        return self.clock() < self._suspended_until

    def _suspend(self, op: str, key: str, exc: Exception) -> None:
        self._suspended_until = self.clock() + self.retry_after_sec
        logger.warning(
            "Cache %s failed key=%s error=%s; bypassing cache for %ss", op, key, exc, self.retry_after_sec
        )

    async def get(self, key: str) -> str | None:
        if self.suspended:
            return None
        try:
            return await self.client.get(key)
        except Exception as exc:
            self._suspend("get", key, exc)
            return None

    async def set(self, key: str, value: str, ttl_sec: int) -> None:
        if self.suspended:
            return
        try:
            await self.client.set(key, value, ex=ttl_sec)
        except Exception as exc:
            self._suspend("set", key, exc)

    async def delete(self, key: str) -> None:
        if self.suspended:
            return
        try:
            await self.client.delete(key)
        except Exception as exc:
            self._suspend("delete", key, exc)


def build_cache_store(redis_url: str, *, retry_after_sec: float = 30.0) -> CacheStore:
    if not redis_url:
        logger.info("No REDIS_URL configured; ranked jobs will not be cached")
        return DisabledCacheStore()
    return RedisCacheStore.from_url(redis_url, retry_after_sec=retry_after_sec)


class SingleFlight:
    """Process-local coordination: at most one computation in flight at a time.

    Only valid for a single process. Running several instances needs the
    coordination to live in the shared cache store instead.
    """

    def __init__(self) -> None:
        self._inflight: asyncio.Task[Any] | None = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def do(self, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._run(fn))
            task.add_done_callback(_retrieve_outcome)
            self._inflight = task
        else:
            logger.info("Waiting for ongoing ranking computation")
        # a cancelled caller must not cancel the shared computation
        return await asyncio.shield(task)

    async def _run(self, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fn()
        finally:
            self._inflight = None


def _retrieve_outcome(task: asyncio.Task[Any]) -> None:
    # every waiter may have been cancelled; mark the error as seen so asyncio does not report it
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Shared computation failed: %s", task.exception())


class MatchCache:
    """Cache-aside front for the ranking pipeline under one global key."""

    def __init__(
        self,
        store: CacheStore,
        compute: Callable[[], Awaitable[RankedJobList]],
        *,
        flight: SingleFlight | None = None,
        key: str = "jobs:all",
        ttl_sec: int = 3600,
    ):
        self.store = store
        self.compute = compute
        self.flight = flight or SingleFlight()
        self.key = key
        self.ttl_sec = ttl_sec

    async def get_ranked_jobs(self) -> RankedJobList:
        cached = await self.store.get(self.key)
        if cached:
            try:
                return RankedJobList.model_validate_json(cached)
            except ValidationError:
                logger.warning("Discarding undecodable cached ranking under %s", self.key)

        return await self.flight.do(self._compute_and_store)

    async def invalidate(self) -> None:
        await self.store.delete(self.key)

    async def _compute_and_store(self) -> RankedJobList:
        logger.info("Calculating match scores")
        ranked = await self.compute()
        if ranked.scored:
            await self.store.set(self.key, ranked.model_dump_json(), self.ttl_sec)
        return ranked
