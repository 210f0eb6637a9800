from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from matchfeed.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RACE_POOL: ThreadPoolExecutor | None = None
_RACE_POOL_LOCK = threading.Lock()


class RaceTimeout(TimeoutError):
    pass


@dataclass(slots=True)
class _RaceState:
    label: str
    settled: bool = False


def get_race_pool() -> ThreadPoolExecutor:
    """Worker pool reserved for raced calls, separate from the loop's default executor."""
    global _RACE_POOL
    with _RACE_POOL_LOCK:
        if _RACE_POOL is None:
            _RACE_POOL = ThreadPoolExecutor(
                max_workers=get_settings().race_max_workers,
                thread_name_prefix="matchfeed-race",
            )
        return _RACE_POOL


async def race_with_timeout(
    fn: Callable[[], T],
    timeout_sec: float,
    *,
    label: str = "call",
    executor: Executor | None = None,
) -> T:
    """Run a blocking call in a worker thread against a timer; the first to finish wins.

    The losing call is abandoned, not killed: the worker thread keeps running and
    whatever it produces after the race has settled is dropped. Abandoned calls
    only ever occupy the race pool, so `asyncio.to_thread` work is never queued
    behind them. A call still waiting for a worker when the race settles is skipped.
    """
    loop = asyncio.get_running_loop()
    state = _RaceState(label=label)
    winner: asyncio.Future[T] = loop.create_future()

    def _guarded() -> T | None:
        if state.settled:
            logger.debug("Skipping %s; race settled before a worker was free", state.label)
            return None
        return fn()

    def _on_call_done(call: asyncio.Future[Any]) -> None:
        if call.cancelled():
            return
        exc = call.exception()
        if state.settled:
            logger.debug("Discarding late %s outcome (error=%s)", state.label, exc)
            return
        state.settled = True
        if exc is not None:
            winner.set_exception(exc)
        else:
            winner.set_result(call.result())

    def _on_timeout() -> None:
        if state.settled:
            return
        state.settled = True
        winner.set_exception(RaceTimeout(f"{state.label} exceeded {timeout_sec}s"))

    call = loop.run_in_executor(executor or get_race_pool(), _guarded)
    call.add_done_callback(_on_call_done)
    timer = loop.call_later(timeout_sec, _on_timeout)
    try:
        return await winner
    finally:
        timer.cancel()
        state.settled = True
