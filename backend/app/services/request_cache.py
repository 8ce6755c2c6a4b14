"""In-flight request deduplication for plan generation.

Identical requests within the TTL share one computation: the first caller
creates a task, later callers await the same task. Failed computations are
evicted immediately so the next caller retries.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import time
from abc import ABC, abstractmethod
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

CACHE_BUCKET_SECONDS = 1800


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_cache_ttl() -> float:
    return _env_float("PLAN_CACHE_TTL_SECONDS", 30.0)


def build_cache_key(request, now: Optional[float] = None) -> str:
    """Canonical request fields plus a 30-minute time bucket."""
    fields = dict(request.cache_fields())
    fields["timestamp"] = math.floor((time.time() if now is None else now) / CACHE_BUCKET_SECONDS)
    return json.dumps(fields, sort_keys=True)


class PlanCache(ABC):
    """Interface for the orchestrator's result cache."""

    @abstractmethod
    async def get_or_compute(self, key: str, compute_fn: Callable[[], Awaitable[Any]]) -> Any:
        ...


class RequestCache(PlanCache):
    """Process-local cache of in-flight and recently finished computations."""

    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl_seconds = _get_cache_ttl() if ttl_seconds is None else ttl_seconds
        self._tasks: Dict[str, asyncio.Task] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    async def get_or_compute(self, key: str, compute_fn: Callable[[], Awaitable[Any]]) -> Any:
        # No await between lookup and insert, so this is atomic on the loop
        task = self._tasks.get(key)
        if task is None:
            loop = asyncio.get_running_loop()
            task = loop.create_task(compute_fn())
            self._tasks[key] = task
            self._timers[key] = loop.call_later(self.ttl_seconds, self._expire, key, task)
            task.add_done_callback(partial(self._on_done, key))
        else:
            logger.info("Plan cache hit, awaiting shared computation")
        # A disconnecting caller must not cancel the shared computation
        return await asyncio.shield(task)

    def _remove(self, key: str, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
            timer = self._timers.pop(key, None)
            if timer is not None:
                timer.cancel()

    def _expire(self, key: str, task: asyncio.Task) -> None:
        self._remove(key, task)

    def _on_done(self, key: str, task: asyncio.Task) -> None:
        if task.cancelled():
            self._remove(key, task)
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Evicting failed plan computation: %s", exc)
            self._remove(key, task)

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._tasks.clear()
        self._timers.clear()
