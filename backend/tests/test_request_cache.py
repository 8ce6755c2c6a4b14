"""Request cache tests — single computation per key, failure eviction, TTL expiry, keys."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio

import pytest

from app.schemas.plan_schema import PlanRequest
from app.services.request_cache import RequestCache, build_cache_key


# ===================================================================== #
#  get_or_compute                                                         #
# ===================================================================== #


class TestRequestCache:
    def test_concurrent_callers_share_one_computation(self):
        calls = []

        async def compute():
            calls.append(1)
            await asyncio.sleep(0.01)
            return {"plan": len(calls)}

        async def scenario():
            cache = RequestCache(ttl_seconds=30)
            return await asyncio.gather(*(cache.get_or_compute("k", compute) for _ in range(5)))

        results = asyncio.run(scenario())
        assert len(calls) == 1
        assert all(r == {"plan": 1} for r in results)

    def test_sequential_call_within_ttl_reuses_result(self):
        calls = []

        async def compute():
            calls.append(1)
            return len(calls)

        async def scenario():
            cache = RequestCache(ttl_seconds=30)
            first = await cache.get_or_compute("k", compute)
            second = await cache.get_or_compute("k", compute)
            return first, second

        assert asyncio.run(scenario()) == (1, 1)
        assert len(calls) == 1

    def test_different_keys_compute_separately(self):
        async def scenario():
            cache = RequestCache(ttl_seconds=30)
            a = await cache.get_or_compute("a", lambda: asyncio.sleep(0, result="A"))
            b = await cache.get_or_compute("b", lambda: asyncio.sleep(0, result="B"))
            return a, b, len(cache)

        assert asyncio.run(scenario()) == ("A", "B", 2)

    def test_failed_computation_is_evicted(self):
        calls = []

        async def compute():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return "ok"

        async def scenario():
            cache = RequestCache(ttl_seconds=30)
            with pytest.raises(RuntimeError):
                await cache.get_or_compute("k", compute)
            await asyncio.sleep(0)
            assert "k" not in cache
            return await cache.get_or_compute("k", compute)

        assert asyncio.run(scenario()) == "ok"
        assert len(calls) == 2

    def test_waiters_all_see_the_failure(self):
        async def compute():
            await asyncio.sleep(0.01)
            raise ValueError("bad output")

        async def scenario():
            cache = RequestCache(ttl_seconds=30)
            return await asyncio.gather(
                *(cache.get_or_compute("k", compute) for _ in range(3)),
                return_exceptions=True,
            )

        results = asyncio.run(scenario())
        assert all(isinstance(r, ValueError) for r in results)

    def test_entry_expires_after_ttl(self):
        calls = []

        async def compute():
            calls.append(1)
            return len(calls)

        async def scenario():
            cache = RequestCache(ttl_seconds=0.01)
            first = await cache.get_or_compute("k", compute)
            await asyncio.sleep(0.05)
            assert len(cache) == 0
            second = await cache.get_or_compute("k", compute)
            return first, second

        assert asyncio.run(scenario()) == (1, 2)

    def test_cancelled_caller_does_not_cancel_shared_task(self):
        async def compute():
            await asyncio.sleep(0.02)
            return "done"

        async def scenario():
            cache = RequestCache(ttl_seconds=30)
            impatient = asyncio.ensure_future(cache.get_or_compute("k", compute))
            await asyncio.sleep(0)
            impatient.cancel()
            return await cache.get_or_compute("k", compute)

        assert asyncio.run(scenario()) == "done"

    def test_ttl_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("PLAN_CACHE_TTL_SECONDS", "12")
        assert RequestCache().ttl_seconds == 12.0


# ===================================================================== #
#  build_cache_key                                                        #
# ===================================================================== #


class TestCacheKey:
    def test_same_request_same_bucket_same_key(self):
        req = PlanRequest(idea="Mobile coffee cart", location="Austin")
        assert build_cache_key(req, now=1800 * 10 + 5) == build_cache_key(req, now=1800 * 10 + 1700)

    def test_new_bucket_changes_key(self):
        req = PlanRequest(idea="Mobile coffee cart")
        assert build_cache_key(req, now=1800 * 10) != build_cache_key(req, now=1800 * 11)

    def test_idea_whitespace_is_normalized(self):
        a = PlanRequest(idea="  Dog walking app ")
        b = PlanRequest(idea="Dog walking app")
        assert build_cache_key(a, now=0) == build_cache_key(b, now=0)

    def test_parameters_change_key(self):
        a = PlanRequest(idea="Dog walking app", budget="10k-25k")
        b = PlanRequest(idea="Dog walking app", budget="25k-50k")
        assert build_cache_key(a, now=0) != build_cache_key(b, now=0)
