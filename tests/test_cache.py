"""Tests for etf_tracker.utils.cache and rate_limiter."""

import os
import time

import pytest

from etf_tracker.utils.cache import DataCache, MemoryCache
from etf_tracker.utils.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestMemoryCache:

    def test_get_before_expiry(self):
        clock = FakeClock()
        cache = MemoryCache(60, clock=clock)
        cache.set("quote:VWCE", 105.2)
        clock.now += 59
        assert cache.get("quote:VWCE") == 105.2

    def test_expired_entry_evicted_on_read(self):
        clock = FakeClock()
        cache = MemoryCache(60, clock=clock)
        cache.set("quote:VWCE", 105.2)
        clock.now += 61
        assert cache.get("quote:VWCE") is None
        assert len(cache) == 0

    def test_evict_expired(self):
        clock = FakeClock()
        cache = MemoryCache(60, clock=clock)
        cache.set("old", 1)
        clock.now += 30
        cache.set("new", 2)
        clock.now += 40
        assert cache.evict_expired() == 1
        assert cache.get("new") == 2

    def test_writes_sweep_expired_keys(self):
        clock = FakeClock()
        cache = MemoryCache(60, clock=clock)
        for day in range(1000):
            cache.set(f"history:VWCE:{day}", [100.0])
            clock.now += 61
        assert len(cache) == 1

    def test_write_keeps_fresh_keys(self):
        clock = FakeClock()
        cache = MemoryCache(60, clock=clock)
        cache.set("a", 1)
        clock.now += 10
        cache.set("b", 2)
        assert len(cache) == 2

    def test_missing_key(self):
        assert MemoryCache(60).get("nope") is None

    def test_clear(self):
        cache = MemoryCache(60)
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0


class TestDataCache:

    def test_roundtrip(self, tmp_path):
        cache = DataCache("price_history", ttl_seconds=3600, cache_dir=tmp_path)
        cache.set("history:VWCE", {"values": [1.0, 2.0]})
        assert cache.get("history:VWCE") == {"values": [1.0, 2.0]}

    def test_expired_file_removed(self, tmp_path):
        cache = DataCache("price_history", ttl_seconds=60, cache_dir=tmp_path)
        cache.set("history:VWCE", [1, 2])
        path = cache._key_path("history:VWCE")
        stale = time.time() - 120
        os.utime(path, (stale, stale))
        assert cache.get("history:VWCE") is None
        assert not path.exists()

    def test_corrupt_file_ignored(self, tmp_path):
        cache = DataCache("price_history", ttl_seconds=60, cache_dir=tmp_path)
        cache._key_path("k").write_text("{not json")
        assert cache.get("k") is None


class TestRateLimiter:

    def test_under_limit_does_not_sleep(self):
        limiter = RateLimiter(calls_per_minute=5)
        start = time.monotonic()
        for _ in range(5):
            limiter.wait()
        assert time.monotonic() - start < 0.5

    def test_over_limit_waits_for_window(self):
        limiter = RateLimiter(calls_per_minute=2, window_seconds=0.3)
        start = time.monotonic()
        for _ in range(3):
            limiter.wait()
        assert time.monotonic() - start == pytest.approx(0.3, abs=0.25)
