"""
Tests for the shared request cache.
"""
import asyncio
import json
import os
import sys
import tempfile
import unittest
import logging

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.cache_service import RequestCache, path_cache_key, search_cache_key

# Disable logging during tests
logging.disable(logging.CRITICAL)

class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

class TestRequestCache(unittest.TestCase):
    """Tests for RequestCache expiry and eviction."""

    def setUp(self):
        self.clock = FakeClock()
        self.cache = RequestCache(ttl=60, capacity=100, sweep_interval=30, clock=self.clock)

    def test_get_missing_key(self):
        self.assertIsNone(self.cache.get("nope"))

    def test_value_readable_until_ttl(self):
        """A value stays readable for every read before t + 60s."""
        self.cache.put("k", "v")

        for offset in (0, 1, 30, 59.9):
            self.clock.now = 1000.0 + offset
            self.assertEqual(self.cache.get("k"), "v")

    def test_value_absent_from_ttl_onwards(self):
        self.cache.put("k", "v")

        self.clock.now = 1060.0
        self.assertIsNone(self.cache.get("k"))
        self.assertEqual(len(self.cache), 0)

    def test_put_overwrites_and_restamps(self):
        self.cache.put("k", "old")
        self.clock.now = 1050.0
        self.cache.put("k", "new")

        self.clock.now = 1100.0
        self.assertEqual(self.cache.get("k"), "new")

    def test_capacity_keeps_most_recent(self):
        """150 distinct keys within the TTL leave exactly the newest 100."""
        for i in range(150):
            self.clock.now = 1000.0 + i * 0.1
            self.cache.put(f"key-{i}", i)

        self.assertEqual(len(self.cache), 100)
        for i in range(50):
            self.assertIsNone(self.cache.get(f"key-{i}"))
        for i in range(50, 150):
            self.assertEqual(self.cache.get(f"key-{i}"), i)

    def test_capacity_with_identical_timestamps(self):
        """Insertion order breaks ties when the clock does not move."""
        for i in range(150):
            self.cache.put(f"key-{i}", i)

        self.assertEqual(len(self.cache), 100)
        self.assertIsNone(self.cache.get("key-49"))
        self.assertEqual(self.cache.get("key-50"), 50)

    def test_cleanup_removes_expired(self):
        self.cache.put("a", 1)
        self.clock.now = 1030.0
        self.cache.put("b", 2)

        self.clock.now = 1061.0
        removed = self.cache.cleanup()

        self.assertEqual(removed, 1)
        self.assertEqual(len(self.cache), 1)
        self.assertEqual(self.cache.get("b"), 2)

    def test_cleanup_is_idempotent(self):
        for i in range(120):
            self.cache.put(f"key-{i}", i)

        self.assertEqual(self.cache.cleanup(), 0)
        self.assertEqual(self.cache.cleanup(), 0)
        self.assertEqual(len(self.cache), 100)

    def test_contains(self):
        self.cache.put("k", "v")
        self.assertIn("k", self.cache)
        self.clock.now = 2000.0
        self.assertNotIn("k", self.cache)

    def test_contains_stored_none(self):
        self.cache.put("k", None)
        self.assertIn("k", self.cache)
        self.assertIsNone(self.cache.get("k"))

    def test_clear(self):
        self.cache.put("k", "v")
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)

class TestCachePersistence(unittest.TestCase):
    """Tests for persist/hydrate."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "cache", "requests.json")
        self.clock = FakeClock()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_round_trip_keeps_fresh_entries(self):
        cache = RequestCache(ttl=60, capacity=100, clock=self.clock)
        cache.put("path:a|b", ["block"])
        cache.persist(self.path)

        restored = RequestCache(ttl=60, capacity=100, clock=self.clock)
        self.assertEqual(restored.hydrate(self.path), 1)
        self.assertEqual(restored.get("path:a|b"), ["block"])

    def test_hydrate_discards_expired(self):
        cache = RequestCache(ttl=60, capacity=100, clock=self.clock)
        cache.put("old", 1)
        self.clock.now = 1040.0
        cache.put("new", 2)
        cache.persist(self.path)

        self.clock.now = 1070.0
        restored = RequestCache(ttl=60, capacity=100, clock=self.clock)

        self.assertEqual(restored.hydrate(self.path), 1)
        self.assertIsNone(restored.get("old"))
        self.assertEqual(restored.get("new"), 2)

    def test_hydrate_missing_file(self):
        cache = RequestCache(clock=self.clock)
        self.assertEqual(cache.hydrate(os.path.join(self.temp_dir.name, "missing.json")), 0)

    def test_hydrate_corrupt_file(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")

        cache = RequestCache(clock=self.clock)
        self.assertEqual(cache.hydrate(self.path), 0)
        self.assertEqual(len(cache), 0)

    def test_hydrate_skips_malformed_records(self):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({
                "path:a|b": {"value": ["x"], "inserted_at": "yesterday"},
                "search:none": {"value": [], "inserted_at": None},
                "search:flag": {"value": [], "inserted_at": True},
                "search:junk": "not a record",
                "search:tom": {"value": [{"id": "nm1", "display_name": "Tom"}], "inserted_at": 990},
            }, f)

        cache = RequestCache(ttl=60, clock=self.clock)

        self.assertEqual(cache.hydrate(self.path), 1)
        self.assertEqual(len(cache), 1)
        self.assertEqual(cache.get("search:tom"), [{"id": "nm1", "display_name": "Tom"}])

    def test_persisted_format(self):
        cache = RequestCache(ttl=60, clock=self.clock)
        cache.put("k", {"a": 1})
        cache.persist(self.path)

        with open(self.path, "r", encoding="utf-8") as f:
            payload = json.load(f)

        self.assertEqual(payload, {"k": {"value": {"a": 1}, "inserted_at": 1000.0}})

class TestCacheSweeper(unittest.IsolatedAsyncioTestCase):
    """Tests for the periodic background cleanup."""

    async def test_sweeper_removes_expired_without_traffic(self):
        clock = FakeClock()
        cache = RequestCache(ttl=60, capacity=100, sweep_interval=0.01, clock=clock)
        cache.put("k", "v")
        clock.now = 2000.0

        cache.start_sweeper()
        await asyncio.sleep(0.05)
        await cache.stop_sweeper()

        # Inspect storage directly: get() would also expire the entry
        self.assertEqual(len(cache._entries), 0)

    async def test_stop_without_start(self):
        cache = RequestCache()
        await cache.stop_sweeper()

class TestCacheKeys(unittest.TestCase):
    """Tests for cache key helpers."""

    def test_path_key_is_order_independent(self):
        pairs = [("nm0000158", "nm0000102"), ("a", "b"), ("nm1", "nm10")]
        for a, b in pairs:
            self.assertEqual(path_cache_key(a, b), path_cache_key(b, a))

    def test_path_key_distinguishes_pairs(self):
        self.assertNotEqual(path_cache_key("a", "b"), path_cache_key("a", "c"))

    def test_search_key_normalises(self):
        self.assertEqual(search_cache_key("  Tom   HANKS "), search_cache_key("tom hanks"))

if __name__ == "__main__":
    unittest.main()
