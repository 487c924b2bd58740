"""
Bounded TTL request cache shared by both search slots and the orchestrator.
"""
import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from config import CACHE_CONFIG

logger = logging.getLogger(__name__)

@dataclass
class CacheEntry:
    key: str
    value: Any
    inserted_at: float
    sequence: int = 0  # Breaks timestamp ties so eviction keeps insertion order

class RequestCache:
    """Key/value store with time-to-live expiry and most-recently-inserted retention."""

    def __init__(self,
                 ttl: Optional[float] = None,
                 capacity: Optional[int] = None,
                 sweep_interval: Optional[float] = None,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the cache.

        Args:
            ttl: Seconds an entry stays readable (default from CACHE_CONFIG)
            capacity: Maximum number of entries kept after cleanup
            sweep_interval: Seconds between background cleanups
            clock: Time source returning seconds, injectable for tests
        """
        self.ttl = ttl if ttl is not None else CACHE_CONFIG["ttl"]
        self.capacity = capacity if capacity is not None else CACHE_CONFIG["capacity"]
        self.sweep_interval = sweep_interval if sweep_interval is not None else CACHE_CONFIG["sweep_interval"]
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._sequence = 0
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value for key, or None if missing or expired.

        Args:
            key: Cache key

        Returns:
            The stored value while fresh, otherwise None
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            return None

        return entry.value

    def put(self, key: str, value: Any):
        """
        Insert or overwrite a value, stamped with the current time.

        Args:
            key: Cache key
            value: Value to store; must be JSON serialisable for persistence
        """
        self._sequence += 1
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            inserted_at=self._clock(),
            sequence=self._sequence
        )
        self.cleanup()

    def cleanup(self) -> int:
        """
        Drop expired entries, then trim to capacity keeping the newest.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        before = len(self._entries)

        self._entries = {
            key: entry for key, entry in self._entries.items()
            if not self._is_expired(entry, now)
        }

        if len(self._entries) > self.capacity:
            newest = sorted(
                self._entries.values(),
                key=lambda e: (e.inserted_at, e.sequence),
                reverse=True
            )[:self.capacity]
            self._entries = {entry.key: entry for entry in newest}

        removed = before - len(self._entries)
        if removed:
            logger.debug(f"Cache cleanup removed {removed} entries, {len(self._entries)} remain")
        return removed

    def clear(self):
        """Clear all cache entries"""
        self._entries.clear()

    def persist(self, path: str):
        """
        Write the live entries to a JSON file.

        Args:
            path: Destination file path
        """
        self.cleanup()
        payload = {
            key: {"value": entry.value, "inserted_at": entry.inserted_at}
            for key, entry in self._entries.items()
        }

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f)

        logger.info(f"Persisted {len(payload)} cache entries to {path}")

    def hydrate(self, path: str) -> int:
        """
        Load entries from a JSON file written by persist(), skipping expired ones.

        Args:
            path: Source file path

        Returns:
            Number of entries loaded
        """
        if not os.path.exists(path):
            logger.debug(f"No persisted cache at {path}")
            return 0

        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read persisted cache {path}: {str(e)}")
            return 0

        if not isinstance(payload, dict):
            logger.warning(f"Ignoring persisted cache {path}: unexpected format")
            return 0

        valid = []
        for key, record in payload.items():
            inserted_at = record.get("inserted_at") if isinstance(record, dict) else None
            # bool is an int subclass but never a timestamp
            if isinstance(inserted_at, bool) or not isinstance(inserted_at, (int, float)):
                logger.warning(f"Skipping malformed cache record {key!r} in {path}")
                continue
            valid.append((key, record))

        now = self._clock()
        loaded = 0
        # Oldest first so sequence numbers follow insertion time
        records = sorted(valid, key=lambda item: item[1]["inserted_at"])
        for key, record in records:
            self._sequence += 1
            entry = CacheEntry(
                key=key,
                value=record.get("value"),
                inserted_at=float(record["inserted_at"]),
                sequence=self._sequence
            )
            if self._is_expired(entry, now):
                continue
            self._entries[key] = entry
            loaded += 1

        self.cleanup()
        logger.info(f"Hydrated {loaded} cache entries from {path}")
        return loaded

    def start_sweeper(self) -> asyncio.Task:
        """Start the periodic cleanup task on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())
        return self._sweeper

    async def stop_sweeper(self):
        """Cancel the periodic cleanup task and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        await asyncio.wait({self._sweeper})
        self._sweeper = None

    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.cleanup()

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        """Check if cache entry is expired"""
        return now - entry.inserted_at >= self.ttl

def path_cache_key(first_id: str, second_id: str) -> str:
    """Order-independent cache key for a pair of identifiers."""
    return "path:" + "|".join(sorted([first_id, second_id]))

def search_cache_key(query: str) -> str:
    """Cache key for a name search, normalised for case and spacing."""
    return "search:" + " ".join(query.lower().split())
