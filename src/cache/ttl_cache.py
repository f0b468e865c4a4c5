# coding: utf-8
"""
In-process TTL cache

Key -> value store with per-entry expiration. The market-data layer keeps two
instances per upstream: a "fresh" tier (short TTL) and a "stale" tier (long
TTL) read only when a live fetch fails.

There is no eviction policy beyond TTL expiry: memory grows with the number of
distinct keys, which is bounded by the dashboard's coin/currency combinations.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from loguru import logger

from config.cache_config import CacheConfig, CacheTTL


class _Miss:
    """Sentinel type for cache misses (None is a legitimate cached value)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


@dataclass
class CacheEntry:
    """A cached value with its storage timestamp and lifetime."""

    key: str
    value: Any
    stored_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl_seconds

    def remaining(self, now: float) -> float:
        """Seconds left before expiry (negative once expired)."""
        return self.stored_at + self.ttl_seconds - now


class TTLCache:
    """
    Key/value store with per-entry TTL and hit/miss counters

    Features:
    - get() re-checks expiry on every read, so sweeping is optional
    - hit/miss counters are monotonic for the process lifetime (clear() keeps them)
    - injectable clock for deterministic tests

    Usage:
        >>> cache = TTLCache(name="fresh")
        >>> cache.set("key", {"data": "value"}, ttl_seconds=30)
        >>> cache.get("key")
        {'data': 'value'}
    """

    def __init__(
        self,
        name: str = "cache",
        default_ttl: float = CacheTTL.DEFAULT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.default_ttl = default_ttl
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any:
        """
        Get a value

        Returns:
            The cached value, or MISS if absent or expired
        """
        entry = self._store.get(key)

        if entry is None or entry.is_expired(self._clock()):
            self._misses += 1
            if CacheConfig.CACHE_LOG_MISSES:
                logger.debug(f"[{self.name}] cache MISS: {key}")
            return MISS

        self._hits += 1
        if CacheConfig.CACHE_LOG_HITS:
            logger.debug(f"[{self.name}] cache HIT: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store a value, overwriting any previous entry and restarting its TTL."""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        self._store[key] = CacheEntry(
            key=key, value=value, stored_at=self._clock(), ttl_seconds=ttl
        )
        logger.debug(f"[{self.name}] cache SET: {key} (TTL={ttl}s)")

    def clear(self) -> None:
        """Drop all entries (administrative operation)."""
        count = len(self._store)
        self._store.clear()
        logger.info(f"[{self.name}] cache cleared ({count} entries)")

    def sweep(self) -> int:
        """Remove expired entries. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug(f"[{self.name}] swept {len(expired)} expired entries")
        return len(expired)

    def keys(self) -> List[str]:
        """Keys of live (non-expired) entries."""
        now = self._clock()
        return [key for key, entry in self._store.items() if not entry.is_expired(now)]

    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics

        Examples:
            >>> cache.stats()
            {"keys": ["..."], "hits": 10, "misses": 2, "hit_rate": 0.83}
        """
        total = self._hits + self._misses
        return {
            "keys": self.keys(),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 2) if total > 0 else 0,
        }

    def __contains__(self, key: str) -> bool:
        entry = self._store.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        return len(self.keys())


class CacheSweeper:
    """
    Low-frequency background task that sweeps expired entries

    Only affects memory, never correctness.
    """

    def __init__(self, caches: Iterable[TTLCache], interval: float = CacheConfig.CACHE_SWEEP_INTERVAL):
        self.caches = list(caches)
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self.interval <= 0 or self._task is not None:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Cache sweeper started (interval={self.interval}s, caches={len(self.caches)})")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            removed = sum(cache.sweep() for cache in self.caches)
            if removed:
                logger.debug(f"Cache sweep removed {removed} expired entries")
