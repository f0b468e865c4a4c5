# coding: utf-8
"""
Cache module

Provides the in-process TTL caches used in front of every upstream API.
"""

from src.cache.ttl_cache import TTLCache, CacheEntry, CacheSweeper, MISS
from src.cache.cache_keys import CacheKeyBuilder

__all__ = ["TTLCache", "CacheEntry", "CacheSweeper", "MISS", "CacheKeyBuilder"]
