# coding: utf-8
"""
Cache configuration for TTL (Time To Live) settings

Defines cache expiration times for different data types based on:
- Data update frequency
- Upstream rate limits
- Dashboard refresh cadence
"""
import os


class CacheTTL:
    """
    Time-to-live (TTL) settings for the fresh cache tier, in seconds

    The stale tier keeps every entry CacheConfig.STALE_TTL_MULTIPLIER times longer.
    """

    # ===========================
    # CoinGecko API TTLs
    # ===========================

    PRICES = int(os.getenv("CACHE_TTL_PRICES", "30"))
    """Simple price lookups - 30s (dashboard pushes every 30s)"""

    MARKET_DATA = int(os.getenv("CACHE_TTL_MARKET_DATA", "300"))
    """Global stats and market-chart history - 5 minutes"""

    COIN_DETAILS = int(os.getenv("CACHE_TTL_COIN_DETAILS", "1800"))
    """Coin metadata and market data - 30 minutes"""

    # ===========================
    # Other APIs TTLs
    # ===========================

    NEWS = int(os.getenv("CACHE_TTL_NEWS", "1800"))
    """Live news articles - 30 minutes"""

    EXCHANGE_RATES = int(os.getenv("CACHE_TTL_EXCHANGE_RATES", "3600"))
    """Fiat exchange rates - 1 hour"""

    DEFAULT = int(os.getenv("CACHE_TTL_DEFAULT", "300"))
    """Default TTL for unspecified data - 5 minutes"""


class CacheConfig:
    """
    Cache behaviour configuration
    """

    CACHE_NAMESPACE = os.getenv("CACHE_NAMESPACE", "cryptodash")
    """Namespace prefix for all cache keys"""

    CACHE_KEY_SEPARATOR = ":"
    """Separator for cache key components"""

    STALE_TTL_MULTIPLIER = int(os.getenv("CACHE_STALE_TTL_MULTIPLIER", "5"))
    """Stale tier TTL = fresh TTL * multiplier"""

    CACHE_SWEEP_INTERVAL = int(os.getenv("CACHE_SWEEP_INTERVAL", "120"))
    """Seconds between background sweeps of expired entries (0 disables)"""

    # Monitoring
    CACHE_LOG_HITS = os.getenv("CACHE_LOG_HITS", "false").lower() == "true"
    """Log cache hits (verbose, useful for debugging)"""

    CACHE_LOG_MISSES = os.getenv("CACHE_LOG_MISSES", "true").lower() == "true"
    """Log cache misses (important for monitoring)"""


def get_ttl(data_type: str) -> int:
    """
    Get TTL for a specific data type

    Args:
        data_type: Data type identifier (e.g., 'prices', 'coin_details')

    Returns:
        TTL in seconds

    Examples:
        >>> get_ttl('prices')
        30
        >>> get_ttl('unknown_type')
        300  # Returns DEFAULT
    """
    attr_name = data_type.upper()
    return getattr(CacheTTL, attr_name, CacheTTL.DEFAULT)


def get_stale_ttl(data_type: str) -> int:
    """Stale-tier TTL for a data type"""
    return get_ttl(data_type) * CacheConfig.STALE_TTL_MULTIPLIER
