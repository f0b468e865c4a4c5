# coding: utf-8
"""
Cache key generation utilities

Provides consistent, namespaced key generation for the TTL caches.
"""
from typing import Any, Dict, List, Optional, Union

from config.cache_config import CacheConfig


class CacheKeyBuilder:
    """
    Utility class for building consistent cache keys

    Key format: {namespace}:{service}:{method}:{params}

    Examples:
        cryptodash:coingecko:simple_price:ids=bitcoin&vs_currencies=usd
        cryptodash:coingecko:global
        cryptodash:news:crypto_news:language=en&limit=5
    """

    SEPARATOR = CacheConfig.CACHE_KEY_SEPARATOR
    NAMESPACE = CacheConfig.CACHE_NAMESPACE

    @classmethod
    def build(
        cls,
        service: str,
        method: str,
        params: Optional[Union[Dict[str, Any], List[Any], str]] = None,
    ) -> str:
        """
        Build a cache key from components

        Args:
            service: Service name (e.g., 'coingecko', 'news')
            method: Method name or endpoint path (e.g., '/simple/price')
            params: Parameters (dict, list, or string)

        Returns:
            Cache key string

        Examples:
            >>> CacheKeyBuilder.build('coingecko', '/simple/price', {'vs_currencies': 'usd', 'ids': 'bitcoin'})
            'cryptodash:coingecko:simple_price:ids=bitcoin&vs_currencies=usd'
        """
        key_parts = [cls.NAMESPACE, service, cls._normalize_method(method)]

        if params:
            key_parts.append(cls._serialize_params(params))

        return cls.SEPARATOR.join(key_parts)

    @staticmethod
    def _normalize_method(method: str) -> str:
        """'/coins/bitcoin/market_chart' -> 'coins_bitcoin_market_chart'"""
        return method.strip("/").replace("/", "_") or "root"

    @classmethod
    def _serialize_params(cls, params: Union[Dict[str, Any], List[Any], str]) -> str:
        """
        Serialize parameters into a consistent string representation

        Dict params are sorted by name so that call-site ordering never
        produces two keys for the same request.

        Examples:
            >>> CacheKeyBuilder._serialize_params({'vs_currencies': 'usd', 'ids': 'bitcoin'})
            'ids=bitcoin&vs_currencies=usd'

            >>> CacheKeyBuilder._serialize_params(['bitcoin', 'usd'])
            'bitcoin_usd'
        """
        if isinstance(params, str):
            return params

        if isinstance(params, dict):
            return "&".join(
                f"{name}={cls._serialize_value(value)}"
                for name, value in sorted(params.items())
            )

        if isinstance(params, (list, tuple)):
            return "_".join(str(item) for item in params)

        return str(params)

    @staticmethod
    def _serialize_value(value: Any) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)


def coingecko_key(endpoint: str, params: Any = None) -> str:
    """Build CoinGecko cache key"""
    return CacheKeyBuilder.build("coingecko", endpoint, params)


def news_key(method: str, params: Any = None) -> str:
    """Build news cache key"""
    return CacheKeyBuilder.build("news", method, params)


def currency_key(method: str, params: Any = None) -> str:
    """Build exchange-rate cache key"""
    return CacheKeyBuilder.build("currency", method, params)
