# coding: utf-8
"""
CoinGecko API Service for cryptocurrency data

The request orchestrator for every market-data read: fresh cache lookup,
rate-limit gate, retrying fetch, cache write and stale-cache fallback.
"""
import asyncio
import math
import re
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar, Union

from loguru import logger
from pydantic import BaseModel, ValidationError

from config.config import (
    COINGECKO_API_KEY,
    COINGECKO_USE_PRO_API,
    COINGECKO_API_URL,
    COINGECKO_PRO_API_URL,
    MAX_COINS_WITHOUT_KEY,
    COALESCE_REQUESTS,
)
from config.cache_config import get_stale_ttl, get_ttl
from src.cache import MISS, TTLCache
from src.cache.cache_keys import coingecko_key
from src.core.enums import HistoryInterval
from src.core.exceptions import RateLimited, UpstreamBusinessError, UpstreamError
from src.services.http_fetcher import RetryingFetcher
from src.services.rate_limit_tracker import RateLimitTracker
from src.services.schemas import CoinDetail, GlobalStats, HistorySeries, PriceMap


ModelT = TypeVar("ModelT", bound=BaseModel)

# CoinGecko ids are lowercase slugs: "bitcoin", "avalanche-2", "hedera-hashgraph"
_COIN_ID_RE = re.compile(r"^[a-z0-9][a-z0-9\-]*$")


class CoinGeckoService:
    """
    Service for fetching cryptocurrency data from CoinGecko API

    Features:
    - Simple prices, global market stats, coin details, market-chart history
    - Two cache tiers: fresh (per-resource TTL) and stale (TTL x 5, fallback only)
    - Client-side 429 backoff shared by every call (one upstream account)
    - Automatic retry with exponential backoff for network errors
    - Concurrent misses on the same key share one upstream fetch

    Collaborators (tracker, fetcher, caches, clock) are injectable; the
    defaults build production instances.
    """

    SERVICE = "coingecko"

    def __init__(
        self,
        api_key: str = COINGECKO_API_KEY,
        use_pro_api: bool = COINGECKO_USE_PRO_API,
        base_url: Optional[str] = None,
        tracker: Optional[RateLimitTracker] = None,
        fetcher: Optional[RetryingFetcher] = None,
        cache: Optional[TTLCache] = None,
        stale_cache: Optional[TTLCache] = None,
        clock: Callable[[], float] = time.monotonic,
        coalesce: bool = COALESCE_REQUESTS,
        max_coins_without_key: int = MAX_COINS_WITHOUT_KEY,
    ):
        self.api_key = api_key
        self.use_pro_api = use_pro_api
        if base_url is None:
            base_url = COINGECKO_PRO_API_URL if use_pro_api else COINGECKO_API_URL
        self.base_url = base_url.rstrip("/")
        self.coalesce = coalesce
        self.max_coins_without_key = max_coins_without_key

        if tracker is None and fetcher is not None:
            tracker = fetcher.tracker
        self.tracker = tracker if tracker is not None else RateLimitTracker(self.SERVICE, clock=clock)
        self.fetcher = fetcher if fetcher is not None else RetryingFetcher(self.SERVICE, tracker=self.tracker)

        self.cache = cache if cache is not None else TTLCache(f"{self.SERVICE}:fresh", clock=clock)
        self.stale_cache = (
            stale_cache if stale_cache is not None else TTLCache(f"{self.SERVICE}:stale", clock=clock)
        )

        self._inflight: Dict[str, asyncio.Task] = {}

        logger.info(
            f"CoinGecko service initialized (base_url={self.base_url}, "
            f"api_key={'yes' if self.api_key else 'no'}, coalesce={self.coalesce})"
        )

    # ------------------------------------------------------------------
    # Request orchestration
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        if self.use_pro_api:
            return {"x-cg-pro-api-key": self.api_key}
        return {"x-cg-demo-api-key": self.api_key}

    async def _make_request(
        self,
        endpoint: str,
        params: Dict[str, Any],
        data_type: str,
        schema: Type[ModelT],
    ) -> ModelT:
        """
        Cached, rate-limited, retried read of one CoinGecko resource

        1. fresh tier hit -> return (no network, no rate-limit check)
        2. tracker in backoff -> RateLimited
        3. fetch -> validate -> write fresh + stale tiers
        4. fetch failed -> stale tier, else re-raise

        Raises:
            RateLimited: upstream account is in backoff (and no stale copy after a 429)
            UpstreamError: live fetch failed and the stale tier is empty
        """
        cache_key = coingecko_key(endpoint, params)

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            logger.debug(f"Cache hit for {endpoint}")
            return cached

        if not self.coalesce:
            return await self._load(cache_key, endpoint, params, data_type, schema)

        task = self._inflight.get(cache_key)
        if task is None:
            task = asyncio.ensure_future(self._load(cache_key, endpoint, params, data_type, schema))
            self._inflight[cache_key] = task
            task.add_done_callback(lambda done, key=cache_key: self._forget_inflight(key, done))
        else:
            logger.debug(f"Joining in-flight request for {cache_key}")

        # shield: one cancelled caller must not cancel the fetch for the others
        return await asyncio.shield(task)

    def _forget_inflight(self, cache_key: str, task: asyncio.Task) -> None:
        if self._inflight.get(cache_key) is task:
            del self._inflight[cache_key]
        if not task.cancelled():
            # mark the exception retrieved even if every waiter went away
            task.exception()

    async def _load(
        self,
        cache_key: str,
        endpoint: str,
        params: Dict[str, Any],
        data_type: str,
        schema: Type[ModelT],
    ) -> ModelT:
        self.tracker.check()

        url = f"{self.base_url}{endpoint}"
        try:
            payload = await self.fetcher.fetch(url, params=params, headers=self._headers())
            result = self._validate(schema, payload, url)
        except (UpstreamError, RateLimited) as e:
            stale = self.stale_cache.get(cache_key)
            if stale is not MISS:
                logger.warning(f"Returning stale data for {endpoint} ({type(e).__name__}: {e})")
                return stale
            logger.error(f"Failed to fetch {endpoint} and no stale data available: {e}")
            raise

        self.cache.set(cache_key, result, get_ttl(data_type))
        self.stale_cache.set(cache_key, result, get_stale_ttl(data_type))
        return result

    @staticmethod
    def _validate(schema: Type[ModelT], payload: Any, url: str) -> ModelT:
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Unexpected payload shape from {url}: {e.error_count()} validation error(s)")
            raise UpstreamBusinessError(
                f"Invalid response format from CoinGecko ({schema.__name__})", url=url
            ) from e

    # ------------------------------------------------------------------
    # Parameter normalization
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_coin_id(coin_id: str) -> str:
        normalized = (coin_id or "").strip().lower()
        if not _COIN_ID_RE.match(normalized):
            raise ValueError(f"Invalid coin id: {coin_id!r}")
        return normalized

    def normalize_coin_ids(self, coin_ids: Iterable[str]) -> List[str]:
        """Strip, lower-case and de-duplicate, keeping caller order; blank ids are dropped."""
        ids: List[str] = []
        for coin_id in coin_ids:
            if not coin_id or not coin_id.strip():
                continue
            normalized = self.normalize_coin_id(coin_id)
            if normalized not in ids:
                ids.append(normalized)
        return ids

    @staticmethod
    def normalize_days(days: Union[int, float, str]) -> str:
        if isinstance(days, str):
            value = days.strip().lower()
            if value == "max":
                return value
            try:
                number = float(value)
            except ValueError:
                raise ValueError(f"Invalid days value: {days!r}") from None
        else:
            number = float(days)
        if not math.isfinite(number):
            raise ValueError(f"days must be a finite number or 'max', got {days!r}")
        if number <= 0:
            raise ValueError(f"days must be positive, got {days!r}")
        return str(int(number)) if number.is_integer() else str(number)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get_crypto_prices(
        self, coin_ids: Iterable[str], currency: str = "usd"
    ) -> PriceMap:
        """
        Get current prices with market data for multiple cryptocurrencies in one request

        Args:
            coin_ids: Coin IDs (e.g., ['bitcoin', 'ethereum'])
            currency: Currency to compare against (default: 'usd')

        Returns:
            PriceMap, e.g.
            {
                "bitcoin": {
                    "usd": 45000,
                    "usd_market_cap": 850000000000,
                    "usd_24h_change": 2.5,
                    "usd_24h_vol": 35000000000,
                    "last_updated_at": 1700000000
                }
            }
        """
        ids = self.normalize_coin_ids(coin_ids)
        if not ids:
            return PriceMap({})

        if not self.api_key and len(ids) > self.max_coins_without_key:
            logger.warning(
                f"No CoinGecko API key: limiting price request to {self.max_coins_without_key} "
                f"of {len(ids)} coins"
            )
            ids = ids[: self.max_coins_without_key]

        # Sorted so the cache key does not depend on caller order
        params = {
            "ids": ",".join(sorted(ids)),
            "vs_currencies": currency.strip().lower(),
            "include_market_cap": True,
            "include_24hr_change": True,
            "include_24hr_vol": True,
            "include_last_updated_at": True,
        }

        logger.info(f"Fetching crypto prices for {len(ids)} coins")
        return await self._make_request("/simple/price", params, "prices", PriceMap)

    async def get_global_market_data(self) -> GlobalStats:
        """Get global crypto market data (total market cap, volume, dominance)"""
        return await self._make_request("/global", {}, "market_data", GlobalStats)

    async def get_coin_details(self, coin_id: str) -> CoinDetail:
        """
        Get detailed data for a cryptocurrency

        Localization, tickers, community and developer data are excluded to
        keep the payload small.
        """
        coin_id = self.normalize_coin_id(coin_id)
        params = {
            "localization": False,
            "tickers": False,
            "market_data": True,
            "community_data": False,
            "developer_data": False,
        }
        return await self._make_request(
            f"/coins/{coin_id}", params, "coin_details", CoinDetail
        )

    async def get_coin_history(
        self,
        coin_id: str,
        days: Union[int, float, str] = "7",
        currency: str = "usd",
    ) -> HistorySeries:
        """
        Get historical market data for a coin

        Args:
            coin_id: Coin ID
            days: Range in days (1, 7, 14, 30, 365, "max")
            currency: Currency (default: usd)

        Interval: >30 days daily, 2-30 days hourly, <=1 day minutely.
        """
        coin_id = self.normalize_coin_id(coin_id)
        days = self.normalize_days(days)
        params = {
            "vs_currency": currency.strip().lower(),
            "days": days,
            "interval": HistoryInterval.for_days(days).value,
        }
        return await self._make_request(
            f"/coins/{coin_id}/market_chart", params, "market_data", HistorySeries
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Drop both cache tiers"""
        self.cache.clear()
        self.stale_cache.clear()
        logger.info("CoinGecko cache cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        """Cache statistics plus the current rate-limit state"""
        stats = self.cache.stats()
        stats["stale_keys"] = self.stale_cache.keys()
        stats["in_flight"] = len(self._inflight)
        stats["rate_limit_status"] = self.tracker.snapshot()
        return stats

    async def close(self) -> None:
        await self.fetcher.close()


# Global service instance
_coingecko_service: Optional[CoinGeckoService] = None


def get_coingecko_service() -> CoinGeckoService:
    """
    Get global CoinGecko service instance (singleton)

    Every caller shares one tracker and one pair of cache tiers, matching the
    single upstream account's rate budget.
    """
    global _coingecko_service
    if _coingecko_service is None:
        _coingecko_service = CoinGeckoService()
    return _coingecko_service
