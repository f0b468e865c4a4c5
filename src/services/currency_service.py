# coding: utf-8
"""
Fiat exchange rates (ExchangeRate-API) for displaying prices in local currency
"""
from typing import Optional

from loguru import logger

from config.config import EXCHANGE_RATES_API_KEY, EXCHANGE_RATES_API_URL
from config.cache_config import CacheTTL
from src.cache import MISS, TTLCache
from src.cache.cache_keys import currency_key
from src.core.enums import DataSource
from src.core.exceptions import GatewayError
from src.services.fallback_data import mock_exchange_rates
from src.services.http_fetcher import RetryingFetcher
from src.services.schemas import ExchangeRates


class CurrencyService:
    """
    USD-based exchange rates, cached for an hour

    Without an API key, or when the upstream fails, mock rates are returned
    (and not cached, so the next call retries the live API).
    """

    SERVICE = "exchangerate"

    def __init__(
        self,
        api_key: str = EXCHANGE_RATES_API_KEY,
        api_url: str = EXCHANGE_RATES_API_URL,
        fetcher: Optional[RetryingFetcher] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.fetcher = fetcher if fetcher is not None else RetryingFetcher(self.SERVICE)
        self.cache = cache if cache is not None else TTLCache(self.SERVICE, default_ttl=CacheTTL.EXCHANGE_RATES)

    async def get_exchange_rates(self) -> ExchangeRates:
        cache_key = currency_key("latest", "USD")
        cached = self.cache.get(cache_key)
        if cached is not MISS:
            logger.debug("Cache hit for exchange rates")
            return cached

        if not self.api_key:
            logger.info("⚠️ No exchange rates API key, using mock data")
            return mock_exchange_rates()

        try:
            payload = await self.fetcher.fetch(f"{self.api_url}/{self.api_key}/latest/USD")
            rates = payload.get("conversion_rates") if isinstance(payload, dict) else None
            if not isinstance(rates, dict) or not rates:
                raise ValueError("Invalid response format from Exchange Rates API")
            result = ExchangeRates(rates=rates, source=DataSource.EXCHANGE_RATE_API)
        except (GatewayError, ValueError) as e:
            logger.error(f"Error fetching exchange rates, using mock data: {e}")
            return mock_exchange_rates()

        self.cache.set(cache_key, result, CacheTTL.EXCHANGE_RATES)
        logger.info(f"✅ Fetched exchange rates for {len(result.rates)} currencies")
        return result

    async def convert_currency(
        self, amount: float, from_currency: str = "USD", to_currency: str = "USD"
    ) -> float:
        """
        Convert an amount between two fiat currencies via USD

        Returns the original amount when either currency is unknown.
        """
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return amount

        rates = (await self.get_exchange_rates()).rates
        from_rate = rates.get(from_currency)
        to_rate = rates.get(to_currency)
        if not from_rate or to_rate is None:
            logger.warning(f"Unknown currency in conversion {from_currency} -> {to_currency}")
            return amount

        return amount / from_rate * to_rate

    async def close(self) -> None:
        await self.fetcher.close()


# Global service instance
_currency_service: Optional[CurrencyService] = None


def get_currency_service() -> CurrencyService:
    """Get global currency service instance (singleton)"""
    global _currency_service
    if _currency_service is None:
        _currency_service = CurrencyService()
    return _currency_service
