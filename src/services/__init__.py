"""Services for external API integrations"""
from .rate_limit_tracker import RateLimitTracker
from .http_fetcher import RetryingFetcher
from .coingecko_service import CoinGeckoService, get_coingecko_service
from .news_service import NewsService, get_news_service
from .currency_service import CurrencyService, get_currency_service
from .price_broadcaster import PriceBroadcaster, get_price_broadcaster

__all__ = [
    'RateLimitTracker',
    'RetryingFetcher',
    'CoinGeckoService',
    'get_coingecko_service',
    'NewsService',
    'get_news_service',
    'CurrencyService',
    'get_currency_service',
    'PriceBroadcaster',
    'get_price_broadcaster',
]
