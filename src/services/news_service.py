# coding: utf-8
"""
Crypto news service (NewsData.io)

News is a non-critical feed: a missing key, mock mode or any live failure
degrades to the built-in dataset instead of raising.
"""
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from config.config import NEWSDATA_API_KEY, NEWSDATA_API_URL, NEWS_QUERY, USE_MOCK_NEWS
from config.cache_config import CacheTTL
from src.cache import MISS, TTLCache
from src.cache.cache_keys import news_key
from src.core.enums import DataSource
from src.core.exceptions import GatewayError
from src.services.fallback_data import fallback_news_result
from src.services.http_fetcher import RetryingFetcher
from src.services.rate_limit_tracker import RateLimitTracker
from src.services.schemas import NewsArticle, NewsResult


FALLBACK_MESSAGE = "Using fallback news data due to API unavailability"

# Title keywords used as tags when the article carries no keywords/categories
TITLE_KEYWORDS = ["bitcoin", "ethereum", "crypto", "blockchain", "nft", "defi", "token", "wallet"]

MAX_TAGS = 5

_PUBDATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")


def extract_tags(article: Dict[str, Any]) -> List[str]:
    """
    Extract display tags from a NewsData.io article

    Keywords (first 5) and categories first; title keywords only when neither
    is present. Result is de-duplicated case-insensitively, capitalized and
    capped at 5.
    """
    tags: List[str] = []

    keywords = article.get("keywords")
    if isinstance(keywords, list):
        tags.extend(keywords[:MAX_TAGS])

    categories = article.get("category")
    if isinstance(categories, list):
        tags.extend(categories)

    title = article.get("title")
    if not tags and title:
        lowered = title.lower()
        tags.extend(keyword for keyword in TITLE_KEYWORDS if keyword in lowered)

    result: List[str] = []
    seen = set()
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            continue
        formatted = tag.strip().capitalize()
        if formatted.lower() in seen:
            continue
        seen.add(formatted.lower())
        result.append(formatted)
        if len(result) == MAX_TAGS:
            break
    return result


def parse_pub_date(value: Optional[str], default: Optional[float] = None) -> int:
    """NewsData.io pubDate ('2024-01-15 12:34:56', UTC) -> unix seconds"""
    if value:
        for fmt in _PUBDATE_FORMATS:
            try:
                parsed = datetime.strptime(value.strip(), fmt)
            except ValueError:
                continue
            return int(parsed.replace(tzinfo=timezone.utc).timestamp())
        logger.debug(f"Unparseable pubDate: {value!r}")
    return int(default if default is not None else time.time())


def normalize_article(article: Dict[str, Any]) -> NewsArticle:
    """Convert a NewsData.io result into the dashboard article shape"""
    description = article.get("description")
    content = article.get("content")
    return NewsArticle(
        id=str(article.get("article_id") or uuid.uuid4().hex),
        title=article.get("title") or "No Title",
        body=description or content or "No description available",
        url=article.get("link"),
        imageurl=article.get("image_url"),
        source=article.get("source_id") or article.get("source_name") or "NewsData.io",
        published_on=parse_pub_date(article.get("pubDate")),
        tags=extract_tags(article),
        full_content=content or description or "No content available",
    )


class NewsService:
    """
    Crypto news with caching and graceful degradation

    - Mock mode (no API key or USE_MOCK_NEWS=true): fallback dataset, no
      network, no cache
    - Live mode: NewsData.io through a retrying fetcher, cached 30 min
    - Live failure: fallback dataset with an explanatory message
    """

    SERVICE = "newsdata"

    def __init__(
        self,
        api_key: str = NEWSDATA_API_KEY,
        api_url: str = NEWSDATA_API_URL,
        use_mock: bool = USE_MOCK_NEWS,
        query: str = NEWS_QUERY,
        tracker: Optional[RateLimitTracker] = None,
        fetcher: Optional[RetryingFetcher] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.use_mock = use_mock
        self.query = query
        if tracker is None and fetcher is not None:
            tracker = fetcher.tracker
        self.tracker = tracker if tracker is not None else RateLimitTracker(self.SERVICE)
        self.fetcher = fetcher if fetcher is not None else RetryingFetcher(self.SERVICE, tracker=self.tracker)
        self.cache = cache if cache is not None else TTLCache(self.SERVICE, default_ttl=CacheTTL.NEWS)

    @property
    def mock_mode(self) -> bool:
        return self.use_mock or not self.api_key

    async def fetch_crypto_news(self, limit: int = 10, language: str = "en") -> NewsResult:
        """
        Fetch cryptocurrency news

        Args:
            limit: Number of articles
            language: Language code (e.g., 'en')

        Returns:
            NewsResult; source is FALLBACK for mock or degraded data
        """
        limit = max(1, limit)

        if self.mock_mode:
            logger.info("⚠️ Using mock news data (API key missing or mock mode enabled)")
            return fallback_news_result(limit)

        cache_key = news_key("crypto_news", {"limit": limit, "language": language})
        cached = self.cache.get(cache_key)
        if cached is not MISS:
            logger.debug(f"Cache hit for crypto news ({limit} articles)")
            return cached

        try:
            self.tracker.check()
            logger.info(f"🔄 Fetching crypto news from NewsData.io ({limit} articles)")
            payload = await self.fetcher.fetch(
                self.api_url,
                params={
                    "apikey": self.api_key,
                    "q": self.query,
                    "language": language,
                    "size": limit,
                },
            )
            result = self._parse(payload)
        except (GatewayError, ValueError) as e:
            logger.warning(f"Error fetching crypto news, serving fallback: {e}")
            return fallback_news_result(limit, message=FALLBACK_MESSAGE)

        self.cache.set(cache_key, result, CacheTTL.NEWS)
        logger.info(f"✅ Fetched {len(result.results)} crypto news articles")
        return result

    @staticmethod
    def _parse(payload: Any) -> NewsResult:
        if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
            raise ValueError("Invalid response format from NewsData.io API")
        articles = [
            normalize_article(article)
            for article in payload["results"]
            if isinstance(article, dict)
        ]
        return NewsResult(results=articles, source=DataSource.NEWSDATA)

    async def close(self) -> None:
        await self.fetcher.close()


# Global service instance
_news_service: Optional[NewsService] = None


def get_news_service() -> NewsService:
    """Get global news service instance (singleton)"""
    global _news_service
    if _news_service is None:
        _news_service = NewsService()
    return _news_service
