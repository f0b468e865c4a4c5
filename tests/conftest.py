"""
Pytest configuration and fixtures for Crypto Dashboard Gateway tests

Upstreams are never contacted: the HTTP session, clock and sleep are fakes.
"""

from typing import List

import pytest

from src.cache import TTLCache
from src.services.coingecko_service import CoinGeckoService
from src.services.http_fetcher import RetryingFetcher
from src.services.rate_limit_tracker import RateLimitTracker
from fakes import PRICE_PAYLOAD, FakeClock, FakeResponse, FakeSession


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested by the retry loop"""
    return []


@pytest.fixture
def no_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def session() -> FakeSession:
    return FakeSession(FakeResponse(200, PRICE_PAYLOAD))


@pytest.fixture
def tracker(clock) -> RateLimitTracker:
    return RateLimitTracker("coingecko", base_ms=1000, max_backoff_ms=60000, clock=clock)


@pytest.fixture
def fetcher(tracker, session, no_sleep) -> RetryingFetcher:
    return RetryingFetcher("coingecko", tracker=tracker, session=session, max_attempts=3, sleep=no_sleep)


@pytest.fixture
def service(tracker, fetcher, clock) -> CoinGeckoService:
    return CoinGeckoService(
        api_key="",
        use_pro_api=False,
        base_url="https://api.coingecko.test/api/v3",
        tracker=tracker,
        fetcher=fetcher,
        cache=TTLCache("fresh", clock=clock),
        stale_cache=TTLCache("stale", clock=clock),
        clock=clock,
        coalesce=True,
    )
