"""
Tests for the HTTP surface: routing, error mapping, static price fallback
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api_server import app
from config.config import DEFAULT_COIN_IDS
from src.cache import TTLCache
from src.services.coingecko_service import CoinGeckoService, get_coingecko_service
from src.services.currency_service import CurrencyService, get_currency_service
from src.services.http_fetcher import RetryingFetcher
from src.services.news_service import NewsService, get_news_service
from src.services.price_broadcaster import PriceBroadcaster
from src.services.rate_limit_tracker import RateLimitTracker
from src.services.schemas import PriceMap
from fakes import PRICE_PAYLOAD, FakeResponse, FakeSession


@pytest.fixture
def make_client(clock, no_sleep):
    """Build a TestClient whose CoinGecko service talks to a scripted session"""

    def _make(*script):
        session = FakeSession(*script)
        tracker = RateLimitTracker("coingecko", clock=clock)
        service = CoinGeckoService(
            api_key="",
            use_pro_api=False,
            base_url="https://api.coingecko.test/api/v3",
            tracker=tracker,
            fetcher=RetryingFetcher("coingecko", tracker=tracker, session=session, sleep=no_sleep),
            cache=TTLCache("fresh", clock=clock),
            stale_cache=TTLCache("stale", clock=clock),
            clock=clock,
        )
        app.dependency_overrides[get_coingecko_service] = lambda: service
        app.dependency_overrides[get_news_service] = lambda: NewsService(api_key="", use_mock=False)
        app.dependency_overrides[get_currency_service] = lambda: CurrencyService(api_key="")
        return TestClient(app), session

    yield _make
    app.dependency_overrides.clear()


def test_health(make_client):
    client, _ = make_client(FakeResponse(200, PRICE_PAYLOAD))

    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["coingecko"]["status"] == "normal"


def test_prices(make_client):
    client, session = make_client(FakeResponse(200, PRICE_PAYLOAD))

    response = client.get("/api/crypto/prices", params={"ids": "bitcoin", "currency": "usd"})

    assert response.status_code == 200
    assert response.json() == PRICE_PAYLOAD
    assert type(response.json()["bitcoin"]["last_updated_at"]) is int
    assert session.calls[0]["params"]["ids"] == "bitcoin"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_default_coin_list_is_capped_without_key(make_client):
    client, session = make_client(FakeResponse(200, PRICE_PAYLOAD))

    response = client.get("/api/crypto")

    assert response.status_code == 200
    sent = session.calls[0]["params"]["ids"].split(",")
    assert sorted(sent) == sorted(DEFAULT_COIN_IDS[:10])


def test_invalid_coin_id_is_400(make_client):
    client, session = make_client(FakeResponse(200, PRICE_PAYLOAD))

    response = client.get("/api/crypto/prices", params={"ids": "bitcoin,<script>"})

    assert response.status_code == 400
    assert session.call_count == 0


def test_rate_limited_maps_to_429(make_client):
    client, _ = make_client(FakeResponse(429))

    response = client.get("/api/crypto/global")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "2"
    assert response.json()["retry_after_ms"] == 2000


def test_upstream_error_maps_to_502(make_client):
    client, _ = make_client(FakeResponse(500, text="down"))

    response = client.get("/api/crypto/coin/bitcoin")

    assert response.status_code == 502
    assert response.json()["error"] == "upstream_unavailable"


def test_prices_fall_back_to_static_data(make_client):
    client, _ = make_client(FakeResponse(500, text="down"))

    response = client.get("/api/crypto/prices", params={"ids": "bitcoin,ethereum,unknown-coin"})

    assert response.status_code == 200
    assert response.headers["X-Data-Source"] == "fallback"
    body = response.json()
    assert set(body) == {"bitcoin", "ethereum"}
    assert body["bitcoin"]["usd"] == 43000


def test_static_fallback_is_usd_only(make_client):
    client, _ = make_client(FakeResponse(500, text="down"))

    response = client.get("/api/crypto/prices", params={"ids": "bitcoin", "currency": "eur"})

    assert response.status_code == 502


def test_history_route(make_client):
    payload = {"prices": [[1700000000000, 1.0]], "market_caps": [], "total_volumes": []}
    client, session = make_client(FakeResponse(200, payload))

    response = client.get("/api/crypto/history/bitcoin", params={"days": "90"})

    assert response.status_code == 200
    assert response.json()["prices"] == [[1700000000000, 1.0]]
    assert session.calls[0]["params"]["interval"] == "daily"


def test_history_rejects_bad_days(make_client):
    client, _ = make_client(FakeResponse(200, {}))

    assert client.get("/api/crypto/history/bitcoin", params={"days": "soon"}).status_code == 400


def test_cache_stats_and_clear(make_client):
    client, session = make_client(FakeResponse(200, PRICE_PAYLOAD))
    client.get("/api/crypto/prices", params={"ids": "bitcoin"})

    stats = client.get("/api/crypto/cache/stats").json()
    assert len(stats["keys"]) == 1
    assert stats["rate_limit_status"]["is_limited"] is False

    assert client.post("/api/crypto/cache/clear").json()["success"] is True
    assert client.get("/api/crypto/cache/stats").json()["keys"] == []

    client.get("/api/crypto/prices", params={"ids": "bitcoin"})
    assert session.call_count == 2


def test_news_route_serves_fallback(make_client):
    client, _ = make_client(FakeResponse(200, {}))

    response = client.get("/api/news", params={"limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    assert len(body["results"]) == 5


def test_currency_routes_use_mock_rates(make_client):
    client, _ = make_client(FakeResponse(200, {}))

    rates = client.get("/api/currency/rates").json()
    assert rates["base"] == "USD"
    assert rates["source"] == "fallback"

    converted = client.get(
        "/api/currency/convert", params={"amount": 100, "from": "usd", "to": "EUR"}
    ).json()
    assert converted["to"] == "EUR"
    assert converted["result"] == pytest.approx(85.0)


def test_prices_websocket(make_client, monkeypatch):
    client, _ = make_client(FakeResponse(200, PRICE_PAYLOAD))
    service = AsyncMock(spec=CoinGeckoService)
    service.get_crypto_prices.return_value = PriceMap(PRICE_PAYLOAD)
    broadcaster = PriceBroadcaster(service, coin_ids=["bitcoin"], interval=3600)
    monkeypatch.setattr("src.api.ws.get_price_broadcaster", lambda: broadcaster)

    with client.websocket_connect("/ws/prices") as websocket:
        first = websocket.receive_json()
        websocket.send_text("requestRefresh")
        second = websocket.receive_json()

    assert first == {"type": "cryptoData", "data": PRICE_PAYLOAD}
    assert second == first
    assert service.get_crypto_prices.await_count == 2
