"""
Tests for cache key generation
"""

from src.cache.cache_keys import CacheKeyBuilder, coingecko_key, currency_key, news_key


def test_param_order_does_not_change_key():
    a = coingecko_key("/simple/price", {"ids": "bitcoin", "vs_currencies": "usd"})
    b = coingecko_key("/simple/price", {"vs_currencies": "usd", "ids": "bitcoin"})

    assert a == b == "cryptodash:coingecko:simple_price:ids=bitcoin&vs_currencies=usd"


def test_bools_are_lowercased():
    key = coingecko_key("/coins/bitcoin", {"localization": False, "market_data": True})

    assert key == "cryptodash:coingecko:coins_bitcoin:localization=false&market_data=true"


def test_key_without_params():
    assert coingecko_key("/global", {}) == "cryptodash:coingecko:global"


def test_list_and_string_params():
    assert CacheKeyBuilder.build("svc", "method", ["a", "b"]) == "cryptodash:svc:method:a_b"
    assert currency_key("latest", "USD") == "cryptodash:currency:latest:USD"


def test_news_key():
    assert news_key("crypto_news", {"limit": 5, "language": "en"}) == (
        "cryptodash:news:crypto_news:language=en&limit=5"
    )
