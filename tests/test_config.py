"""
Unit tests for configuration
"""

from importlib import reload

import pytest


def test_config_defaults():
    """Test that configuration loads correctly"""
    from config.config import (
        FETCH_MAX_ATTEMPTS,
        RATE_LIMIT_BASE_MS,
        RATE_LIMIT_MAX_BACKOFF_MS,
        MAX_COINS_WITHOUT_KEY,
        DEFAULT_COIN_IDS,
    )
    from config.cache_config import CacheConfig, CacheTTL

    assert FETCH_MAX_ATTEMPTS == 3
    assert RATE_LIMIT_BASE_MS == 1000
    assert RATE_LIMIT_MAX_BACKOFF_MS == 60000
    assert MAX_COINS_WITHOUT_KEY == 10
    assert DEFAULT_COIN_IDS[:2] == ["bitcoin", "ethereum"]

    assert CacheTTL.PRICES == 30
    assert CacheTTL.MARKET_DATA == 300
    assert CacheTTL.COIN_DETAILS == 1800
    assert CacheTTL.NEWS == 1800
    assert CacheTTL.EXCHANGE_RATES == 3600
    assert CacheConfig.STALE_TTL_MULTIPLIER == 5


def test_get_ttl():
    from config.cache_config import get_stale_ttl, get_ttl

    assert get_ttl("prices") == 30
    assert get_ttl("unknown_type") == 300
    assert get_stale_ttl("prices") == 150


@pytest.fixture
def cfg(monkeypatch):
    import config.config as cfg

    yield cfg, monkeypatch

    monkeypatch.undo()
    reload(cfg)


def test_bool_flags_parsing(cfg):
    """Test USE_MOCK_NEWS / COALESCE_REQUESTS parsing"""
    module, monkeypatch = cfg

    monkeypatch.setenv("USE_MOCK_NEWS", "TRUE")
    monkeypatch.setenv("COALESCE_REQUESTS", "false")
    reload(module)
    assert module.USE_MOCK_NEWS is True
    assert module.COALESCE_REQUESTS is False

    monkeypatch.delenv("USE_MOCK_NEWS")
    monkeypatch.delenv("COALESCE_REQUESTS")
    reload(module)
    assert module.USE_MOCK_NEWS is False
    assert module.COALESCE_REQUESTS is True


def test_list_settings_parsing(cfg):
    module, monkeypatch = cfg

    monkeypatch.setenv("DEFAULT_COIN_IDS", "bitcoin, solana,,")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000,https://dash.example.com")
    reload(module)

    assert module.DEFAULT_COIN_IDS == ["bitcoin", "solana"]
    assert module.CORS_ORIGINS == ["http://localhost:3000", "https://dash.example.com"]


def test_validate_config_only_warns(cfg):
    module, monkeypatch = cfg

    monkeypatch.setenv("COINGECKO_API_KEY", "")
    monkeypatch.setenv("NEWSDATA_API_KEY", "")
    monkeypatch.setenv("EXCHANGE_RATES_API_KEY", "")
    reload(module)

    warnings = module.validate_config()
    assert any("COINGECKO_API_KEY" in w for w in warnings)
    assert any("fallback" in w for w in warnings)
    assert any("mock exchange rates" in w for w in warnings)
