"""
Configuration module for the Crypto Dashboard Gateway

Loads configuration from environment variables using python-dotenv
"""

import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load .env file (override=False keeps explicit shell/test overrides on top)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path, override=False)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# Environment
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Optional: Sentry
SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")

# =============================================================================
# COINGECKO (price / market data upstream)
# =============================================================================
COINGECKO_API_KEY: str = os.getenv("COINGECKO_API_KEY", "")
COINGECKO_USE_PRO_API: bool = _env_bool("COINGECKO_USE_PRO_API")
COINGECKO_API_URL: str = os.getenv(
    "COINGECKO_API_URL", "https://api.coingecko.com/api/v3"
)
COINGECKO_PRO_API_URL: str = os.getenv(
    "COINGECKO_PRO_API_URL", "https://pro-api.coingecko.com/api/v3"
)

# Without a key the public API is throttled hard, so large batches are cut down
MAX_COINS_WITHOUT_KEY: int = int(os.getenv("MAX_COINS_WITHOUT_KEY", "10"))

# Coins shown on the dashboard when the caller does not pass ?ids=
DEFAULT_COIN_IDS: List[str] = [
    coin_id.strip()
    for coin_id in os.getenv(
        "DEFAULT_COIN_IDS",
        "bitcoin,ethereum,cardano,polkadot,chainlink,litecoin,binancecoin,"
        "solana,dogecoin,ripple,avalanche-2,polygon,uniswap,cosmos,stellar,"
        "filecoin,aave,algorand,vechain,hedera-hashgraph,theta-token,the-sandbox",
    ).split(",")
    if coin_id.strip()
]

# =============================================================================
# NEWS (NewsData.io)
# =============================================================================
NEWSDATA_API_KEY: str = os.getenv("NEWSDATA_API_KEY", "")
NEWSDATA_API_URL: str = os.getenv("NEWSDATA_API_URL", "https://newsdata.io/api/1/news")
NEWS_QUERY: str = os.getenv(
    "NEWS_QUERY", "crypto OR cryptocurrency OR bitcoin OR ethereum OR blockchain"
)
USE_MOCK_NEWS: bool = _env_bool("USE_MOCK_NEWS")

# =============================================================================
# EXCHANGE RATES (ExchangeRate-API)
# =============================================================================
EXCHANGE_RATES_API_KEY: str = os.getenv("EXCHANGE_RATES_API_KEY", "")
EXCHANGE_RATES_API_URL: str = os.getenv(
    "EXCHANGE_RATES_API_URL", "https://v6.exchangerate-api.com/v6"
)

# =============================================================================
# FETCH / RETRY / BACKOFF
# =============================================================================
FETCH_MAX_ATTEMPTS: int = int(os.getenv("FETCH_MAX_ATTEMPTS", "3"))
FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "15"))
FETCH_RETRY_BASE_DELAY: float = float(os.getenv("FETCH_RETRY_BASE_DELAY", "0.5"))
FETCH_RETRY_MAX_DELAY: float = float(os.getenv("FETCH_RETRY_MAX_DELAY", "10"))

# Client-side backoff after a 429: min(max, 2**failures * base)
RATE_LIMIT_BASE_MS: int = int(os.getenv("RATE_LIMIT_BASE_MS", "1000"))
RATE_LIMIT_MAX_BACKOFF_MS: int = int(os.getenv("RATE_LIMIT_MAX_BACKOFF_MS", "60000"))

# Share one upstream fetch between concurrent misses on the same key
COALESCE_REQUESTS: bool = _env_bool("COALESCE_REQUESTS", "true")

# =============================================================================
# HTTP SERVER / PUSH CHANNEL
# =============================================================================
API_RATE_LIMIT: str = os.getenv("API_RATE_LIMIT", "300/minute")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
PRICE_PUSH_INTERVAL: float = float(os.getenv("PRICE_PUSH_INTERVAL", "30"))


def validate_config() -> List[str]:
    """
    Check optional upstream credentials

    Nothing here is fatal: every upstream has a degraded mode, so missing
    keys only produce warnings for the startup log.
    """
    warnings = []

    if not COINGECKO_API_KEY:
        warnings.append(
            f"COINGECKO_API_KEY not set - public API, max {MAX_COINS_WITHOUT_KEY} coins per price request"
        )

    if COINGECKO_USE_PRO_API and not COINGECKO_API_KEY:
        warnings.append("COINGECKO_USE_PRO_API=true requires COINGECKO_API_KEY")

    if not NEWSDATA_API_KEY or USE_MOCK_NEWS:
        warnings.append("News served from fallback dataset (NEWSDATA_API_KEY missing or USE_MOCK_NEWS=true)")

    if not EXCHANGE_RATES_API_KEY:
        warnings.append("EXCHANGE_RATES_API_KEY not set - using mock exchange rates")

    return warnings
