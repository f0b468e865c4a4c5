"""
Core module - shared enums and the error taxonomy.
"""

from src.core.enums import DataSource, HistoryInterval, RateLimitStatus
from src.core.exceptions import (
    GatewayError,
    RateLimited,
    UpstreamError,
    UpstreamNetworkError,
    UpstreamBusinessError,
)

__all__ = [
    "DataSource",
    "HistoryInterval",
    "RateLimitStatus",
    "GatewayError",
    "RateLimited",
    "UpstreamError",
    "UpstreamNetworkError",
    "UpstreamBusinessError",
]
