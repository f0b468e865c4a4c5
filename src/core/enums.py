"""
Core Enums - shared types for the market-data layer.

Defines:
- DataSource: where a payload came from (live upstream vs. fallback dataset)
- HistoryInterval: market-chart granularity derived from the requested range
- RateLimitStatus: state of an upstream account's client-side backoff
"""

from enum import Enum
from typing import Union


class DataSource(str, Enum):
    """Origin of a non-critical payload (news, exchange rates, static prices).

    FALLBACK marks degraded-mode data: a successful result built from a
    hardcoded dataset instead of a live response.
    """

    NEWSDATA = "newsdata.io"
    EXCHANGE_RATE_API = "exchangerate-api"
    FALLBACK = "fallback"


class HistoryInterval(str, Enum):
    """Market-chart granularity.

    Rule (used by every call site):
    - days > 30 (or "max") → DAILY
    - 1 < days <= 30 → HOURLY
    - days <= 1 → MINUTELY
    """

    DAILY = "daily"
    HOURLY = "hourly"
    MINUTELY = "minutely"

    @classmethod
    def for_days(cls, days: Union[int, float, str]) -> "HistoryInterval":
        if isinstance(days, str):
            if days.strip().lower() == "max":
                return cls.DAILY
            days = float(days)
        if days > 30:
            return cls.DAILY
        if days > 1:
            return cls.HOURLY
        return cls.MINUTELY


class RateLimitStatus(str, Enum):
    """Client-side backoff state machine."""

    NORMAL = "normal"
    BACKOFF = "backoff"
