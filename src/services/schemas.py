"""
Market data schemas - pydantic models validated at the fetch boundary.

Upstream JSON is narrowed into these models before it is cached, so callers
never see a raw, unvalidated payload. Models allow extra fields: CoinGecko
adds keys over time and the dashboard renders whatever it gets.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel

from src.core.enums import DataSource

# Upstream numbers keep their JSON type (timestamps stay integers)
Number = Union[int, float]


# =============================================================================
# CoinGecko
# =============================================================================


class PriceMap(RootModel[Dict[str, Dict[str, Optional[Number]]]]):
    """Response of /simple/price.

    {"bitcoin": {"usd": 45000, "usd_market_cap": ..., "usd_24h_change": ...,
                 "usd_24h_vol": ..., "last_updated_at": 1700000000}}
    """

    def coin_ids(self) -> List[str]:
        return list(self.root.keys())


class GlobalData(BaseModel):
    """Inner `data` object of /global."""

    model_config = ConfigDict(extra="allow")

    active_cryptocurrencies: Optional[int] = None
    markets: Optional[int] = None
    total_market_cap: Dict[str, Number] = Field(default_factory=dict)
    total_volume: Dict[str, Number] = Field(default_factory=dict)
    market_cap_percentage: Dict[str, Number] = Field(default_factory=dict)
    market_cap_change_percentage_24h_usd: Optional[float] = None
    updated_at: Optional[int] = None


class GlobalStats(BaseModel):
    """Response of /global."""

    model_config = ConfigDict(extra="allow")

    data: GlobalData


class CoinDetail(BaseModel):
    """Response of /coins/{id} (market_data kept as a loose mapping)."""

    model_config = ConfigDict(extra="allow")

    id: str
    symbol: str
    name: str
    market_cap_rank: Optional[int] = None
    image: Optional[Dict[str, Optional[str]]] = None
    description: Optional[Dict[str, Optional[str]]] = None
    market_data: Optional[Dict] = None
    last_updated: Optional[str] = None


class HistorySeries(BaseModel):
    """Response of /coins/{id}/market_chart: lists of [timestamp_ms, value]."""

    model_config = ConfigDict(extra="allow")

    prices: List[List[Optional[Number]]]
    market_caps: List[List[Optional[Number]]] = Field(default_factory=list)
    total_volumes: List[List[Optional[Number]]] = Field(default_factory=list)


# =============================================================================
# News
# =============================================================================


class NewsArticle(BaseModel):
    """Dashboard news article shape (shared by live and fallback data)."""

    id: str
    title: str
    body: str
    url: Optional[str] = None
    imageurl: Optional[str] = None
    source: str
    published_on: int
    tags: List[str] = Field(default_factory=list)
    full_content: Optional[str] = None


class NewsResult(BaseModel):
    """Result of NewsService.fetch_crypto_news()."""

    success: bool = True
    results: List[NewsArticle]
    source: DataSource
    message: Optional[str] = None


# =============================================================================
# Exchange rates
# =============================================================================


class ExchangeRates(BaseModel):
    """USD-based fiat conversion rates."""

    base: str = "USD"
    rates: Dict[str, float]
    source: DataSource
