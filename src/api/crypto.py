"""
Crypto API Endpoints
Market data for the dashboard, served through the CoinGecko cache layer
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from loguru import logger

from config.config import DEFAULT_COIN_IDS
from src.core.enums import DataSource
from src.core.exceptions import UpstreamError
from src.services.coingecko_service import CoinGeckoService, get_coingecko_service
from src.services.fallback_data import get_static_prices
from src.services.schemas import CoinDetail, GlobalStats, HistorySeries, PriceMap


# Create router
router = APIRouter(prefix="/crypto", tags=["crypto"])


def _parse_ids(ids: Optional[str]) -> List[str]:
    if not ids:
        return list(DEFAULT_COIN_IDS)
    return [coin_id for coin_id in ids.split(",") if coin_id.strip()]


async def _prices_with_fallback(
    service: CoinGeckoService, coin_ids: List[str], currency: str
) -> Any:
    try:
        return await service.get_crypto_prices(coin_ids, currency)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        static = get_static_prices(service.normalize_coin_ids(coin_ids), currency)
        if static is None:
            raise
        logger.warning(f"Serving static fallback prices for {len(static.root)} coins: {e}")
        return JSONResponse(
            content=static.model_dump(),
            headers={"X-Data-Source": DataSource.FALLBACK.value},
        )


@router.get("", response_model=PriceMap)
async def get_default_prices(
    currency: str = Query("usd", min_length=2, max_length=10),
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> Any:
    """
    Prices for the dashboard's default coin list

    Returns:
        {"bitcoin": {"usd": 45000, "usd_market_cap": ..., "usd_24h_change": ...}, ...}
    """
    return await _prices_with_fallback(service, list(DEFAULT_COIN_IDS), currency)


@router.get("/prices", response_model=PriceMap)
async def get_prices(
    ids: Optional[str] = Query(None, description="Comma-separated CoinGecko ids"),
    currency: str = Query("usd", min_length=2, max_length=10),
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> Any:
    """
    Prices for the requested coins (default list when ids is omitted)

    Falls back to approximate static USD prices when CoinGecko is down and
    nothing is cached; such responses carry `X-Data-Source: fallback`.
    """
    return await _prices_with_fallback(service, _parse_ids(ids), currency)


@router.get("/global", response_model=GlobalStats)
async def get_global(
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> GlobalStats:
    """Global market stats (total market cap, volume, dominance)"""
    return await service.get_global_market_data()


@router.get("/coin/{coin_id}", response_model=CoinDetail)
async def get_coin(
    coin_id: str,
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> CoinDetail:
    try:
        return await service.get_coin_details(coin_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/history/{coin_id}", response_model=HistorySeries)
async def get_history(
    coin_id: str,
    days: str = Query("7", description="Range in days or 'max'"),
    currency: str = Query("usd", min_length=2, max_length=10),
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> HistorySeries:
    """
    Price, market cap and volume series for a coin

    Granularity follows the range: daily above 30 days, hourly above 1 day,
    minutely otherwise.
    """
    try:
        return await service.get_coin_history(coin_id, days, currency)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/cache/stats")
async def cache_stats(
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> Dict[str, Any]:
    return service.get_cache_stats()


@router.post("/cache/clear")
async def cache_clear(
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> Dict[str, Any]:
    service.clear_cache()
    return {"success": True, "message": "Cache cleared"}
