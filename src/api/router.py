"""
FastAPI Router for the Crypto Dashboard API
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from config.config import ENVIRONMENT
from src.services.coingecko_service import CoinGeckoService, get_coingecko_service

# Import sub-routers
from src.api.crypto import router as crypto_router
from src.api.news import router as news_router
from src.api.currency import router as currency_router


# Main router (mounted under /api)
router = APIRouter(tags=["dashboard"])

# Include sub-routers (they carry their own prefixes)
router.include_router(crypto_router)
router.include_router(news_router)
router.include_router(currency_router)


@router.get("/health")
async def health_check(
    service: CoinGeckoService = Depends(get_coingecko_service),
) -> Dict[str, Any]:
    """
    Health check endpoint

    Reports the CoinGecko backoff state so a degraded upstream is visible
    without calling it.
    """
    return {
        "status": "ok",
        "service": "Crypto Dashboard Gateway",
        "environment": ENVIRONMENT,
        "coingecko": service.tracker.snapshot(),
    }
