"""
News API Endpoints
"""

from fastapi import APIRouter, Depends, Query

from src.services.news_service import NewsService, get_news_service
from src.services.schemas import NewsResult


router = APIRouter(prefix="/news", tags=["news"])


@router.get("", response_model=NewsResult)
async def get_news(
    limit: int = Query(10, ge=1, le=50),
    language: str = Query("en", min_length=2, max_length=5),
    service: NewsService = Depends(get_news_service),
) -> NewsResult:
    """
    Latest crypto news

    Never fails: when NewsData.io is unavailable the response carries
    `source: "fallback"` and a `message`.
    """
    return await service.fetch_crypto_news(limit=limit, language=language)
