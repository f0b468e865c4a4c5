"""
FastAPI Server for the Crypto Dashboard Gateway
Serves cached market data, news and exchange rates to the dashboard frontend
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config.config import API_RATE_LIMIT, CORS_ORIGINS, ENVIRONMENT, validate_config
from config.logging import setup_logging
from src.api.errors import register_exception_handlers
from src.api.router import router as api_router
from src.api.ws import router as ws_router
from src.cache import CacheSweeper
from src.services.coingecko_service import get_coingecko_service
from src.services.currency_service import get_currency_service
from src.services.news_service import get_news_service
from src.services.price_broadcaster import get_price_broadcaster

# Setup logging at module level (must run before app creation)
# This ensures logging works when uvicorn imports the module
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events
    """
    # Startup
    logger.info("Starting Crypto Dashboard Gateway...")

    for warning in validate_config():
        logger.warning(f"⚠️ {warning}")

    coingecko = get_coingecko_service()
    news = get_news_service()
    currency = get_currency_service()

    sweeper = CacheSweeper([coingecko.cache, coingecko.stale_cache, news.cache, currency.cache])
    sweeper.start()

    broadcaster = get_price_broadcaster()
    broadcaster.start()

    yield

    # Shutdown
    logger.info("Shutting down Crypto Dashboard Gateway...")

    await broadcaster.stop()
    await sweeper.stop()

    await coingecko.close()
    await news.close()
    await currency.close()
    logger.info("HTTP sessions closed")


# Per-IP rate limit on the gateway itself (independent of upstream backoff)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[API_RATE_LIMIT],  # Global limit for all endpoints
    storage_uri="memory://",
)

# Create FastAPI app
app = FastAPI(
    title="Crypto Dashboard Gateway",
    description="Cached market data, news and exchange rates for the crypto dashboard",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """
    Adds basic security headers to every response

    - X-Content-Type-Options: no MIME sniffing
    - X-Frame-Options: no framing from other origins
    - Referrer-Policy: origin only for cross-origin requests
    """
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if ENVIRONMENT == "production" and request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response


# API router (includes all sub-routers) under /api; websocket at the root
app.include_router(api_router, prefix="/api")
app.include_router(ws_router)

# RateLimited -> 429, UpstreamError -> 502
register_exception_handlers(app)


# Root endpoint
@app.get("/")
async def root():
    return {
        "service": "Crypto Dashboard Gateway",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


# Error handler for HTTPException (must be before generic Exception handler)
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTPException properly - return correct status code and detail
    """
    # Log 4xx as warning, 5xx as error
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}")
    elif exc.status_code >= 400:
        logger.warning(f"HTTP {exc.status_code}: {exc.detail}")

    content = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content)


# Error handler for unexpected exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unexpected errors
    """
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if ENVIRONMENT == "development" else "An error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api_server:app",
        host=os.getenv("API_HOST", "127.0.0.1"),
        port=int(os.getenv("API_PORT", "5000")),
        reload=ENVIRONMENT == "development",
        log_level="info",
    )
