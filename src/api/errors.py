"""
Gateway error -> HTTP response mapping

RateLimited -> 429 with Retry-After (seconds, rounded up)
UpstreamError -> 502
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from src.core.exceptions import RateLimited, UpstreamError


async def rate_limited_handler(request: Request, exc: RateLimited) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} rate limited ({exc.retry_after_ms}ms)")
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limited",
            "detail": str(exc),
            "retry_after_ms": exc.retry_after_ms,
        },
        headers={"Retry-After": str(exc.retry_after_seconds)},
    )


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} upstream failure: {exc}")
    return JSONResponse(
        status_code=502,
        content={
            "error": "upstream_unavailable",
            "detail": str(exc),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimited, rate_limited_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
