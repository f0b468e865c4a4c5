# coding: utf-8
"""
Retrying HTTP fetcher for upstream JSON APIs

Wraps a single upstream GET with bounded retries:
- network errors (timeout, DNS, connection reset) are retried with exponential backoff
- HTTP 429 marks the rate-limit tracker and aborts immediately
- any other non-2xx status aborts immediately
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import aiohttp
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.config import (
    FETCH_MAX_ATTEMPTS,
    FETCH_TIMEOUT_SECONDS,
    FETCH_RETRY_BASE_DELAY,
    FETCH_RETRY_MAX_DELAY,
)
from src.core.exceptions import (
    RateLimited,
    UpstreamBusinessError,
    UpstreamNetworkError,
)
from src.services.rate_limit_tracker import RateLimitTracker


DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class RetryingFetcher:
    """
    GET a JSON document with retries, timeouts and 429 tracking

    The HTTP session is injectable: pass an aiohttp.ClientSession (or any object
    whose get() returns an async context manager yielding a response with
    .status, .json() and .text()). Without one, a session is created lazily and
    owned by the fetcher; call close() on shutdown.

    The sleep coroutine is injectable too, so tests can drive the retry loop
    without real timers.
    """

    def __init__(
        self,
        name: str = "upstream",
        tracker: Optional[RateLimitTracker] = None,
        session: Optional[Any] = None,
        max_attempts: int = FETCH_MAX_ATTEMPTS,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        retry_base_delay: float = FETCH_RETRY_BASE_DELAY,
        retry_max_delay: float = FETCH_RETRY_MAX_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.name = name
        self.tracker = tracker
        self.max_attempts = max(1, max_attempts)
        self.timeout = timeout
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._sleep = sleep
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> Any:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this fetcher created it"""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug(f"[{self.name}] HTTP session closed")

    async def fetch(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Fetch JSON from an upstream endpoint

        Args:
            url: Absolute URL
            params: Query parameters (bools are sent as 'true'/'false')
            headers: Extra headers merged over DEFAULT_HEADERS
            timeout: Per-attempt timeout in seconds (default: self.timeout)

        Returns:
            Decoded JSON body

        Raises:
            RateLimited: upstream answered 429, or the tracker entered backoff
                before a retry (tracker is now in backoff)
            UpstreamBusinessError: non-2xx status or undecodable body
            UpstreamNetworkError: network failures on every attempt
        """
        query = self._encode_params(params)
        request_headers = {**DEFAULT_HEADERS, **(headers or {})}
        per_attempt_timeout = self.timeout if timeout is None else timeout

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(UpstreamNetworkError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.retry_base_delay,
                min=self.retry_base_delay,
                max=self.retry_max_delay,
            ),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    # A concurrent request may have hit 429 while we were waiting to retry
                    if attempt.retry_state.attempt_number > 1 and self.tracker is not None:
                        self.tracker.check()
                    data = await self._attempt(
                        url,
                        query,
                        request_headers,
                        per_attempt_timeout,
                        attempt.retry_state.attempt_number,
                    )
        except UpstreamNetworkError as e:
            logger.error(f"[{self.name}] request failed after {self.max_attempts} attempts: {e}")
            raise

        if self.tracker is not None:
            self.tracker.record_success()
        return data

    async def _attempt(
        self,
        url: str,
        params: Dict[str, str],
        headers: Dict[str, str],
        timeout: float,
        attempt_number: int,
    ) -> Any:
        """One HTTP round-trip, classified into the gateway error taxonomy"""
        remaining = self.max_attempts - attempt_number
        logger.debug(
            f"[{self.name}] GET {url} (attempt {attempt_number}/{self.max_attempts}, "
            f"{remaining} retries left)"
        )
        session = await self._get_session()

        try:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                status = response.status

                if status == 429:
                    backoff_ms = (
                        self.tracker.record_rate_limit() if self.tracker is not None else 0
                    )
                    raise RateLimited(
                        backoff_ms, f"{self.name} rate limit (429) on {url}"
                    )

                if not 200 <= status < 300:
                    body = await response.text()
                    logger.error(f"[{self.name}] API error {status} for {url}: {body[:200]}")
                    raise UpstreamBusinessError(
                        f"{self.name} returned HTTP {status}",
                        url=url,
                        status=status,
                        body=body[:500],
                    )

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamBusinessError(
                        f"{self.name} returned invalid JSON: {e}", url=url, status=status
                    ) from e

        except (aiohttp.ClientError, TimeoutError, asyncio.TimeoutError) as e:
            raise UpstreamNetworkError(
                f"{self.name} network error: {type(e).__name__}: {e}", url=url
            ) from e

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        remaining = self.max_attempts - retry_state.attempt_number
        logger.warning(
            f"[{self.name}] request error on attempt {retry_state.attempt_number}/{self.max_attempts}: "
            f"{error}. Retrying in {wait:.1f}s ({remaining} retries left)"
        )

    @staticmethod
    def _encode_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        encoded = {}
        for name, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, bool):
                encoded[name] = "true" if value else "false"
            else:
                encoded[name] = str(value)
        return encoded
