"""
Gateway error taxonomy.

Only two outcomes ever reach callers of the market-data layer:
- RateLimited: the upstream account is in client-side backoff
- UpstreamError: live fetch failed and no stale copy was available

Degraded (fallback) data is not an error; it is a successful result tagged
with DataSource.FALLBACK.
"""

import math
from typing import Optional


class GatewayError(Exception):
    """Base class for every error raised by the cache/fetch layer."""


class RateLimited(GatewayError):
    """Upstream is in backoff; callers should not retry before retry_after_ms."""

    def __init__(self, retry_after_ms: int, message: Optional[str] = None):
        self.retry_after_ms = max(0, int(retry_after_ms))
        super().__init__(
            message or f"Rate limited. Try again in {self.retry_after_ms / 1000:.1f}s."
        )

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds for a Retry-After header (rounded up)."""
        return math.ceil(self.retry_after_ms / 1000)


class UpstreamError(GatewayError):
    """Live fetch failed."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class UpstreamNetworkError(UpstreamError):
    """No HTTP response (timeout, DNS, connection reset). Retried internally."""


class UpstreamBusinessError(UpstreamError):
    """Non-2xx, non-429 response or an unusable payload. Never retried."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
        body: str = "",
    ):
        self.status = status
        self.body = body
        super().__init__(message, url=url)
