# coding: utf-8
"""
Client-side rate-limit tracker for one upstream account

Upstreams like CoinGecko answer 429 without a reliable Retry-After, so the
backoff window is tracked here:

    backoff_ms = min(max_backoff_ms, 2 ** consecutive_failures * base_ms)

The failure counter is only reset by a successful upstream call, not by the
backoff window elapsing, so a flapping upstream keeps compounding the backoff.
"""
import threading
import time
from typing import Any, Callable, Dict

from loguru import logger

from config.config import RATE_LIMIT_BASE_MS, RATE_LIMIT_MAX_BACKOFF_MS
from src.core.enums import RateLimitStatus
from src.core.exceptions import RateLimited


class RateLimitTracker:
    """
    Two-state machine: NORMAL and BACKOFF

    - record_rate_limit(): any state -> BACKOFF (called on HTTP 429)
    - check(): raises RateLimited while the backoff deadline is in the future,
      flips back to NORMAL once it has passed
    - record_success(): resets the failure counter and backoff to base

    State changes never await, so they are atomic on the event loop; the lock
    covers callers running in worker threads.
    """

    def __init__(
        self,
        name: str = "upstream",
        base_ms: int = RATE_LIMIT_BASE_MS,
        max_backoff_ms: int = RATE_LIMIT_MAX_BACKOFF_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.base_ms = base_ms
        self.max_backoff_ms = max_backoff_ms
        self._clock = clock
        self._lock = threading.Lock()

        self.is_limited = False
        self.last_hit_at = 0.0
        self.consecutive_failures = 0
        self.backoff_ms = base_ms

    def _now_ms(self) -> float:
        return self._clock() * 1000

    @property
    def status(self) -> RateLimitStatus:
        return RateLimitStatus.BACKOFF if self.is_limited else RateLimitStatus.NORMAL

    def remaining_ms(self) -> int:
        """Milliseconds left in the current backoff window (0 when not limited)."""
        if not self.is_limited:
            return 0
        elapsed = self._now_ms() - self.last_hit_at
        return max(0, int(self.backoff_ms - elapsed))

    def check(self) -> None:
        """
        Gate an outgoing request

        Raises:
            RateLimited: while in backoff and the deadline has not been reached
        """
        with self._lock:
            if not self.is_limited:
                return

            elapsed = self._now_ms() - self.last_hit_at
            if elapsed < self.backoff_ms:
                remaining = int(self.backoff_ms - elapsed)
                logger.info(
                    f"[{self.name}] still in backoff period, {remaining / 1000:.1f}s remaining"
                )
                raise RateLimited(remaining)

            # Deadline passed: allow traffic again but keep the failure count
            self.is_limited = False
            logger.info(
                f"[{self.name}] backoff window elapsed "
                f"(consecutive_failures={self.consecutive_failures})"
            )

    def record_rate_limit(self) -> int:
        """
        Enter (or extend) backoff after a 429

        Returns:
            The new backoff in milliseconds
        """
        with self._lock:
            self.last_hit_at = self._now_ms()
            self.is_limited = True
            self.consecutive_failures += 1
            self.backoff_ms = min(
                self.max_backoff_ms,
                (2 ** self.consecutive_failures) * self.base_ms,
            )
            logger.warning(
                f"[{self.name}] rate limited (429)! Backing off for {self.backoff_ms / 1000:.1f}s "
                f"(consecutive_failures={self.consecutive_failures})"
            )
            return self.backoff_ms

    def record_success(self) -> None:
        """Reset failure counter and backoff after any successful upstream call."""
        with self._lock:
            if self.consecutive_failures > 0:
                logger.info(
                    f"[{self.name}] request succeeded after {self.consecutive_failures} "
                    f"rate-limit hit(s), resetting backoff"
                )
            self.consecutive_failures = 0
            self.backoff_ms = self.base_ms
            self.is_limited = False

    def snapshot(self) -> Dict[str, Any]:
        """Current state for the cache stats endpoint"""
        return {
            "status": self.status.value,
            "is_limited": self.is_limited,
            "consecutive_failures": self.consecutive_failures,
            "backoff_ms": self.backoff_ms,
            "remaining_ms": self.remaining_ms(),
        }
