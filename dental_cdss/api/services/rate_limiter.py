"""
Sliding-window admission and quota-aware retry for calls to the generative service.

A single ``RateLimiter`` is shared by every assessment in the process. Callers are
admitted one at a time under an ``asyncio.Lock`` (FIFO for waiters), so concurrent
assessments queue for the same quota in request order. Timestamps are recorded
only when a call is actually dispatched; a caller cancelled while waiting for a
slot or sleeping through a backoff leaves the window untouched.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, TypeVar

from .settings import env_float, env_int

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]


class QuotaExceededError(RuntimeError):
    """Raised by a request function when the callee signals rate limiting (HTTP 429)."""

    def __init__(self, message: str = "rate limit exceeded") -> None:
        super().__init__(message)


class RetryBudgetExhaustedError(RuntimeError):
    """Raised when quota failures persist past the configured retry attempts."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None) -> None:
        super().__init__(f"rate limited after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
        self.detail = {"stage": "invoke", "msg": "retry_budget_exhausted", "attempts": attempts}


def is_quota_signal(exc: BaseException) -> bool:
    if isinstance(exc, QuotaExceededError):
        return True
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    return status == 429


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    max_requests: int = 14
    window_seconds: float = 60.0
    retry_attempts: int = 3
    base_delay: float = 24.0
    max_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts cannot be negative")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("backoff delays cannot be negative")

    @classmethod
    def from_env(cls) -> "RateLimitPolicy":
        return cls(
            max_requests=env_int("RATE_LIMIT_MAX_REQUESTS", 14),
            window_seconds=env_float("RATE_LIMIT_WINDOW_SECONDS", 60.0),
            retry_attempts=env_int("RATE_LIMIT_RETRY_ATTEMPTS", 3),
            base_delay=env_float("RATE_LIMIT_BASE_DELAY", 24.0),
            max_delay=env_float("RATE_LIMIT_MAX_DELAY", 60.0),
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the ``attempt``-th (zero-based) quota failure."""

        return min(self.base_delay * (2 ** attempt), self.max_delay)


class RateLimiter:
    """Rolling one-window request ceiling with exponential backoff on quota signals."""

    def __init__(
        self,
        policy: Optional[RateLimitPolicy] = None,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.policy = policy or RateLimitPolicy()
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self._lock = asyncio.Lock()

    @classmethod
    def from_env(cls) -> "RateLimiter":
        return cls(RateLimitPolicy.from_env())

    def _purge(self, now: float) -> None:
        window = self.policy.window_seconds
        while self._timestamps and now - self._timestamps[0] >= window:
            self._timestamps.popleft()

    def remaining(self) -> int:
        self._purge(self._clock())
        return max(0, self.policy.max_requests - len(self._timestamps))

    def snapshot(self) -> Dict[str, Any]:
        remaining = self.remaining()
        return {
            "max_requests": self.policy.max_requests,
            "window_seconds": self.policy.window_seconds,
            "in_window": self.policy.max_requests - remaining,
            "remaining": remaining,
        }

    def reset(self) -> None:
        self._timestamps.clear()

    async def acquire(self) -> float:
        """Wait for a free slot, record the dispatch and return the seconds spent waiting."""

        waited = 0.0
        async with self._lock:
            while True:
                now = self._clock()
                self._purge(now)
                if len(self._timestamps) < self.policy.max_requests:
                    self._timestamps.append(now)
                    return waited
                oldest = self._timestamps[0]
                delay = max(0.0, self.policy.window_seconds - (now - oldest))
                logger.warning(
                    "Rate limit window full (%d/%d); deferring dispatch %.2fs",
                    len(self._timestamps),
                    self.policy.max_requests,
                    delay,
                )
                await self._sleep(delay)
                waited += delay

    async def invoke(self, request_fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``request_fn`` within quota; only quota signals are retried."""

        dispatches = self.policy.retry_attempts + 1
        last_error: Optional[BaseException] = None
        for attempt in range(dispatches):
            if attempt:
                delay = self.policy.backoff_delay(attempt - 1)
                logger.warning(
                    "Quota signal on attempt %d/%d; retrying in %.2fs",
                    attempt,
                    dispatches,
                    delay,
                )
                await self._sleep(delay)
            await self.acquire()
            try:
                return await request_fn()
            except Exception as exc:
                if not is_quota_signal(exc):
                    raise
                last_error = exc
        logger.error("Quota retries exhausted after %d attempts", dispatches)
        raise RetryBudgetExhaustedError(dispatches, last_error) from last_error


__all__ = [
    "QuotaExceededError",
    "RateLimitPolicy",
    "RateLimiter",
    "RetryBudgetExhaustedError",
    "is_quota_signal",
]
