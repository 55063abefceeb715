"""Token bucket rate limiter for Gmail API calls."""

from __future__ import annotations

import asyncio
import time


class RateLimiter:
    """Async token bucket limiting requests per second.

    Gmail allows 250 quota units per user per second; a ``messages.get``
    costs 5 units, so the default keeps well inside that budget.

    Attributes:
        requests_per_second: Sustained refill rate.
        burst: Maximum tokens held at once.
    """

    def __init__(self, requests_per_second: float = 10.0, burst: int | None = None) -> None:
        """Initialize the limiter.

        Args:
            requests_per_second: Sustained request rate.
            burst: Bucket capacity. Defaults to one second's worth of requests.

        Raises:
            ValueError: If the rate is not positive.
        """
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self.requests_per_second = requests_per_second
        self.burst = burst if burst is not None else max(1, int(requests_per_second))
        self._tokens = float(self.burst)
        self._updated_at = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._updated_at
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.requests_per_second)
        self._updated_at = now

    async def acquire(self) -> None:
        """Wait until a request may be made, then consume one token."""
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                wait = (1 - self._tokens) / self.requests_per_second
                await asyncio.sleep(wait)
                self._refill()
            self._tokens -= 1

    @property
    def available_tokens(self) -> float:
        """Tokens currently available (approximate)."""
        self._refill()
        return self._tokens
