"""
Rate limiter for provider requests.

This module provides per-provider request pacing so that one client
instance never exceeds a provider's request budget, whichever pipeline
stage is calling it.
"""

import asyncio
import logging
import time
from typing import Dict, Any, Optional


logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token-bucket rate limiter with an optional minimum spacing between calls.

    The bucket holds up to ``requests_per_minute`` tokens and refills
    continuously. ``min_interval`` additionally spaces consecutive requests
    apart, which is how search and extraction providers expect to be paced.
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        min_interval: float = 0.0,
        name: str = "provider"
    ):
        """
        Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            min_interval: Minimum seconds between consecutive requests
            name: Provider name used in log lines
        """
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be at least 1")

        self.requests_per_minute = requests_per_minute
        self.min_interval = min_interval
        self.name = name

        self.tokens = float(requests_per_minute)
        self.last_refill = time.monotonic()
        self.last_request: Optional[float] = None
        self._lock = asyncio.Lock()

        # Statistics
        self.total_requests = 0
        self.delayed_requests = 0

        logger.debug(f"RateLimiter[{name}] initialized: {requests_per_minute}/min, min interval {min_interval}s")

    async def wait_if_needed(self):
        """
        Wait until a request may be made, then record it.
        """
        async with self._lock:
            now = time.monotonic()
            self._refill_tokens(now)

            wait_time = self._calculate_wait_time(now)
            if wait_time > 0:
                self.delayed_requests += 1
                logger.debug(f"RateLimiter[{self.name}] waiting {wait_time:.2f} seconds")
                await asyncio.sleep(wait_time)
                now = time.monotonic()
                self._refill_tokens(now)

            self.tokens -= 1
            self.last_request = now
            self.total_requests += 1

    def _refill_tokens(self, now: float):
        """Refill tokens based on time passed."""
        elapsed = now - self.last_refill
        self.tokens = min(
            float(self.requests_per_minute),
            self.tokens + elapsed * (self.requests_per_minute / 60.0)
        )
        self.last_refill = now

    def _calculate_wait_time(self, now: float) -> float:
        """Calculate how long to wait before making a request."""
        wait_times = [0.0]

        if self.tokens < 1:
            wait_times.append((1 - self.tokens) / (self.requests_per_minute / 60.0))

        if self.min_interval and self.last_request is not None:
            wait_times.append(self.min_interval - (now - self.last_request))

        return max(wait_times)

    def get_stats(self) -> Dict[str, Any]:
        """Get rate limiter statistics."""
        return {
            "name": self.name,
            "total_requests": self.total_requests,
            "delayed_requests": self.delayed_requests,
            "tokens_remaining": max(0.0, self.tokens),
            "requests_per_minute_limit": self.requests_per_minute,
            "min_interval": self.min_interval
        }
