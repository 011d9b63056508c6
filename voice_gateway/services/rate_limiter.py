"""Per-client fixed-window rate limiter for submission endpoints.

Each client gets ``rate`` requests per ``window`` seconds. The quota is
reset lazily on the first request after the window has elapsed, so the
limiter needs no background task.

The bucket table is never pruned; a deployment that sees many distinct
clients grows it without bound.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass
class RateBucket:
    """Remaining quota for one client in the current window."""

    tokens_remaining: int
    window_start: float


class RateLimiter:
    """Fixed-window admission control keyed by client identity.

    Usage:
        limiter = RateLimiter(rate=30, window=60.0)
        if not limiter.allow("10.0.0.5"):
            ...  # reject
    """

    def __init__(
        self,
        rate: int = 30,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate limiter.

        Args:
            rate: Maximum requests per window per client
            window: Window length in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.rate = rate
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, RateBucket] = {}

    def allow(self, client_id: str) -> bool:
        """Check whether a request from ``client_id`` is admitted.

        Args:
            client_id: Client identity (usually an IP address)

        Returns:
            True if admitted (a token was consumed), False if rejected
        """
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(client_id)
            if bucket is None:
                self._buckets[client_id] = RateBucket(
                    tokens_remaining=self.rate - 1,
                    window_start=now,
                )
                return True

            if now - bucket.window_start > self.window:
                bucket.tokens_remaining = self.rate
                bucket.window_start = now

            if bucket.tokens_remaining > 0:
                bucket.tokens_remaining -= 1
                return True

        logger.warning(f"Rate limit exceeded for client {client_id}")
        return False


def get_client_ip(request: Request) -> str:
    """Extract the client identity used for rate limiting.

    Prefers ``X-Forwarded-For`` (reverse proxies), then ``X-Real-IP``,
    then the connection's peer address.

    Args:
        request: Incoming request

    Returns:
        Client identifier string
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client is not None:
        return request.client.host
    return "unknown"
