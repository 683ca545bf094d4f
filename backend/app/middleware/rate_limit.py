"""Reusable in-memory rate limiter.

Used by the login endpoint to throttle password guessing per client IP.
For multi-replica deployments, swap to Redis.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class InMemoryRateLimiter:
    """Sliding-window in-memory rate limiter keyed by an arbitrary string."""

    def __init__(self, window_seconds: int = 60, max_attempts: int = 5) -> None:
        self._window = window_seconds
        self._max = max_attempts
        self._attempts: dict[str, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def check(self, key: str) -> None:
        """Raise HTTP 429 if *key* has exceeded *max_attempts* in the window."""
        now = time.monotonic()
        with self._lock:
            recent = [t for t in self._attempts[key] if now - t < self._window]
            if len(recent) >= self._max:
                self._attempts[key] = recent
                logger.warning("Rate limit hit for %s", key)
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"Too many attempts. Try again in {self._window} seconds.",
                )
            recent.append(now)
            self._attempts[key] = recent
