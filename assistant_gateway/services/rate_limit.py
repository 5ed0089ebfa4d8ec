"""
Rate Limiting - per-identity fixed window

Gates calls into the chat gateway. Each identity gets a window of
window_seconds; the first request (or the first after the window ended)
opens a new window with count 1, later requests increment the count until
max_requests is reached, after which requests are rejected until the window
ends.

Entries for expired windows are swept periodically, and the map is capped at
max_entries identities (oldest windows evicted first), so idle identities do
not accumulate for the life of the process.

Pattern: Strategy pattern - RateLimiter interface, in-memory implementation
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from assistant_gateway.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_ENTRIES = 10_000


# =============================================================================
# Rate Limit Result
# =============================================================================


@dataclass
class RateLimitResult:
    """
    Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed
        limit: Maximum requests per window
        remaining: Remaining requests in current window
        reset_at: Unix timestamp when the window resets
        retry_after: Seconds to wait before retrying (if blocked)
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: Optional[int] = None


@dataclass
class RateLimitEntry:
    window_start: float
    request_count: int


# =============================================================================
# Rate Limiter Interface
# =============================================================================


class RateLimiter(ABC):
    """
    Abstract interface for rate limiting algorithms.
    """

    @abstractmethod
    async def check(self, identity: str) -> RateLimitResult:
        """
        Count a request from identity and report whether it is allowed.

        Args:
            identity: Opaque caller identity from the auth layer
        """


# =============================================================================
# In-Memory Fixed Window Rate Limiter
# =============================================================================


class FixedWindowRateLimiter(RateLimiter):
    """
    In-memory fixed-window limiter.

    Suitable for a single-process deployment; all state is lost on restart.

    Args:
        max_requests: Requests allowed per window
        window_seconds: Window length
        max_entries: Maximum identities tracked at once
        sweep_interval_seconds: Minimum time between expiry sweeps
        clock: Wall-clock time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        sweep_interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._sweep_interval = (
            sweep_interval_seconds if sweep_interval_seconds is not None else window_seconds
        )
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._last_sweep = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "FixedWindowRateLimiter":
        return cls(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            max_entries=settings.rate_limit_max_entries,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now - entry.window_start >= self.window_seconds

    def _sweep(self, now: float, reserve: int = 0) -> None:
        """
        Drop expired windows, then evict the oldest windows until at most
        max_entries - reserve remain.
        """
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in expired:
            del self._entries[key]

        overflow = len(self._entries) - (self.max_entries - reserve)
        if overflow > 0:
            oldest = sorted(self._entries, key=lambda k: self._entries[k].window_start)
            for key in oldest[:overflow]:
                del self._entries[key]

        self._last_sweep = now
        if expired or overflow > 0:
            logger.debug(
                "Rate limiter sweep: expired=%d evicted=%d tracked=%d",
                len(expired),
                max(overflow, 0),
                len(self._entries),
            )

    async def check(self, identity: str) -> RateLimitResult:
        async with self._lock:
            now = self._clock()

            is_new = identity not in self._entries
            if now - self._last_sweep >= self._sweep_interval or (
                is_new and len(self._entries) >= self.max_entries
            ):
                self._sweep(now, reserve=1 if is_new else 0)

            entry = self._entries.get(identity)

            if entry is None or self._expired(entry, now):
                entry = RateLimitEntry(window_start=now, request_count=1)
                self._entries[identity] = entry
                return RateLimitResult(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - 1,
                    reset_at=int(now + self.window_seconds),
                )

            window_end = entry.window_start + self.window_seconds

            if entry.request_count >= self.max_requests:
                retry_after = max(1, math.ceil(window_end - now))
                return RateLimitResult(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    reset_at=int(window_end),
                    retry_after=retry_after,
                )

            entry.request_count += 1
            return RateLimitResult(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - entry.request_count,
                reset_at=int(window_end),
            )

    async def reset(self, identity: Optional[str] = None) -> None:
        """Forget one identity's window, or all of them."""
        async with self._lock:
            if identity is None:
                self._entries.clear()
            else:
                self._entries.pop(identity, None)
