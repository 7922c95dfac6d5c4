"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: each key has its own lock; a short table lock only guards
  creating and dropping keys, so distinct callers never wait on each other's
  checks.
- Idle keys are swept opportunistically from inside ``check`` at most once
  per cleanup interval.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from writing_coach.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from writing_coach.core.model_access import AccessTier

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _KeyWindow:
    """Admitted request timestamps for one key, oldest first."""

    timestamps: deque[float] = field(default_factory=deque)
    lock: threading.Lock = field(default_factory=threading.Lock)
    # Set by the sweeper once the bucket is dropped from the table.
    retired: bool = False

    def evict_older_than(self, cutoff: float) -> None:
        while self.timestamps and self.timestamps[0] < cutoff:
            self.timestamps.popleft()


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests in a trailing window per key.

    Unlike a fixed window, capacity comes back one request at a time as each
    admitted timestamp ages out of the window.
    """

    def __init__(
        self,
        *,
        anonymous_limit: int,
        authenticated_limit: int,
        window_seconds: float,
        cleanup_interval_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the limiter.

        Args:
            anonymous_limit: Requests per window for FREE-tier callers.
            authenticated_limit: Requests per window for every other tier.
            window_seconds: Length of the trailing window.
            cleanup_interval_seconds: Minimum time between idle-key sweeps.
            clock: Time source returning seconds (monotonic by default).

        Raises:
            ValueError: If a limit or the window is invalid.
        """
        if anonymous_limit < 1 or authenticated_limit < 1:
            raise ValueError("limits must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._anonymous_limit = anonymous_limit
        self._authenticated_limit = authenticated_limit
        self._window = float(window_seconds)
        self._cleanup_interval = float(cleanup_interval_seconds)
        self._clock = clock
        self._table_lock = threading.Lock()
        self._windows: dict[str, _KeyWindow] = {}
        self._last_cleanup = clock()

    @property
    def window_seconds(self) -> float:
        return self._window

    def limit_for(self, tier: AccessTier) -> int:
        return self._anonymous_limit if tier <= AccessTier.FREE else self._authenticated_limit

    def tracked_keys(self) -> int:
        with self._table_lock:
            return len(self._windows)

    def _window_for(self, key: str) -> _KeyWindow:
        with self._table_lock:
            window = self._windows.get(key)
            if window is None:
                window = _KeyWindow()
                self._windows[key] = window
            return window

    def _retry_after(self, oldest: float, now: float) -> int:
        return max(1, int(math.ceil(oldest + self._window - now)))

    def check(self, key: str, tier: AccessTier) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        Evicts timestamps older than the window, rejects when the remaining
        count has reached the limit (without recording the attempt), and
        otherwise records the request.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        self._cleanup_if_due()

        limit = self.limit_for(tier)
        while True:
            window = self._window_for(key)
            with window.lock:
                if window.retired:
                    # Swept between lookup and lock; resolve the fresh bucket.
                    continue

                now = self._clock()
                window.evict_older_than(now - self._window)

                count = len(window.timestamps)
                if count >= limit:
                    return RateLimitResult(
                        limited=True,
                        retry_after_seconds=self._retry_after(window.timestamps[0], now),
                        limit=limit,
                        current_count=count,
                    )

                window.timestamps.append(now)
                return RateLimitResult(
                    limited=False,
                    retry_after_seconds=0,
                    limit=limit,
                    current_count=count + 1,
                )

    def _cleanup_if_due(self) -> None:
        now = self._clock()
        with self._table_lock:
            if now - self._last_cleanup < self._cleanup_interval:
                return
            self._last_cleanup = now
        self.sweep()

    def sweep(self) -> int:
        """Drop keys with no timestamps left in the window.

        Returns:
            Number of keys removed.
        """
        cutoff = self._clock() - self._window
        with self._table_lock:
            candidates = list(self._windows.items())

        removed = 0
        for key, window in candidates:
            with window.lock:
                window.evict_older_than(cutoff)
                if window.timestamps or window.retired:
                    continue
                with self._table_lock:
                    if self._windows.get(key) is window:
                        del self._windows[key]
                        window.retired = True
                        removed += 1

        if removed:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed_keys": removed, "remaining_keys": self.tracked_keys()},
            )
        return removed
