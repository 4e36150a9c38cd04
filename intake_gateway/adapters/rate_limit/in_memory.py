"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and all state is lost on restart.
- Thread-safe: each key has its own lock, so the prune/check/record sequence
  is atomic per key while different keys never wait on each other.
- Keys whose window has emptied are swept from the registry at most once per
  window length, so idle callers do not accumulate.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from intake_gateway.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _KeyWindow:
    lock: threading.Lock = field(default_factory=threading.Lock)
    timestamps: deque[float] = field(default_factory=deque)
    retired: bool = False


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Admit at most ``limit`` requests per key within a trailing window.

    Every admitted request is remembered by its timestamp. On each check the
    key's timestamps older than ``now - window_seconds`` are dropped (lazily,
    only for the key being checked) and the request is admitted only if the
    remaining count leaves room for it. Rejected requests are not recorded.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of admitted units per window.
            window_seconds: Length of the trailing window in seconds.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._registry_lock = threading.Lock()
        self._windows: dict[str, _KeyWindow] = {}
        self._next_sweep_at = 0.0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding a window."""
        with self._registry_lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        # Caller holds the registry lock. Busy windows are skipped, not waited on.
        for key, window in list(self._windows.items()):
            if not window.lock.acquire(blocking=False):
                continue
            try:
                self._prune(window.timestamps, now)
                if not window.timestamps:
                    window.retired = True
                    del self._windows[key]
            finally:
                window.lock.release()
        self._next_sweep_at = now + self._window_seconds

    def _window_for(self, key: str) -> _KeyWindow:
        with self._registry_lock:
            now = self._clock()
            if now >= self._next_sweep_at:
                self._sweep(now)
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = _KeyWindow()
            return window

    def _prune(self, timestamps: deque[float], now: float) -> None:
        cutoff = now - self._window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Check and record a request for ``key``.

        Args:
            key: Unique identifier for rate limiting (e.g., client address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is outside ``1..limit``.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if cost > self._limit:
            raise ValueError("cost must not exceed limit")
        if not key:
            raise ValueError("key must be a non-empty string")

        while True:
            window = self._window_for(key)
            with window.lock:
                # A sweep may retire the window between lookup and lock.
                if window.retired:
                    continue
                return self._consume_locked(window, cost)

    def _consume_locked(self, window: _KeyWindow, cost: int) -> RateLimitResult:
        now = self._clock()
        timestamps = window.timestamps
        self._prune(timestamps, now)

        if len(timestamps) + cost <= self._limit:
            timestamps.extend([now] * cost)
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=self._limit - len(timestamps),
                reset_at=int(math.ceil(timestamps[0] + self._window_seconds)),
                retry_after_seconds=None,
            )

        # The request fits once enough of the oldest entries have expired.
        freeing_index = len(timestamps) + cost - self._limit - 1
        frees_at = timestamps[freeing_index] + self._window_seconds
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=max(0, self._limit - len(timestamps)),
            reset_at=int(math.ceil(timestamps[0] + self._window_seconds)),
            retry_after_seconds=max(1, int(math.ceil(frees_at - now))),
        )
