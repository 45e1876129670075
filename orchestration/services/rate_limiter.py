"""
Fixed-window rate limiter for provider calls.

This module implements a per-key fixed window request counter. Each key
gets a window of ``window_ms`` that opens on its first request; up to
``max_requests`` requests are admitted per window and the rest are rejected
with the time remaining until the window resets.
"""

import logging
import math
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, Optional

from orchestration.exceptions import RateLimitExceededError
from orchestration.models import RateLimitDecision, RateLimitPreset, RateWindow

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """
    Per-key fixed window request counter.

    Windows are not aligned to the wall clock; each key's window starts at
    its first request after the previous window expired. Because counts
    reset abruptly, a caller can be admitted up to ``2 * max_requests``
    times across a window boundary. Use a sliding-window or token-bucket
    limiter where strict per-interval admission is required.

    Expired windows are dropped opportunistically when their key is seen
    again; ``clean_expired`` sweeps all of them.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_ms: int = 60000,
        clock: Callable[[], float] = time.monotonic,
        metrics_emitter=None
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests admitted per key per window (default: 100)
            window_ms: Window length in milliseconds (default: 60000)
            clock: Monotonic clock returning seconds (injectable for tests)
            metrics_emitter: Optional metrics emitter for CloudWatch metrics
        """
        if max_requests < 1:
            raise ValueError(f"max_requests must be at least 1, got {max_requests}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")

        self.max_requests = max_requests
        self.window_ms = window_ms
        self.metrics_emitter = metrics_emitter
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, RateWindow] = {}
        self.admitted_count = 0
        self.rejected_count = 0

        logger.info(
            f"FixedWindowRateLimiter initialized: {max_requests} requests per {window_ms}ms"
        )

    @classmethod
    def from_preset(cls, preset: RateLimitPreset, **kwargs) -> 'FixedWindowRateLimiter':
        """Create a limiter from a named preset (see RATE_LIMIT_PRESETS)."""
        return cls(max_requests=preset.max_requests, window_ms=preset.window_ms, **kwargs)

    def check(self, key: str) -> RateLimitDecision:
        """
        Count a request for ``key`` and decide whether it is admitted.

        Args:
            key: Rate limit key

        Returns:
            RateLimitDecision describing the outcome
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None or window.is_expired(now, self.window_ms):
                window = RateWindow(key=key, count=1, window_start=now)
                self._windows[key] = window
                self.admitted_count += 1
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - 1,
                    reset_at=window.reset_at(self.window_ms)
                )

            reset_at = window.reset_at(self.window_ms)

            if window.count < self.max_requests:
                window.count += 1
                self.admitted_count += 1
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - window.count,
                    reset_at=reset_at
                )

            self.rejected_count += 1
            retry_after_ms = max(1, math.ceil((reset_at - now) * 1000))
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_at=reset_at,
                retry_after_ms=retry_after_ms
            )

    def try_acquire(self, key: str) -> bool:
        """
        Non-blocking admission check.

        Args:
            key: Rate limit key

        Returns:
            True if the request was admitted
        """
        return self.check(key).allowed

    def acquire_or_reject(self, key: str) -> RateLimitDecision:
        """
        Admit a request or raise.

        Args:
            key: Rate limit key

        Returns:
            RateLimitDecision for the admitted request

        Raises:
            RateLimitExceededError: If the key's window budget is exhausted
        """
        decision = self.check(key)

        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded for {key}",
                extra={
                    'rate_limit_key': key,
                    'limit': decision.limit,
                    'window_ms': self.window_ms,
                    'retry_after_ms': decision.retry_after_ms
                }
            )

            if self.metrics_emitter:
                self.metrics_emitter.emit_rate_limit_rejection(key)

            raise RateLimitExceededError(decision.retry_after_ms, key)

        return decision

    def get_remaining(self, key: str) -> int:
        """Requests still admissible for ``key`` in its current window."""
        with self._lock:
            window = self._windows.get(key)
            if window is None or window.is_expired(self._clock(), self.window_ms):
                return self.max_requests
            return max(0, self.max_requests - window.count)

    def get_reset_time(self, key: str) -> Optional[float]:
        """Clock reading at which the current window for ``key`` ends, or None if no window is open."""
        with self._lock:
            window = self._windows.get(key)
            if window is None or window.is_expired(self._clock(), self.window_ms):
                return None
            return window.reset_at(self.window_ms)

    def get_window(self, key: str) -> Optional[RateWindow]:
        """Snapshot of the window record for ``key``, if any."""
        with self._lock:
            window = self._windows.get(key)
            return replace(window) if window is not None else None

    def reset(self, key: str) -> None:
        """Forget the window for ``key``."""
        with self._lock:
            self._windows.pop(key, None)

    def clear_all(self) -> None:
        """Forget all windows."""
        with self._lock:
            self._windows.clear()

    def clean_expired(self) -> int:
        """
        Remove windows that have ended.

        Returns:
            Number of windows removed
        """
        with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, window in self._windows.items()
                if window.is_expired(now, self.window_ms)
            ]

            for key in expired_keys:
                del self._windows[key]

        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired rate windows")

        return len(expired_keys)

    def get_statistics(self) -> dict:
        """
        Get rate limiter statistics.

        Returns:
            Dictionary with admitted_count, rejected_count and active_windows
        """
        return {
            'admitted_count': self.admitted_count,
            'rejected_count': self.rejected_count,
            'active_windows': len(self._windows)
        }

    def reset_statistics(self) -> None:
        """Reset statistics counters."""
        self.admitted_count = 0
        self.rejected_count = 0
