"""
In-memory TTL cache store for provider responses.

This module provides a key/value store with per-entry expiry. Expiry is
checked lazily on read; an opportunistic sweep bounds memory for keys that
are never read again.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from orchestration.models import CacheEntry

logger = logging.getLogger(__name__)


class TTLCache:
    """
    In-memory cache with per-entry TTL.

    A read never returns a value whose age has reached its TTL: expired
    entries are evicted as a side effect of ``get``. All operations are
    non-blocking and guarded by a single lock, so the cache can be shared
    between the event loop and worker threads.

    Attributes:
        default_ttl_ms: TTL applied when ``set`` is called without one (default: 300000)
        max_size: Maximum number of entries before eviction (default: 1000)
        cleanup_interval_seconds: Interval between opportunistic sweeps (default: 600)
    """

    def __init__(
        self,
        default_ttl_ms: int = 300000,
        max_size: int = 1000,
        cleanup_interval_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize TTL cache.

        Args:
            default_ttl_ms: Default time-to-live in milliseconds
            max_size: Maximum number of entries
            cleanup_interval_seconds: Seconds between opportunistic sweeps
            clock: Monotonic clock returning seconds (injectable for tests)
        """
        if default_ttl_ms <= 0:
            raise ValueError(f"default_ttl_ms must be positive, got {default_ttl_ms}")
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")

        self.default_ttl_ms = default_ttl_ms
        self.max_size = max_size
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self.last_cleanup = clock()

        logger.info(
            f"TTLCache initialized with default TTL={default_ttl_ms}ms, max_size={max_size}"
        )

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value, or None if missing or expired
        """
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """
        Get the live cache entry for a key.

        Unlike ``get``, this distinguishes a cached ``None`` value from a miss.

        Args:
            key: Cache key

        Returns:
            CacheEntry if present and not expired, None otherwise
        """
        with self._lock:
            now = self._clock()
            self._cleanup_if_needed(now)

            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Evicted expired cache entry: {key}")
                return None

            self._hits += 1
            return entry

    def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        """
        Store a value, overwriting any existing entry.

        A non-positive TTL stores nothing and drops any existing entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl_ms: Time-to-live in milliseconds (default_ttl_ms when None)
        """
        ttl_ms = ttl_ms if ttl_ms is not None else self.default_ttl_ms

        if ttl_ms <= 0:
            with self._lock:
                self._entries.pop(key, None)
            logger.debug(f"Skipped caching {key} (ttl={ttl_ms}ms)")
            return

        with self._lock:
            now = self._clock()
            self._cleanup_if_needed(now)

            if key not in self._entries and len(self._entries) >= self.max_size:
                self._make_room(now)

            # Re-insert so dict order tracks insertion time for eviction
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, inserted_at=now, ttl_ms=ttl_ms)

        logger.debug(f"Cached {key} (ttl={ttl_ms}ms)")

    def delete(self, key: str) -> bool:
        """
        Remove an entry.

        Args:
            key: Cache key

        Returns:
            True if an entry was removed
        """
        with self._lock:
            return self._entries.pop(key, None) is not None

    def has(self, key: str) -> bool:
        """Check if a live entry exists for the key."""
        return self.get_entry(key) is not None

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        ttl_ms: Optional[int] = None
    ) -> Any:
        """
        Return the cached value, computing and caching it on a miss.

        This is the synchronous, non-deduplicated helper. Concurrent callers
        that need single-flight semantics go through RequestOrchestrator.

        Args:
            key: Cache key
            factory: Zero-argument callable producing the value
            ttl_ms: Time-to-live in milliseconds

        Returns:
            Cached or freshly computed value
        """
        entry = self.get_entry(key)
        if entry is not None:
            return entry.value

        value = factory()
        self.set(key, value, ttl_ms)
        return value

    def clean_expired(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            self.last_cleanup = now
            return self._purge_expired(now)

    def clear(self) -> None:
        """Remove all entries and reset hit/miss counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self.last_cleanup = self._clock()
        logger.info("Cache cleared")

    def size(self) -> int:
        """Number of stored entries, including not-yet-swept expired ones."""
        return len(self._entries)

    def keys(self) -> List[str]:
        """Stored keys in insertion order."""
        with self._lock:
            return list(self._entries.keys())

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with size, max_size, hits, misses and oldest_age_ms
        """
        with self._lock:
            now = self._clock()
            oldest_age_ms = None
            for entry in self._entries.values():
                age = entry.age_ms(now)
                if oldest_age_ms is None or age > oldest_age_ms:
                    oldest_age_ms = age

            return {
                'size': len(self._entries),
                'max_size': self.max_size,
                'hits': self._hits,
                'misses': self._misses,
                'oldest_age_ms': oldest_age_ms
            }

    def _cleanup_if_needed(self, now: float) -> None:
        """Sweep expired entries if the cleanup interval has elapsed. Caller holds the lock."""
        if (now - self.last_cleanup) >= self.cleanup_interval_seconds:
            self._purge_expired(now)
            self.last_cleanup = now

    def _purge_expired(self, now: float) -> int:
        """Remove expired entries. Caller holds the lock."""
        expired_keys = [
            key for key, entry in self._entries.items()
            if entry.is_expired(now)
        ]

        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired cache entries")

        return len(expired_keys)

    def _make_room(self, now: float) -> None:
        """
        Free one slot for a new key. Caller holds the lock.

        Expired entries go first; if none expired, the oldest inserted entry
        is evicted.
        """
        if self._purge_expired(now) > 0:
            return

        oldest_key = next(iter(self._entries))
        del self._entries[oldest_key]
        logger.warning(
            f"Cache size reached limit {self.max_size}, evicted oldest entry",
            extra={'evicted_key': oldest_key}
        )
