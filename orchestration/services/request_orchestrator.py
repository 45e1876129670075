"""
Request orchestrator for rate-limited upstream provider calls.

This module composes the TTL cache, single-flight deduplicator, fixed-window
rate limiter and bounded task queue into the single ``fetch_or_compute``
entry point used by route handlers. For every call it decides whether to
serve from cache, join an in-flight computation, reject for exceeding the
caller's budget, or enqueue the provider call.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from orchestration.config.settings import Settings
from orchestration.exceptions import ComputeError, ConfigurationError, TaskTimeoutError
from orchestration.models import OrchestratorConfig, Task, TaskStatus
from orchestration.services.rate_limiter import FixedWindowRateLimiter
from orchestration.services.single_flight import SingleFlight
from orchestration.services.task_queue import TaskQueue
from orchestration.services.ttl_cache import TTLCache
from orchestration.utils.metrics_emitter import MetricsEmitter

logger = logging.getLogger(__name__)


class RequestOrchestrator:
    """
    Cache-first, deduplicated, rate-limited and bounded provider call executor.

    Steps for each ``fetch_or_compute`` call:
    1. Cache hit -> return the cached value
    2. In-flight computation for the cache key -> attach and share its
       result without consuming rate budget
    3. Rate limit check on the caller's key -> reject with
       RateLimitExceededError
    4. Register in-flight entry and submit the compute function to the queue
    5. Success -> cache the value, clear the in-flight entry, resolve waiters
    6. Failure or timeout -> clear the in-flight entry without caching and
       raise ComputeError / TaskTimeoutError to every waiter

    Steps 1-4 contain no suspension point, so deciding and registering is
    atomic on the event loop. The value is cached before the in-flight entry
    is cleared, so no caller can observe neither.

    One instance is constructed at startup and passed to every consumer.
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        single_flight: Optional[SingleFlight] = None,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
        task_queue: Optional[TaskQueue] = None,
        config: Optional[OrchestratorConfig] = None,
        metrics_emitter=None
    ):
        """
        Initialize request orchestrator.

        Components that are not supplied are built from ``config``.

        Args:
            cache: TTL cache store (creates new if None)
            single_flight: Single-flight deduplicator (creates new if None)
            rate_limiter: Fixed-window rate limiter (creates new if None)
            task_queue: Bounded task queue (creates new if None)
            config: Configuration for components built here (defaults if None)
            metrics_emitter: Optional metrics emitter for CloudWatch metrics
        """
        self.config = config or OrchestratorConfig()
        self.metrics_emitter = metrics_emitter

        self.cache = cache or TTLCache(
            default_ttl_ms=self.config.default_ttl_ms,
            max_size=self.config.cache_max_size,
            cleanup_interval_seconds=self.config.cache_cleanup_interval_seconds
        )
        self.single_flight = single_flight or SingleFlight()
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter(
            max_requests=self.config.max_requests_per_window,
            window_ms=self.config.default_window_ms,
            metrics_emitter=metrics_emitter
        )
        self.task_queue = task_queue or TaskQueue(
            concurrency_limit=self.config.concurrency_limit,
            default_timeout_ms=self.config.default_task_timeout_ms,
            result_retention_seconds=self.config.result_retention_seconds,
            metrics_emitter=metrics_emitter
        )

        self._sweeper: Optional[asyncio.Task] = None

        logger.info("Initialized RequestOrchestrator")

    @classmethod
    def from_config(
        cls,
        config: OrchestratorConfig,
        metrics_emitter=None
    ) -> 'RequestOrchestrator':
        """Build an orchestrator and all of its components from configuration."""
        return cls(config=config, metrics_emitter=metrics_emitter)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'RequestOrchestrator':
        """
        Build an orchestrator from environment settings.

        A CloudWatch MetricsEmitter is attached when METRICS_ENABLED is set.

        Args:
            settings: Loaded settings (read from the environment if None)
        """
        settings = settings or Settings()
        metrics_emitter = None
        if settings.metrics_enabled:
            metrics_emitter = MetricsEmitter(namespace=settings.metrics_namespace)

        logger.info("Building RequestOrchestrator from settings", extra=settings.to_dict())
        return cls.from_config(settings.to_config(), metrics_emitter=metrics_emitter)

    async def fetch_or_compute(
        self,
        cache_key: str,
        rate_limit_key: str,
        priority: int,
        compute_fn: Callable[[], Any],
        ttl_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None
    ) -> Any:
        """
        Return the value for ``cache_key``, computing it at most once concurrently.

        Args:
            cache_key: Explicit key identifying the provider response
            rate_limit_key: Caller budget key (client IP, address, ...)
            priority: Queue priority; higher starts first
            compute_fn: Zero-argument provider call (sync or coroutine function)
            ttl_ms: Cache TTL for a successful result (config default if None;
                0 returns the value without caching it)
            timeout_ms: Task timeout (config default if None)

        Returns:
            Cached, shared or freshly computed value

        Raises:
            RateLimitExceededError: If the caller's window budget is exhausted
            TaskTimeoutError: If the provider call did not settle in time
            ComputeError: If the provider call raised
            ConfigurationError: If ttl_ms is negative or timeout_ms is not positive
        """
        if ttl_ms is not None and ttl_ms < 0:
            raise ConfigurationError(f"ttl_ms must be non-negative, got {ttl_ms}")
        if timeout_ms is not None and timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be positive, got {timeout_ms}")

        entry = self.cache.get_entry(cache_key)
        if entry is not None:
            logger.debug(f"Cache hit for {cache_key}")
            self._emit('emit_cache_hit')
            return entry.value

        self._emit('emit_cache_miss')

        joined = self.single_flight.join(cache_key)
        if joined is not None:
            self._emit('emit_inflight_join')
            return await joined

        self.rate_limiter.acquire_or_reject(rate_limit_key)

        async def compute_and_store() -> Any:
            return await self._compute_and_store(
                cache_key, priority, compute_fn, ttl_ms, timeout_ms
            )

        return await self.single_flight.run_exclusive(cache_key, compute_and_store)

    def invalidate(self, cache_key: str) -> bool:
        """
        Drop the cached value for ``cache_key``.

        An in-flight computation for the key is unaffected and will repopulate
        the cache when it succeeds.

        Returns:
            True if an entry was removed
        """
        return self.cache.delete(cache_key)

    def sweep_expired(self) -> dict:
        """
        Sweep expired state from every component.

        Returns:
            Dictionary with the number of cache entries, rate windows and task
            results removed
        """
        swept = {
            'cache_entries': self.cache.clean_expired(),
            'rate_windows': self.rate_limiter.clean_expired(),
            'task_results': self.task_queue.evict_expired_results()
        }
        logger.debug("Swept expired orchestration state", extra=swept)
        return swept

    def get_stats(self) -> dict:
        """
        Get combined component statistics.

        Returns:
            Dictionary with cache, rate_limiter, queue and in_flight sections
        """
        return {
            'cache': self.cache.get_stats(),
            'rate_limiter': self.rate_limiter.get_statistics(),
            'queue': self.task_queue.get_stats().to_dict(),
            'in_flight': self.single_flight.size()
        }

    def start_sweeper(self, interval_seconds: Optional[float] = None) -> asyncio.Task:
        """
        Start a background task that periodically calls ``sweep_expired``.

        Args:
            interval_seconds: Seconds between sweeps (cache cleanup interval if None)

        Returns:
            The sweeper task

        Raises:
            ConfigurationError: If interval_seconds is not positive
        """
        if self._sweeper is not None and not self._sweeper.done():
            return self._sweeper

        interval = (
            interval_seconds if interval_seconds is not None
            else self.config.cache_cleanup_interval_seconds
        )
        if interval <= 0:
            raise ConfigurationError(f"interval_seconds must be positive, got {interval}")

        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever(interval))
        logger.info(f"Started orchestration sweeper (interval={interval}s)")
        return self._sweeper

    async def stop_sweeper(self) -> None:
        """Stop the background sweeper if it is running."""
        if self._sweeper is None:
            return

        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def close(self) -> None:
        """Stop the sweeper, cancel queued work and flush metrics."""
        await self.stop_sweeper()
        await self.task_queue.shutdown()
        if self.metrics_emitter:
            await asyncio.get_running_loop().run_in_executor(None, self.metrics_emitter.flush)

    async def _compute_and_store(
        self,
        cache_key: str,
        priority: int,
        compute_fn: Callable[[], Any],
        ttl_ms: Optional[int],
        timeout_ms: Optional[int]
    ) -> Any:
        """Run the provider call through the queue and cache a successful result."""
        task = Task(
            execute=compute_fn,
            priority=priority,
            timeout_ms=timeout_ms if timeout_ms is not None else self.config.default_task_timeout_ms
        )
        started = time.monotonic()
        result = await self.task_queue.submit(task)

        if result.status == TaskStatus.COMPLETED:
            self.cache.set(
                cache_key,
                result.result,
                ttl_ms if ttl_ms is not None else self.config.default_ttl_ms
            )
            logger.debug(
                f"Computed and cached {cache_key}",
                extra={
                    'cache_key': cache_key,
                    'task_id': task.id,
                    'latency_ms': int((time.monotonic() - started) * 1000)
                }
            )
            return result.result

        if result.status == TaskStatus.TIMED_OUT:
            if isinstance(result.error, TaskTimeoutError):
                raise result.error
            raise TaskTimeoutError(int((time.monotonic() - started) * 1000), task.id)

        logger.warning(
            f"Provider call for {cache_key} failed",
            extra={
                'cache_key': cache_key,
                'task_id': task.id,
                'error_type': type(result.error).__name__
            }
        )
        raise ComputeError(result.error) from result.error

    async def _sweep_forever(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep_expired()

    def _emit(self, method_name: str) -> None:
        if self.metrics_emitter:
            getattr(self.metrics_emitter, method_name)()
