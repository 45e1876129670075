"""
Single-flight deduplication of concurrent computations.

This module collapses concurrent identical in-flight computations into one:
while a computation for a key is running, every further caller for that key
attaches to it and receives the same result or exception.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from orchestration.models import InFlightEntry

logger = logging.getLogger(__name__)


class SingleFlight:
    """
    At-most-one-concurrent-computation-per-key deduplicator.

    The shared computation runs as its own asyncio task and callers await it
    through ``asyncio.shield``, so cancelling one caller never cancels the
    computation other callers are waiting on. The in-flight entry is removed
    before waiters are resolved: a call made after settlement always starts
    a fresh computation. Failures are propagated to every waiter and are not
    remembered.

    Must be used from a single running event loop.
    """

    def __init__(self):
        """Initialize single-flight deduplicator."""
        self._in_flight: Dict[str, InFlightEntry] = {}
        self._tasks = set()

    async def run_exclusive(
        self,
        key: str,
        compute_fn: Callable[[], Awaitable[Any]]
    ) -> Any:
        """
        Run ``compute_fn`` unless a computation for ``key`` is already running.

        Args:
            key: Deduplication key
            compute_fn: Zero-argument coroutine function invoked at most once
                per settlement

        Returns:
            Result of the (possibly shared) computation

        Raises:
            Exception: Whatever the shared computation raised
        """
        joined = self.join(key)
        if joined is not None:
            return await joined

        loop = asyncio.get_running_loop()
        entry = InFlightEntry(key=key, future=loop.create_future())
        # Mark the exception retrieved even if every waiter was cancelled
        entry.future.add_done_callback(_consume_exception)
        self._in_flight[key] = entry

        task = loop.create_task(self._execute(entry, compute_fn))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.debug(f"Started in-flight computation for {key}")

        return await asyncio.shield(entry.future)

    def join(self, key: str) -> Optional[Awaitable[Any]]:
        """
        Attach to an existing in-flight computation.

        Args:
            key: Deduplication key

        Returns:
            Awaitable resolving to the shared result, or None if nothing is
            in flight for ``key``
        """
        entry = self._in_flight.get(key)
        if entry is None:
            return None

        entry.waiters += 1
        logger.debug(
            f"Joined in-flight computation for {key}",
            extra={'key': key, 'waiters': entry.waiters}
        )
        return asyncio.shield(entry.future)

    def is_in_flight(self, key: str) -> bool:
        """Check if a computation for ``key`` has not yet settled."""
        return key in self._in_flight

    def waiter_count(self, key: str) -> int:
        """Number of callers attached to the in-flight computation for ``key``."""
        entry = self._in_flight.get(key)
        return entry.waiters if entry is not None else 0

    def size(self) -> int:
        """Number of in-flight computations."""
        return len(self._in_flight)

    async def _execute(
        self,
        entry: InFlightEntry,
        compute_fn: Callable[[], Awaitable[Any]]
    ) -> None:
        """Run the computation and settle the shared future."""
        try:
            value = await compute_fn()
        except asyncio.CancelledError:
            self._release(entry)
            entry.future.cancel()
            raise
        except Exception as e:
            self._release(entry)
            entry.future.set_exception(e)
        else:
            self._release(entry)
            entry.future.set_result(value)

    def _release(self, entry: InFlightEntry) -> None:
        """Remove the in-flight entry if it is still the registered one."""
        if self._in_flight.get(entry.key) is entry:
            del self._in_flight[entry.key]


def _consume_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()
