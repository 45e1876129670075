"""
Bounded-concurrency priority task queue.

This module provides an asyncio executor that runs at most
``concurrency_limit`` tasks at once. Waiting tasks start in descending
priority order with FIFO tie-breaking; every running task races its
``execute()`` against a per-task timeout, and failures are captured per
task without affecting the queue or other tasks.
"""

import asyncio
import heapq
import inspect
import itertools
import logging
import time
from collections import deque
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Tuple

from orchestration.exceptions import ConfigurationError, TaskTimeoutError
from orchestration.models import QueueStats, Task, TaskResult, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(order=True)
class _QueuedTask:
    """Heap item ordered by (-priority, submission sequence)."""
    sort_key: tuple
    task: Task = field(compare=False)
    waiter: asyncio.Future = field(compare=False)


class TaskQueue:
    """
    Priority-ordered executor with a concurrency ceiling and per-task timeout.

    Dispatch happens on the event loop iteration after a submission or a
    completion, so tasks submitted together are ordered by priority as a
    group rather than by arrival. A pending task whose caller was cancelled
    is dropped without running.

    Timeouts cancel coroutine tasks at their next await point. Plain
    callables run in a thread-pool executor and cannot be interrupted; on
    timeout their slot is freed while the call finishes in the background.

    Must be used from a single running event loop.
    """

    def __init__(
        self,
        concurrency_limit: int = 5,
        default_timeout_ms: int = 30000,
        result_retention_seconds: float = 60.0,
        executor: Optional[Executor] = None,
        metrics_emitter=None
    ):
        """
        Initialize task queue.

        Args:
            concurrency_limit: Maximum tasks running at once (default: 5)
            default_timeout_ms: Timeout for tasks that do not set one (default: 30000)
            result_retention_seconds: How long terminal results stay queryable (default: 60)
            executor: Executor for plain callables (loop default when None)
            metrics_emitter: Optional metrics emitter for CloudWatch metrics

        Raises:
            ConfigurationError: If concurrency_limit or default_timeout_ms is invalid
        """
        if concurrency_limit < 1:
            raise ConfigurationError(
                f"concurrency_limit must be at least 1, got {concurrency_limit}"
            )
        if default_timeout_ms <= 0:
            raise ConfigurationError(
                f"default_timeout_ms must be positive, got {default_timeout_ms}"
            )

        self.concurrency_limit = concurrency_limit
        self.default_timeout_ms = default_timeout_ms
        self.result_retention_seconds = result_retention_seconds
        self.executor = executor
        self.metrics_emitter = metrics_emitter

        self._pending: List[_QueuedTask] = []
        self._sequence = itertools.count()
        self._running: Dict[str, asyncio.Task] = {}
        self._results: Dict[str, TaskResult] = {}
        # Terminal results in end_time order
        self._finished: Deque[Tuple[float, str, TaskResult]] = deque()
        self._dispatch_scheduled = False

        self.completed_count = 0
        self.failed_count = 0
        self.timed_out_count = 0

        logger.info(
            f"TaskQueue initialized with concurrency_limit={concurrency_limit}, "
            f"default_timeout={default_timeout_ms}ms"
        )

    async def submit(self, task: Task) -> TaskResult:
        """
        Submit a task and wait for it to reach a terminal state.

        Task failures and timeouts are reported through the returned
        TaskResult, never raised.

        Args:
            task: Task to run

        Returns:
            TaskResult with status COMPLETED, FAILED or TIMED_OUT
        """
        if task.id in self._results and not self._results[task.id].status.is_terminal:
            raise ValueError(f"Task '{task.id}' is already queued")

        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        self._results[task.id] = TaskResult(id=task.id)
        heapq.heappush(
            self._pending,
            _QueuedTask(
                sort_key=(-task.priority, next(self._sequence)),
                task=task,
                waiter=waiter
            )
        )

        logger.debug(
            f"Task {task.id} queued",
            extra={
                'task_id': task.id,
                'priority': task.priority,
                'pending': len(self._pending),
                'running': len(self._running)
            }
        )

        self._schedule_dispatch()

        if self.metrics_emitter:
            self.metrics_emitter.emit_queue_depth(len(self._pending))

        return await waiter

    def get_stats(self) -> QueueStats:
        """
        Get queue statistics.

        Returns:
            QueueStats with pending, running, completed, failed and timed_out counts
        """
        return QueueStats(
            pending=len(self._pending),
            running=len(self._running),
            completed=self.completed_count,
            failed=self.failed_count,
            timed_out=self.timed_out_count
        )

    def get_result(self, task_id: str) -> Optional[TaskResult]:
        """Retained result for a task, if any."""
        self.evict_expired_results()
        return self._results.get(task_id)

    def get_all_results(self) -> List[TaskResult]:
        """All retained results."""
        self.evict_expired_results()
        return list(self._results.values())

    def evict_expired_results(self) -> int:
        """
        Drop terminal results older than the retention period.

        Returns:
            Number of results evicted
        """
        cutoff = time.time() - self.result_retention_seconds
        evicted = 0

        while self._finished and self._finished[0][0] <= cutoff:
            _, task_id, result = self._finished.popleft()
            # Skip records superseded by a resubmission or dropped by clear()
            if self._results.get(task_id) is result:
                del self._results[task_id]
                evicted += 1

        return evicted

    def clear(self) -> None:
        """
        Drop pending tasks and all retained results.

        Callers waiting on dropped tasks are cancelled; running tasks are left
        to finish.
        """
        for queued in self._pending:
            if not queued.waiter.done():
                queued.waiter.cancel()
        self._pending.clear()
        self._finished.clear()

        running_ids = set(self._running)
        self._results = {
            task_id: result for task_id, result in self._results.items()
            if task_id in running_ids
        }

    async def shutdown(self) -> None:
        """Cancel pending and running tasks and wait for the running ones to unwind."""
        self.clear()
        running = list(self._running.values())
        for runner in running:
            runner.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)

    def _schedule_dispatch(self) -> None:
        if self._dispatch_scheduled:
            return
        self._dispatch_scheduled = True
        asyncio.get_running_loop().call_soon(self._dispatch)

    def _dispatch(self) -> None:
        """Start pending tasks while execution slots are free."""
        self._dispatch_scheduled = False
        loop = asyncio.get_running_loop()

        while self._pending and len(self._running) < self.concurrency_limit:
            queued = heapq.heappop(self._pending)

            if queued.waiter.done():
                # Caller went away while the task was pending
                self._results.pop(queued.task.id, None)
                logger.debug(f"Dropped abandoned task {queued.task.id}")
                continue

            result = self._results.setdefault(queued.task.id, TaskResult(id=queued.task.id))
            result.status = TaskStatus.RUNNING
            result.start_time = time.time()

            runner = loop.create_task(self._run(queued, result))
            self._running[queued.task.id] = runner

    async def _run(self, queued: _QueuedTask, result: TaskResult) -> None:
        """Execute one task against its timeout and record the terminal state."""
        task = queued.task
        timeout_ms = task.timeout_ms if task.timeout_ms is not None else self.default_timeout_ms
        started = time.monotonic()

        try:
            value = await asyncio.wait_for(self._execute(task), timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            result.status = TaskStatus.TIMED_OUT
            result.error = TaskTimeoutError(elapsed_ms, task.id)
            self.timed_out_count += 1

            logger.warning(
                f"Task {task.id} timed out after {elapsed_ms}ms",
                extra={'task_id': task.id, 'timeout_ms': timeout_ms, 'elapsed_ms': elapsed_ms}
            )

            if self.metrics_emitter:
                self.metrics_emitter.emit_task_timeout()
        except asyncio.CancelledError:
            result.status = TaskStatus.FAILED
            result.error = asyncio.CancelledError(f"Task '{task.id}' was cancelled")
            self.failed_count += 1
            raise
        except Exception as e:
            result.status = TaskStatus.FAILED
            result.error = e
            self.failed_count += 1

            logger.warning(
                f"Task {task.id} failed: {type(e).__name__}: {e}",
                extra={'task_id': task.id, 'error_type': type(e).__name__}
            )

            if self.metrics_emitter:
                self.metrics_emitter.emit_task_failure(type(e).__name__)
        else:
            result.status = TaskStatus.COMPLETED
            result.result = value
            self.completed_count += 1
        finally:
            result.end_time = time.time()
            self._running.pop(task.id, None)
            self._finished.append((result.end_time, task.id, result))

            if not queued.waiter.done():
                queued.waiter.set_result(result)

            self.evict_expired_results()
            self._schedule_dispatch()

            if self.metrics_emitter and result.duration_ms is not None:
                self.metrics_emitter.emit_task_latency(result.duration_ms)

    async def _execute(self, task: Task) -> Any:
        """Invoke execute(): coroutine functions on the loop, plain callables in the executor."""
        if inspect.iscoroutinefunction(task.execute):
            return await task.execute()

        loop = asyncio.get_running_loop()
        value = await loop.run_in_executor(self.executor, task.execute)
        if inspect.isawaitable(value):
            value = await value
        return value
