"""
Task data models for the bounded-concurrency task queue.

This module defines the unit of work submitted to the queue, its lifecycle
states, the terminal result observed by callers, and queue statistics.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class TaskStatus(Enum):
    """
    Task lifecycle states.
    
    Transitions: PENDING -> RUNNING -> {COMPLETED, FAILED, TIMED_OUT}
    """
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    
    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.TIMED_OUT)


@dataclass
class Task:
    """
    Prioritized, timeout-bounded unit of work.
    
    Attributes:
        execute: Zero-argument callable (sync or coroutine function)
        priority: Higher values start first (default: 0)
        timeout_ms: Per-task timeout; queue default is used when None
        id: Unique task identifier (generated when omitted)
        submitted_at: Wall-clock time of creation
    """
    
    execute: Callable[[], Any]
    priority: int = 0
    timeout_ms: Optional[int] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    submitted_at: float = field(default_factory=time.time)
    
    def __post_init__(self):
        """Validate field constraints."""
        if not callable(self.execute):
            raise TypeError("execute must be callable")
        
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")


@dataclass
class TaskResult:
    """
    Observable state of a submitted task.
    
    Attributes:
        id: Task identifier
        status: Current lifecycle state
        result: Return value of execute() when COMPLETED
        error: Captured exception when FAILED or TIMED_OUT
        start_time: Wall-clock time the task started running
        end_time: Wall-clock time the task reached a terminal state
    """
    
    id: str
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    error: Optional[BaseException] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    
    @property
    def duration_ms(self) -> Optional[float]:
        """Running time in milliseconds, once terminal."""
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000.0


@dataclass(frozen=True)
class QueueStats:
    """Point-in-time queue counters."""
    
    pending: int
    running: int
    completed: int
    failed: int
    timed_out: int
    
    def to_dict(self) -> dict:
        return {
            'pending': self.pending,
            'running': self.running,
            'completed': self.completed,
            'failed': self.failed,
            'timed_out': self.timed_out
        }
