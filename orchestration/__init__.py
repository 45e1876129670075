"""
Request orchestration for slow, rate-limited upstream providers.

Route handlers call ``RequestOrchestrator.fetch_or_compute`` with an explicit
cache key, a caller rate limit key, a priority and the provider call; the
orchestrator serves from cache, joins an in-flight computation, rejects over
budget callers, or runs the call on a bounded priority queue.
"""

from .exceptions import (
    OrchestrationError,
    RateLimitExceededError,
    TaskTimeoutError,
    ComputeError,
    ConfigurationError
)
from .models import OrchestratorConfig, Task, TaskResult, TaskStatus
from .services import (
    TTLCache,
    SingleFlight,
    FixedWindowRateLimiter,
    TaskQueue,
    RequestOrchestrator
)

__version__ = '1.0.0'

__all__ = [
    'OrchestrationError',
    'RateLimitExceededError',
    'TaskTimeoutError',
    'ComputeError',
    'ConfigurationError',
    'OrchestratorConfig',
    'Task',
    'TaskResult',
    'TaskStatus',
    'TTLCache',
    'SingleFlight',
    'FixedWindowRateLimiter',
    'TaskQueue',
    'RequestOrchestrator'
]
