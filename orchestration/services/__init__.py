"""
Orchestration services.

This module provides the TTL cache store, single-flight deduplicator,
fixed-window rate limiter, bounded task queue and the request orchestrator
that composes them.
"""

from .ttl_cache import TTLCache
from .single_flight import SingleFlight
from .rate_limiter import FixedWindowRateLimiter
from .task_queue import TaskQueue
from .request_orchestrator import RequestOrchestrator

__all__ = [
    'TTLCache',
    'SingleFlight',
    'FixedWindowRateLimiter',
    'TaskQueue',
    'RequestOrchestrator'
]
