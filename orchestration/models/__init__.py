"""
Data models for provider request orchestration.

This module provides dataclasses for cache entries, in-flight computations,
rate limit windows, queued tasks, and configuration.
"""

from .cache import CacheEntry
from .configuration import OrchestratorConfig
from .inflight import InFlightEntry
from .rate_window import (
    RateWindow,
    RateLimitDecision,
    RateLimitPreset,
    RATE_LIMIT_PRESETS
)
from .task import Task, TaskStatus, TaskResult, QueueStats

__all__ = [
    'CacheEntry',
    'OrchestratorConfig',
    'InFlightEntry',
    'RateWindow',
    'RateLimitDecision',
    'RateLimitPreset',
    'RATE_LIMIT_PRESETS',
    'Task',
    'TaskStatus',
    'TaskResult',
    'QueueStats'
]
