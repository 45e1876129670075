"""
Custom exceptions for provider request orchestration.

This module defines the typed failures surfaced by the orchestration layer.
Route handlers map them to HTTP responses using
``orchestration.utils.error_codes``.
"""

from typing import Optional

from orchestration.utils.error_codes import ErrorCode


class OrchestrationError(Exception):
    """Base exception for the orchestration layer."""
    
    error_code = ErrorCode.INTERNAL_SERVER_ERROR


class RateLimitExceededError(OrchestrationError):
    """
    Raised when a caller exceeds its fixed-window request budget.
    
    Capacity errors are expected and frequent. They are surfaced to the
    caller with retry guidance and never retried internally.
    """
    
    error_code = ErrorCode.RATE_LIMIT_EXCEEDED
    
    def __init__(self, retry_after_ms: int, key: Optional[str] = None):
        """
        Initialize rate limit exceeded error.
        
        Args:
            retry_after_ms: Milliseconds until the current window resets
            key: Rate limit key that was rejected
        """
        super().__init__(
            f"Rate limit exceeded for '{key}'. Retry after {retry_after_ms}ms"
        )
        self.retry_after_ms = retry_after_ms
        self.key = key


class TaskTimeoutError(OrchestrationError):
    """Raised when a queued task does not settle within its timeout."""
    
    error_code = ErrorCode.TASK_TIMEOUT
    
    def __init__(self, elapsed_ms: int, task_id: Optional[str] = None):
        """
        Initialize task timeout error.
        
        Args:
            elapsed_ms: Milliseconds the task ran before timing out
            task_id: Identifier of the timed out task
        """
        super().__init__(f"Task '{task_id}' timed out after {elapsed_ms}ms")
        self.elapsed_ms = elapsed_ms
        self.task_id = task_id


class ComputeError(OrchestrationError):
    """
    Raised when the wrapped provider call fails.
    
    The original exception is available as ``cause`` and is chained as
    ``__cause__``.
    """
    
    error_code = ErrorCode.COMPUTE_FAILED
    
    def __init__(self, cause: BaseException):
        """
        Initialize compute error.
        
        Args:
            cause: Exception raised by the compute function
        """
        super().__init__(f"Compute failed: {type(cause).__name__}: {cause}")
        self.cause = cause


class ConfigurationError(OrchestrationError, ValueError):
    """Raised at construction time for invalid component parameters."""
    
    error_code = ErrorCode.INTERNAL_CONFIGURATION_ERROR
