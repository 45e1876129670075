"""
Standardized error codes for provider request orchestration.

This module provides a centralized enumeration of the error codes raised by
the orchestration layer, together with the HTTP status codes and messages
route handlers are expected to surface for them.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the orchestration layer.
    
    Error codes are organized by category:
    - Capacity (RATE_LIMIT_*)
    - Timeouts (TASK_TIMEOUT)
    - Compute failures (COMPUTE_*)
    - Internal Errors (INTERNAL_*)
    """
    
    # Capacity Errors
    RATE_LIMIT_EXCEEDED = 'RATE_LIMIT_EXCEEDED'
    
    # Timeout Errors
    TASK_TIMEOUT = 'TASK_TIMEOUT'
    
    # Compute Errors
    COMPUTE_FAILED = 'COMPUTE_FAILED'
    
    # Internal Errors
    INTERNAL_SERVER_ERROR = 'INTERNAL_SERVER_ERROR'
    INTERNAL_CONFIGURATION_ERROR = 'INTERNAL_CONFIGURATION_ERROR'


# Error code to HTTP status code mapping
ERROR_CODE_TO_HTTP_STATUS = {
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.TASK_TIMEOUT: 504,
    ErrorCode.COMPUTE_FAILED: 500,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 500,
}


# Error code to user-friendly message mapping
ERROR_CODE_TO_MESSAGE = {
    ErrorCode.RATE_LIMIT_EXCEEDED: 'Rate limit exceeded',
    ErrorCode.TASK_TIMEOUT: 'Upstream provider timed out',
    ErrorCode.COMPUTE_FAILED: 'Upstream provider request failed',
    ErrorCode.INTERNAL_SERVER_ERROR: 'Internal server error',
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 'Configuration error',
}


def get_http_status(error_code: ErrorCode) -> int:
    """
    Get HTTP status code for error code.
    
    Args:
        error_code: Error code enum value
    
    Returns:
        HTTP status code (default: 500)
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(error_code, 500)


def get_error_message(error_code: ErrorCode) -> str:
    """
    Get user-friendly error message for error code.
    
    Args:
        error_code: Error code enum value
    
    Returns:
        User-friendly error message
    """
    return ERROR_CODE_TO_MESSAGE.get(error_code, 'An error occurred')


def format_error_response(
    error: Exception,
    correlation_id: Optional[str] = None
) -> dict:
    """
    Format standardized error response for an orchestration failure.
    
    Errors that do not carry an ``error_code`` attribute are reported as
    INTERNAL_SERVER_ERROR.
    
    Args:
        error: Exception raised by the orchestration layer
        correlation_id: Optional correlation ID for tracing
    
    Returns:
        Formatted error response dictionary
    
    Example:
        >>> format_error_response(RateLimitExceededError(1500, 'ip:1.2.3.4'))
        {
            'type': 'error',
            'code': 'RATE_LIMIT_EXCEEDED',
            'status': 429,
            'message': 'Rate limit exceeded',
            'retryAfterMs': 1500
        }
    """
    error_code = getattr(error, 'error_code', ErrorCode.INTERNAL_SERVER_ERROR)
    
    response = {
        'type': 'error',
        'code': error_code.value,
        'status': get_http_status(error_code),
        'message': get_error_message(error_code)
    }
    
    retry_after_ms = getattr(error, 'retry_after_ms', None)
    if retry_after_ms is not None:
        response['retryAfterMs'] = retry_after_ms
    
    if correlation_id:
        response['correlationId'] = correlation_id
    
    return response
