"""
Utility functions for provider request orchestration.

This module provides error codes, key builders and structured logging.
Metrics and retry helpers are imported from their own modules.
"""

from .error_codes import (
    ErrorCode,
    get_http_status,
    get_error_message,
    format_error_response
)
from .keys import cache_key, client_key, address_key
from .structured_logger import (
    StructuredFormatter,
    StructuredLogger,
    get_structured_logger,
    configure_structured_logging
)

__all__ = [
    'ErrorCode',
    'get_http_status',
    'get_error_message',
    'format_error_response',
    'cache_key',
    'client_key',
    'address_key',
    'StructuredFormatter',
    'StructuredLogger',
    'get_structured_logger',
    'configure_structured_logging'
]
