"""
Structured logging utilities for the orchestration layer.

This module provides JSON-formatted logging with correlation ID tracking
for CloudWatch Logs integration and analysis.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any


# Standard LogRecord attributes that are not copied into the JSON payload
_SKIP_FIELDS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName'
}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    
    Formats log records as JSON with consistent fields including:
    - timestamp: ISO 8601 timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR)
    - correlation_id: Correlation ID from extra fields
    - component: Logger name
    - message: Log message
    - Additional fields from extra dict
    """
    
    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.
        
        Args:
            record: Log record to format
            
        Returns:
            JSON-formatted log string
        """
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage()
        }
        
        if hasattr(record, 'correlation_id'):
            log_entry['correlation_id'] = record.correlation_id
        
        for key, value in record.__dict__.items():
            if key not in _SKIP_FIELDS and not key.startswith('_'):
                # Handle non-serializable types
                try:
                    json.dumps(value)
                    log_entry[key] = value
                except (TypeError, ValueError):
                    log_entry[key] = str(value)
        
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)
        
        return json.dumps(log_entry)


class StructuredLogger:
    """
    Structured logger with correlation ID support.
    
    Provides convenience methods for logging with automatic correlation ID
    injection and structured field formatting.
    """
    
    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None
    ):
        """
        Initialize structured logger.
        
        Args:
            name: Logger name (typically module name)
            correlation_id: Correlation ID attached to every record (e.g. request ID)
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
    
    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with structured fields."""
        self.logger.debug(message, extra=self._build_extra(kwargs))
    
    def info(self, message: str, **kwargs) -> None:
        """Log info message with structured fields."""
        self.logger.info(message, extra=self._build_extra(kwargs))
    
    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with structured fields."""
        self.logger.warning(message, extra=self._build_extra(kwargs))
    
    def error(
        self,
        message: str,
        exc_info: bool = False,
        **kwargs
    ) -> None:
        """
        Log error message with structured fields.
        
        Args:
            message: Log message
            exc_info: Whether to include exception info
            **kwargs: Additional structured fields
        """
        self.logger.error(message, extra=self._build_extra(kwargs), exc_info=exc_info)
    
    def _build_extra(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build extra fields dict for logging.
        
        Args:
            fields: Additional fields
            
        Returns:
            Extra fields dict
        """
        extra = fields.copy()
        
        if self.correlation_id and 'correlation_id' not in extra:
            extra['correlation_id'] = self.correlation_id
        
        return extra


def get_structured_logger(
    name: str,
    correlation_id: Optional[str] = None
) -> StructuredLogger:
    """
    Create a StructuredLogger bound to a correlation ID.
    
    Args:
        name: Logger name
        correlation_id: Optional correlation ID (e.g. inbound request ID)
    
    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name, correlation_id=correlation_id)


def configure_structured_logging(
    level: int = logging.INFO,
    use_json: bool = True
) -> None:
    """
    Configure structured logging for the entire application.
    
    Replaces the root logger's handlers with a single stdout handler.
    
    Args:
        level: Logging level (default: INFO)
        use_json: Whether to use JSON formatting (default: True)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler(sys.stdout)
    
    if use_json:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    
    root_logger.info(
        f"Configured structured logging: level={logging.getLevelName(level)}, json={use_json}"
    )
