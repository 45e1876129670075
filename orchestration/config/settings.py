"""
Configuration settings for provider request orchestration.

Loads configuration from environment variables with sensible defaults.
"""

import logging
import os

from orchestration.models import OrchestratorConfig


class Settings:
    """
    Configuration settings for the orchestration layer.
    
    All settings are loaded from environment variables with defaults.
    Invalid values fail fast at load time.
    """
    
    def __init__(self):
        """Initialize settings from environment variables."""
        # Queue Configuration
        self.concurrency_limit: int = int(os.getenv('ORCHESTRATOR_CONCURRENCY_LIMIT', '5'))
        self.task_timeout_ms: int = int(os.getenv('ORCHESTRATOR_TASK_TIMEOUT_MS', '30000'))
        self.result_retention_seconds: float = float(
            os.getenv('ORCHESTRATOR_RESULT_RETENTION_SECONDS', '60')
        )
        
        # Cache Configuration
        self.default_ttl_ms: int = int(os.getenv('ORCHESTRATOR_DEFAULT_TTL_MS', '300000'))
        self.cache_max_size: int = int(os.getenv('ORCHESTRATOR_CACHE_MAX_SIZE', '1000'))
        self.cache_cleanup_interval_seconds: float = float(
            os.getenv('ORCHESTRATOR_CACHE_CLEANUP_INTERVAL_SECONDS', '600')
        )
        
        # Rate Limit Configuration
        self.window_ms: int = int(os.getenv('ORCHESTRATOR_WINDOW_MS', '60000'))
        self.max_requests_per_window: int = int(
            os.getenv('ORCHESTRATOR_MAX_REQUESTS_PER_WINDOW', '100')
        )
        
        # Observability Configuration
        self.metrics_enabled: bool = self._parse_bool(os.getenv('METRICS_ENABLED', 'false'))
        self.metrics_namespace: str = os.getenv('METRICS_NAMESPACE', 'ProviderOrchestration')
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO').upper()
        
        self._validate()
    
    def _parse_bool(self, value: str) -> bool:
        """
        Parse boolean value from string.
        
        Args:
            value: String value to parse
            
        Returns:
            Boolean value
        """
        return value.lower() in ('true', '1', 'yes', 'on')
    
    def _validate(self):
        """Validate settings that OrchestratorConfig does not cover."""
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level not in valid_log_levels:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.log_level}. "
                f"Must be one of {valid_log_levels}"
            )
        
        if not self.metrics_namespace:
            raise ValueError("METRICS_NAMESPACE cannot be empty")
        
        # Range checks live on the config dataclass
        self.to_config()
    
    def get_log_level(self) -> int:
        """Numeric logging level for LOG_LEVEL."""
        return getattr(logging, self.log_level)
    
    def to_config(self) -> OrchestratorConfig:
        """
        Build the validated orchestrator configuration.
        
        Raises:
            ConfigurationError: If any value is out of range
        """
        return OrchestratorConfig(
            concurrency_limit=self.concurrency_limit,
            default_ttl_ms=self.default_ttl_ms,
            default_window_ms=self.window_ms,
            max_requests_per_window=self.max_requests_per_window,
            default_task_timeout_ms=self.task_timeout_ms,
            cache_max_size=self.cache_max_size,
            cache_cleanup_interval_seconds=self.cache_cleanup_interval_seconds,
            result_retention_seconds=self.result_retention_seconds
        )
    
    def to_dict(self) -> dict:
        """Settings as a dictionary, for logging at startup."""
        return {
            'concurrency_limit': self.concurrency_limit,
            'task_timeout_ms': self.task_timeout_ms,
            'result_retention_seconds': self.result_retention_seconds,
            'default_ttl_ms': self.default_ttl_ms,
            'cache_max_size': self.cache_max_size,
            'cache_cleanup_interval_seconds': self.cache_cleanup_interval_seconds,
            'window_ms': self.window_ms,
            'max_requests_per_window': self.max_requests_per_window,
            'metrics_enabled': self.metrics_enabled,
            'metrics_namespace': self.metrics_namespace,
            'log_level': self.log_level
        }
