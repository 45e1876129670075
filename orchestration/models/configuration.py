"""
Configuration data model for provider request orchestration.

This module defines the configuration dataclass that controls all tunable
parameters of the orchestration layer: queue capacity, default TTLs and
timeouts, and the fixed-window rate limit budget.
"""

from dataclasses import dataclass

from orchestration.exceptions import ConfigurationError


@dataclass
class OrchestratorConfig:
    """
    Configuration for the request orchestration layer.
    
    Attributes:
        concurrency_limit: Maximum number of provider calls running at once (default: 5)
        default_ttl_ms: Cache TTL used when a call does not supply one (default: 300000)
        default_window_ms: Rate limit window length (default: 60000)
        max_requests_per_window: Admitted requests per key per window (default: 100)
        default_task_timeout_ms: Task timeout used when a call does not supply one (default: 30000)
        cache_max_size: Maximum number of cache entries (default: 1000)
        cache_cleanup_interval_seconds: Interval between opportunistic cache sweeps (default: 600)
        result_retention_seconds: How long terminal task results are kept (default: 60)
    """
    
    concurrency_limit: int = 5
    default_ttl_ms: int = 300000
    default_window_ms: int = 60000
    max_requests_per_window: int = 100
    default_task_timeout_ms: int = 30000
    cache_max_size: int = 1000
    cache_cleanup_interval_seconds: float = 600.0
    result_retention_seconds: float = 60.0
    
    def validate(self) -> None:
        """
        Validate configuration parameters.
        
        Raises:
            ConfigurationError: If any parameter is outside its valid range
        """
        if self.concurrency_limit < 1:
            raise ConfigurationError(
                f"concurrency_limit must be at least 1, got {self.concurrency_limit}"
            )
        
        if self.default_ttl_ms <= 0:
            raise ConfigurationError(
                f"default_ttl_ms must be positive, got {self.default_ttl_ms}"
            )
        
        if self.default_window_ms <= 0:
            raise ConfigurationError(
                f"default_window_ms must be positive, got {self.default_window_ms}"
            )
        
        if self.max_requests_per_window < 1:
            raise ConfigurationError(
                f"max_requests_per_window must be at least 1, "
                f"got {self.max_requests_per_window}"
            )
        
        if self.default_task_timeout_ms <= 0:
            raise ConfigurationError(
                f"default_task_timeout_ms must be positive, "
                f"got {self.default_task_timeout_ms}"
            )
        
        if self.cache_max_size < 1:
            raise ConfigurationError(
                f"cache_max_size must be at least 1, got {self.cache_max_size}"
            )
        
        if self.cache_cleanup_interval_seconds <= 0:
            raise ConfigurationError(
                f"cache_cleanup_interval_seconds must be positive, "
                f"got {self.cache_cleanup_interval_seconds}"
            )
        
        if self.result_retention_seconds < 0:
            raise ConfigurationError(
                f"result_retention_seconds must be non-negative, "
                f"got {self.result_retention_seconds}"
            )
    
    def __post_init__(self):
        """Validate configuration on initialization."""
        self.validate()
