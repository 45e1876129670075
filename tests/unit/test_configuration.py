"""
Unit tests for OrchestratorConfig and Settings.
"""

import logging

import pytest

from orchestration.config import Settings
from orchestration.exceptions import ConfigurationError
from orchestration.models import OrchestratorConfig


class TestOrchestratorConfig:
    """Test suite for OrchestratorConfig."""
    
    def test_defaults(self, default_config):
        """Test default values."""
        assert default_config.concurrency_limit == 5
        assert default_config.default_ttl_ms == 300000
        assert default_config.default_window_ms == 60000
        assert default_config.max_requests_per_window == 100
        assert default_config.default_task_timeout_ms == 30000
        assert default_config.cache_max_size == 1000
        assert default_config.cache_cleanup_interval_seconds == 600.0
        assert default_config.result_retention_seconds == 60.0
    
    @pytest.mark.parametrize('field,value', [
        ('concurrency_limit', 0),
        ('default_ttl_ms', 0),
        ('default_window_ms', -1),
        ('max_requests_per_window', 0),
        ('default_task_timeout_ms', 0),
        ('cache_max_size', 0),
        ('cache_cleanup_interval_seconds', 0),
        ('result_retention_seconds', -1),
    ])
    def test_invalid_values_rejected(self, field, value):
        """Test out-of-range values raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            OrchestratorConfig(**{field: value})
    
    def test_configuration_error_is_value_error(self):
        """Test ConfigurationError can be handled as ValueError."""
        with pytest.raises(ValueError):
            OrchestratorConfig(concurrency_limit=0)


class TestSettings:
    """Test suite for environment Settings."""
    
    def test_defaults(self, monkeypatch):
        """Test defaults when no variables are set."""
        for name in (
            'ORCHESTRATOR_CONCURRENCY_LIMIT', 'ORCHESTRATOR_TASK_TIMEOUT_MS',
            'ORCHESTRATOR_DEFAULT_TTL_MS', 'METRICS_ENABLED', 'LOG_LEVEL'
        ):
            monkeypatch.delenv(name, raising=False)
        
        settings = Settings()
        
        assert settings.concurrency_limit == 5
        assert settings.task_timeout_ms == 30000
        assert settings.default_ttl_ms == 300000
        assert settings.metrics_enabled is False
        assert settings.get_log_level() == logging.INFO
    
    def test_environment_overrides(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv('ORCHESTRATOR_CONCURRENCY_LIMIT', '10')
        monkeypatch.setenv('ORCHESTRATOR_WINDOW_MS', '30000')
        monkeypatch.setenv('ORCHESTRATOR_MAX_REQUESTS_PER_WINDOW', '20')
        monkeypatch.setenv('METRICS_ENABLED', 'yes')
        monkeypatch.setenv('LOG_LEVEL', 'debug')
        
        settings = Settings()
        config = settings.to_config()
        
        assert config.concurrency_limit == 10
        assert config.default_window_ms == 30000
        assert config.max_requests_per_window == 20
        assert settings.metrics_enabled is True
        assert settings.get_log_level() == logging.DEBUG
        assert settings.to_dict()['log_level'] == 'DEBUG'
    
    def test_invalid_log_level(self, monkeypatch):
        """Test an unknown log level fails fast."""
        monkeypatch.setenv('LOG_LEVEL', 'VERBOSE')
        
        with pytest.raises(ValueError):
            Settings()
    
    def test_empty_namespace(self, monkeypatch):
        """Test an empty metrics namespace fails fast."""
        monkeypatch.setenv('METRICS_NAMESPACE', '')
        
        with pytest.raises(ValueError):
            Settings()
    
    def test_out_of_range_value(self, monkeypatch):
        """Test range errors surface as ConfigurationError."""
        monkeypatch.setenv('ORCHESTRATOR_CONCURRENCY_LIMIT', '0')
        
        with pytest.raises(ConfigurationError):
            Settings()
