"""
Shared pytest fixtures for orchestration tests.
"""

import pytest

from orchestration.models import OrchestratorConfig


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""
    
    def __init__(self, start: float = 1000.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def fake_clock():
    """Fixture providing a controllable clock."""
    return FakeClock()


@pytest.fixture
def default_config():
    """Fixture providing default configuration."""
    return OrchestratorConfig()


@pytest.fixture
def fast_config():
    """Fixture providing configuration with short timeouts for async tests."""
    return OrchestratorConfig(
        concurrency_limit=2,
        default_ttl_ms=5000,
        default_window_ms=1000,
        max_requests_per_window=3,
        default_task_timeout_ms=2000
    )
