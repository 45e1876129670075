"""
Rate limiting data models.

This module defines the per-key fixed window record, the decision returned
to callers, and the named rate limit presets used by route handlers.
"""

from dataclasses import dataclass


@dataclass
class RateWindow:
    """
    Fixed window request counter for one key.
    
    Attributes:
        key: Rate limit key (client, address, ...)
        count: Requests admitted in the current window
        window_start: Clock reading in seconds when the window opened
    """
    
    key: str
    count: int
    window_start: float
    
    def reset_at(self, window_ms: int) -> float:
        """Clock reading in seconds at which this window ends."""
        return self.window_start + window_ms / 1000.0
    
    def is_expired(self, now: float, window_ms: int) -> bool:
        """Check if ``now`` is at or past the end of the window."""
        return now >= self.reset_at(window_ms)


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of a rate limit check.
    
    Attributes:
        allowed: Whether the request was admitted
        limit: Maximum requests per window
        remaining: Requests still admissible in the current window
        reset_at: Clock reading in seconds at which the window resets
        retry_after_ms: Milliseconds until the window resets (0 when allowed)
    """
    
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_ms: int = 0


@dataclass(frozen=True)
class RateLimitPreset:
    """Named rate limit budget."""
    
    max_requests: int
    window_ms: int


# Preset rate limit configurations
RATE_LIMIT_PRESETS = {
    # Strict limit for resource-intensive provider calls
    'STRICT': RateLimitPreset(max_requests=5, window_ms=60000),
    # Standard limit for normal endpoints
    'STANDARD': RateLimitPreset(max_requests=30, window_ms=60000),
    # Lenient limit for lightweight operations
    'LENIENT': RateLimitPreset(max_requests=100, window_ms=60000),
    # Per-address limit for wallet-specific operations
    'PER_ADDRESS': RateLimitPreset(max_requests=10, window_ms=300000),
}
