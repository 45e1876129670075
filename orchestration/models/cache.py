"""
Cache entry data model for the TTL cache store.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """
    Entry in the TTL cache store.
    
    An entry is logically destroyed once ``now - inserted_at >= ttl``. An entry
    with a non-positive TTL is expired from the start. Expiry is checked
    lazily on read and by periodic sweeps.
    
    Attributes:
        value: Cached value (may be None)
        inserted_at: Clock reading in seconds when the entry was stored
        ttl_ms: Time-to-live in milliseconds
    """
    
    value: Any
    inserted_at: float
    ttl_ms: int
    
    def age_ms(self, now: float) -> float:
        """Age of the entry in milliseconds at clock reading ``now``."""
        return (now - self.inserted_at) * 1000.0
    
    def is_expired(self, now: float) -> bool:
        """
        Check if entry has expired.
        
        Args:
            now: Current clock reading in seconds
            
        Returns:
            True if the entry age is greater than or equal to its TTL
        """
        return self.age_ms(now) >= self.ttl_ms
