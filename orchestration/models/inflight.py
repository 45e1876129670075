"""
In-flight entry data model for the single-flight deduplicator.
"""

import asyncio
from dataclasses import dataclass


@dataclass
class InFlightEntry:
    """
    Bookkeeping record for one computation that has not yet settled.
    
    Attributes:
        key: Deduplication key
        future: Future resolved with the computation's result or exception
        waiters: Number of callers awaiting the future, the leader included
    """
    
    key: str
    future: asyncio.Future
    waiters: int = 1
