"""
Retry logic with exponential backoff for provider calls.

The orchestration core never retries on its own. Collaborators that want
retries wrap the compute function with ``with_retry`` before handing it to
``RequestOrchestrator.fetch_or_compute``; the whole retry loop then runs as
one queued task under one timeout.
"""

import asyncio
import inspect
import logging
import random
from functools import wraps
from typing import Any, Awaitable, Callable, Tuple, Type

from orchestration.exceptions import OrchestrationError

logger = logging.getLogger(__name__)


class RetryableError(Exception):
    """Exception raised by provider calls for transient errors that can be retried."""
    pass


def _backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool) -> float:
    delay = min(base_delay * (2 ** attempt), max_delay)
    
    # Add jitter to prevent thundering herd
    if jitter:
        delay += random.uniform(0, 0.1 * delay)
    
    return delay


def with_retry(
    compute_fn: Callable[[], Any],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (RetryableError,)
) -> Callable[[], Awaitable[Any]]:
    """
    Wrap a compute function so transient failures are retried with backoff.
    
    Orchestration errors (rate limit, timeout, compute) are never retried,
    even when ``retry_on`` would match them.
    
    Args:
        compute_fn: Zero-argument provider call (sync or coroutine function)
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 30.0)
        jitter: Whether to add random jitter to delay (default: True)
        retry_on: Exception types that trigger a retry (default: RetryableError)
        
    Returns:
        Zero-argument coroutine function
        
    Example:
        result = await orchestrator.fetch_or_compute(
            'balances:0xabc', 'ip:1.2.3.4', 1,
            with_retry(lambda: client.get_balances('0xabc'), max_retries=2)
        )
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be non-negative, got {max_retries}")
    
    async def call_once() -> Any:
        if inspect.iscoroutinefunction(compute_fn):
            return await compute_fn()
        value = await asyncio.get_running_loop().run_in_executor(None, compute_fn)
        if inspect.isawaitable(value):
            value = await value
        return value
    
    @wraps(compute_fn)
    async def wrapper() -> Any:
        for attempt in range(max_retries + 1):
            try:
                result = await call_once()
                
                # Log successful retry if not first attempt
                if attempt > 0:
                    logger.info(
                        f"Operation succeeded after {attempt} retries",
                        extra={'attempt': attempt, 'max_retries': max_retries}
                    )
                
                return result
            
            except OrchestrationError:
                raise
            
            except retry_on as e:
                if attempt == max_retries:
                    logger.error(
                        f"Operation failed after {max_retries} retries",
                        extra={'max_retries': max_retries, 'error': str(e)}
                    )
                    raise
                
                delay = _backoff_delay(attempt, base_delay, max_delay, jitter)
                
                logger.warning(
                    f"Retry attempt {attempt + 1}/{max_retries} after {delay:.2f}s",
                    extra={
                        'attempt': attempt + 1,
                        'max_retries': max_retries,
                        'delay_seconds': delay,
                        'error': str(e)
                    }
                )
                
                await asyncio.sleep(delay)
    
    return wrapper


def retry_async(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (RetryableError,)
):
    """
    Decorator form of ``with_retry`` for argument-taking provider functions.
    
    Example:
        @retry_async(max_retries=3, base_delay=0.5)
        async def fetch_portfolio(address):
            ...
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            if inspect.iscoroutinefunction(func):
                async def bound():
                    return await func(*args, **kwargs)
            else:
                def bound():
                    return func(*args, **kwargs)
            
            return await with_retry(
                bound,
                max_retries=max_retries,
                base_delay=base_delay,
                max_delay=max_delay,
                jitter=jitter,
                retry_on=retry_on
            )()
        
        return wrapper
    return decorator
