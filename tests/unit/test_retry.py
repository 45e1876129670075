"""
Unit tests for retry helpers.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from orchestration.exceptions import RateLimitExceededError
from orchestration.utils.retry import RetryableError, retry_async, with_retry


class TestWithRetry:
    """Test suite for with_retry."""
    
    @pytest.mark.asyncio
    async def test_success_first_attempt(self):
        """Test a successful call is not retried."""
        compute = AsyncMock(return_value='ok')
        
        result = await with_retry(compute, base_delay=0)()
        
        assert result == 'ok'
        assert compute.await_count == 1
    
    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        """Test retryable errors are retried until success."""
        compute = AsyncMock(side_effect=[RetryableError('busy'), RetryableError('busy'), 'ok'])
        
        result = await with_retry(compute, max_retries=3, base_delay=0, jitter=False)()
        
        assert result == 'ok'
        assert compute.await_count == 3
    
    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        """Test the last error propagates once retries are exhausted."""
        compute = AsyncMock(side_effect=RetryableError('busy'))
        
        with pytest.raises(RetryableError):
            await with_retry(compute, max_retries=2, base_delay=0)()
        
        assert compute.await_count == 3
    
    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates(self):
        """Test errors outside retry_on are raised immediately."""
        compute = AsyncMock(side_effect=KeyError('missing'))
        
        with pytest.raises(KeyError):
            await with_retry(compute, base_delay=0)()
        
        assert compute.await_count == 1
    
    @pytest.mark.asyncio
    async def test_orchestration_errors_never_retried(self):
        """Test orchestration errors bypass retry_on."""
        compute = AsyncMock(side_effect=RateLimitExceededError(1000, 'ip:a'))
        
        with pytest.raises(RateLimitExceededError):
            await with_retry(compute, base_delay=0, retry_on=(Exception,))()
        
        assert compute.await_count == 1
    
    @pytest.mark.asyncio
    async def test_sync_compute_function(self):
        """Test plain callables are supported."""
        compute = Mock(side_effect=[RetryableError('busy'), 5])
        
        result = await with_retry(compute, base_delay=0)()
        
        assert result == 5
        assert compute.call_count == 2
    
    def test_negative_max_retries_rejected(self):
        """Test invalid retry counts fail fast."""
        with pytest.raises(ValueError):
            with_retry(Mock(), max_retries=-1)


class TestRetryAsync:
    """Test suite for the retry_async decorator."""
    
    @pytest.mark.asyncio
    async def test_decorated_function_receives_arguments(self):
        """Test arguments are forwarded on every attempt."""
        attempts = []
        
        @retry_async(max_retries=2, base_delay=0)
        async def fetch(address, chain=1):
            attempts.append((address, chain))
            if len(attempts) < 2:
                raise RetryableError('busy')
            return f'{address}:{chain}'
        
        assert await fetch('0xabc', chain=10) == '0xabc:10'
        assert attempts == [('0xabc', 10), ('0xabc', 10)]
