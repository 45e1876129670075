"""
Unit tests for SingleFlight.

Tests that concurrent computations for one key are collapsed, that results
and failures are shared by every waiter, and that settled entries are never
reused.
"""

import asyncio

import pytest

from orchestration.services import SingleFlight


class TestSingleFlight:
    """Test suite for SingleFlight."""
    
    @pytest.mark.asyncio
    async def test_single_call_returns_result(self):
        """Test a lone caller receives the computed value."""
        flight = SingleFlight()
        
        async def compute():
            return 'value'
        
        assert await flight.run_exclusive('key', compute) == 'value'
        assert flight.size() == 0
    
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_computation(self):
        """Test ten concurrent callers trigger exactly one computation."""
        flight = SingleFlight()
        release = asyncio.Event()
        calls = []
        
        async def compute():
            calls.append(1)
            await release.wait()
            return {'balance': 100}
        
        callers = [
            asyncio.create_task(flight.run_exclusive('addr:0xabc', compute))
            for _ in range(10)
        ]
        await asyncio.sleep(0)
        
        assert flight.is_in_flight('addr:0xabc')
        assert flight.waiter_count('addr:0xabc') == 10
        
        release.set()
        results = await asyncio.gather(*callers)
        
        assert len(calls) == 1
        assert all(result == {'balance': 100} for result in results)
        assert all(result is results[0] for result in results)
    
    @pytest.mark.asyncio
    async def test_failure_propagates_to_every_waiter(self):
        """Test all waiters receive the same exception."""
        flight = SingleFlight()
        release = asyncio.Event()
        
        async def compute():
            await release.wait()
            raise ConnectionError('provider unavailable')
        
        callers = [
            asyncio.create_task(flight.run_exclusive('key', compute))
            for _ in range(3)
        ]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*callers, return_exceptions=True)
        
        assert all(isinstance(result, ConnectionError) for result in results)
        assert flight.size() == 0
    
    @pytest.mark.asyncio
    async def test_failure_is_not_remembered(self):
        """Test a call after a failed settlement starts a fresh computation."""
        flight = SingleFlight()
        attempts = []
        
        async def compute():
            attempts.append(1)
            if len(attempts) == 1:
                raise ValueError('first attempt fails')
            return 'recovered'
        
        with pytest.raises(ValueError):
            await flight.run_exclusive('key', compute)
        
        assert await flight.run_exclusive('key', compute) == 'recovered'
        assert len(attempts) == 2
    
    @pytest.mark.asyncio
    async def test_entry_removed_before_waiters_resume(self):
        """Test the in-flight entry is gone when waiters observe the result."""
        flight = SingleFlight()
        
        async def compute():
            await asyncio.sleep(0)
            return 'value'
        
        await flight.run_exclusive('key', compute)
        
        assert flight.is_in_flight('key') is False
        assert flight.join('key') is None
    
    @pytest.mark.asyncio
    async def test_sequential_calls_recompute(self):
        """Test sequential calls each run their own computation."""
        flight = SingleFlight()
        calls = []
        
        async def compute():
            calls.append(1)
            return len(calls)
        
        assert await flight.run_exclusive('key', compute) == 1
        assert await flight.run_exclusive('key', compute) == 2
    
    @pytest.mark.asyncio
    async def test_different_keys_run_independently(self):
        """Test computations for different keys are not collapsed."""
        flight = SingleFlight()
        calls = []
        
        async def compute_for(key):
            calls.append(key)
            await asyncio.sleep(0)
            return key
        
        results = await asyncio.gather(
            flight.run_exclusive('a', lambda: compute_for('a')),
            flight.run_exclusive('b', lambda: compute_for('b'))
        )
        
        assert results == ['a', 'b']
        assert sorted(calls) == ['a', 'b']
    
    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_computation(self):
        """Test cancelling one caller leaves the shared computation running."""
        flight = SingleFlight()
        release = asyncio.Event()
        
        async def compute():
            await release.wait()
            return 'value'
        
        first = asyncio.create_task(flight.run_exclusive('key', compute))
        second = asyncio.create_task(flight.run_exclusive('key', compute))
        await asyncio.sleep(0)
        
        first.cancel()
        release.set()
        
        assert await second == 'value'
        with pytest.raises(asyncio.CancelledError):
            await first
    
    @pytest.mark.asyncio
    async def test_join_without_in_flight_returns_none(self):
        """Test join() returns None when nothing is running."""
        flight = SingleFlight()
        
        assert flight.join('key') is None
        assert flight.waiter_count('key') == 0
