"""
Unit tests for MetricsEmitter.

Tests metric emission, CloudWatch publishing, and batching.
"""

from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from orchestration.utils.metrics_emitter import MetricsEmitter


class TestMetricsEmitter:
    """Test suite for MetricsEmitter."""
    
    @pytest.fixture
    def mock_cloudwatch(self):
        """Creates mock CloudWatch client."""
        return Mock()
    
    @pytest.fixture
    def emitter(self, mock_cloudwatch):
        """Creates MetricsEmitter instance."""
        return MetricsEmitter(namespace='ProviderOrchestration', cloudwatch_client=mock_cloudwatch)
    
    def test_default_client_created_with_boto3(self):
        """Test a CloudWatch client is created when none is injected."""
        with patch('orchestration.utils.metrics_emitter.boto3.client') as client_factory:
            emitter = MetricsEmitter()
        
        client_factory.assert_called_once_with('cloudwatch')
        assert emitter.cloudwatch is client_factory.return_value
    
    def test_emit_cache_hit_and_miss(self, emitter):
        """Test emitting cache hit and miss metrics."""
        emitter.emit_cache_hit()
        emitter.emit_cache_miss()
        
        assert [m['MetricName'] for m in emitter._metric_buffer] == ['CacheHits', 'CacheMisses']
        assert all(m['Value'] == 1 and m['Unit'] == 'Count' for m in emitter._metric_buffer)
    
    def test_emit_inflight_join(self, emitter):
        """Test emitting in-flight join metric."""
        emitter.emit_inflight_join()
        
        assert emitter._metric_buffer[0]['MetricName'] == 'InFlightJoins'
    
    def test_emit_rate_limit_rejection_has_no_key_dimension(self, emitter):
        """Test rejection metrics do not use the client key as a dimension."""
        emitter.emit_rate_limit_rejection('ip:1.2.3.4')
        
        metric = emitter._metric_buffer[0]
        assert metric['MetricName'] == 'RateLimitRejections'
        assert metric['Dimensions'] == []
    
    def test_emit_task_timeout(self, emitter):
        """Test emitting task timeout metric."""
        emitter.emit_task_timeout()
        
        assert emitter._metric_buffer[0]['MetricName'] == 'TaskTimeouts'
    
    def test_emit_task_failure(self, emitter):
        """Test emitting task failure metric with error type dimension."""
        emitter.emit_task_failure('ConnectionError')
        
        metric = emitter._metric_buffer[0]
        assert metric['MetricName'] == 'TaskFailures'
        assert metric['Dimensions'] == [{'Name': 'ErrorType', 'Value': 'ConnectionError'}]
    
    def test_emit_task_latency(self, emitter):
        """Test emitting task latency metric."""
        emitter.emit_task_latency(125.5)
        
        metric = emitter._metric_buffer[0]
        assert metric['MetricName'] == 'TaskLatency'
        assert metric['Value'] == 125.5
        assert metric['Unit'] == 'Milliseconds'
    
    def test_emit_queue_depth(self, emitter):
        """Test emitting queue depth metric."""
        emitter.emit_queue_depth(7)
        
        metric = emitter._metric_buffer[0]
        assert metric['MetricName'] == 'QueueDepth'
        assert metric['Value'] == 7
    
    def test_flush_publishes_buffer(self, emitter, mock_cloudwatch):
        """Test flush sends buffered metrics and empties the buffer."""
        emitter.emit_cache_hit()
        emitter.emit_cache_miss()
        
        emitter.flush()
        
        mock_cloudwatch.put_metric_data.assert_called_once()
        call_kwargs = mock_cloudwatch.put_metric_data.call_args[1]
        assert call_kwargs['Namespace'] == 'ProviderOrchestration'
        assert len(call_kwargs['MetricData']) == 2
        assert emitter._metric_buffer == []
    
    def test_flush_empty_buffer_is_noop(self, emitter, mock_cloudwatch):
        """Test flush does nothing when the buffer is empty."""
        emitter.flush()
        
        mock_cloudwatch.put_metric_data.assert_not_called()
    
    def test_auto_flush_at_buffer_size(self, mock_cloudwatch):
        """Test the buffer is flushed automatically when full."""
        emitter = MetricsEmitter(cloudwatch_client=mock_cloudwatch, buffer_size=3)
        
        for _ in range(3):
            emitter.emit_cache_hit()
        
        mock_cloudwatch.put_metric_data.assert_called_once()
        assert emitter._metric_buffer == []
    
    def test_flush_error_keeps_buffer(self, emitter, mock_cloudwatch):
        """Test CloudWatch errors are logged and the buffer is kept."""
        mock_cloudwatch.put_metric_data.side_effect = ClientError(
            {'Error': {'Code': 'Throttling', 'Message': 'Rate exceeded'}},
            'PutMetricData'
        )
        emitter.emit_task_timeout()
        
        emitter.flush()
        
        assert len(emitter._metric_buffer) == 1
    
    def test_connection_error_keeps_buffer(self, emitter, mock_cloudwatch):
        """Test endpoint connection failures are logged and never raised."""
        mock_cloudwatch.put_metric_data.side_effect = EndpointConnectionError(
            endpoint_url='https://monitoring.us-east-1.amazonaws.com'
        )
        emitter.emit_cache_miss()
        
        emitter.flush()
        
        assert len(emitter._metric_buffer) == 1
    
    def test_retained_buffer_is_capped(self, mock_cloudwatch):
        """Test repeated publish failures keep only the newest datums."""
        mock_cloudwatch.put_metric_data.side_effect = EndpointConnectionError(
            endpoint_url='https://monitoring.us-east-1.amazonaws.com'
        )
        emitter = MetricsEmitter(
            cloudwatch_client=mock_cloudwatch, buffer_size=2, max_buffered=5
        )
        
        for depth in range(10):
            emitter.emit_queue_depth(depth)
        
        assert [m['Value'] for m in emitter._metric_buffer] == [5, 6, 7, 8, 9]
    
    def test_publish_batch_never_exceeds_cap(self, mock_cloudwatch):
        """Test a single publish sends at most max_buffered datums."""
        emitter = MetricsEmitter(
            cloudwatch_client=mock_cloudwatch, buffer_size=100, max_buffered=3
        )
        for depth in range(5):
            emitter.emit_queue_depth(depth)
        
        emitter.flush()
        
        assert len(mock_cloudwatch.put_metric_data.call_args[1]['MetricData']) == 3
        assert len(emitter._metric_buffer) == 2
    
    @pytest.mark.asyncio
    async def test_auto_flush_on_event_loop_uses_executor(self, mock_cloudwatch):
        """Test a full buffer is published off the event loop."""
        emitter = MetricsEmitter(cloudwatch_client=mock_cloudwatch, buffer_size=2)
        
        emitter.emit_cache_hit()
        emitter.emit_cache_hit()
        
        assert emitter._flush_future is not None
        await emitter._flush_future
        
        mock_cloudwatch.put_metric_data.assert_called_once()
        assert emitter._metric_buffer == []
