"""
CloudWatch metrics emitter for provider request orchestration.

This module provides utilities for emitting CloudWatch metrics for cache
efficiency, request deduplication, rate limiting and queue health.
"""

import asyncio
import logging
import threading
import time
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


class MetricsEmitter:
    """
    Emits CloudWatch metrics for orchestration operations.
    
    Metrics are buffered and published in batches with put_metric_data.
    Publishing failures are logged and never propagated, so metrics can
    never fail a provider request. Inside a running event loop the batch is
    published from the default executor; unpublished datums are retained
    up to ``max_buffered`` and the oldest are dropped beyond that.
    """
    
    def __init__(
        self,
        namespace: str = 'ProviderOrchestration',
        cloudwatch_client=None,
        buffer_size: int = 20,
        max_buffered: int = 1000
    ):
        """
        Initialize metrics emitter.
        
        Args:
            namespace: CloudWatch namespace for metrics
            cloudwatch_client: Optional CloudWatch client for testing
            buffer_size: Number of datums batched per publish (default: 20)
            max_buffered: Datums retained after failed publishes (default: 1000)
        """
        self.namespace = namespace
        self.cloudwatch = cloudwatch_client or boto3.client('cloudwatch')
        self._metric_buffer: List[Dict] = []
        self._buffer_size = buffer_size
        self._max_buffered = max_buffered
        self._lock = threading.Lock()
        self._flush_future: Optional[asyncio.Future] = None
    
    def emit_cache_hit(self) -> None:
        """Emit metric for a response served from cache."""
        self._add_metric('CacheHits', 1, 'Count')
    
    def emit_cache_miss(self) -> None:
        """Emit metric for a cache miss."""
        self._add_metric('CacheMisses', 1, 'Count')
    
    def emit_inflight_join(self) -> None:
        """Emit metric for a caller that attached to an in-flight computation."""
        self._add_metric('InFlightJoins', 1, 'Count')
    
    def emit_rate_limit_rejection(self, rate_limit_key: Optional[str] = None) -> None:
        """
        Emit metric for a request rejected by the rate limiter.
        
        The key is not used as a dimension; client keys are unbounded.
        
        Args:
            rate_limit_key: Rejected key (not published)
        """
        self._add_metric('RateLimitRejections', 1, 'Count')
    
    def emit_task_timeout(self) -> None:
        """Emit metric for a queued task that timed out."""
        self._add_metric('TaskTimeouts', 1, 'Count')
    
    def emit_task_failure(self, error_type: str) -> None:
        """
        Emit metric for a queued task that raised.
        
        Args:
            error_type: Exception class name
        """
        self._add_metric(
            'TaskFailures',
            1,
            'Count',
            dimensions=[{'Name': 'ErrorType', 'Value': error_type}]
        )
    
    def emit_task_latency(self, latency_ms: float) -> None:
        """
        Emit metric for task running time.
        
        Args:
            latency_ms: Running time in milliseconds
        """
        self._add_metric('TaskLatency', latency_ms, 'Milliseconds')
    
    def emit_queue_depth(self, pending: int) -> None:
        """
        Emit metric for the number of pending tasks.
        
        Args:
            pending: Tasks waiting for an execution slot
        """
        self._add_metric('QueueDepth', pending, 'Count')
    
    def _add_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: Optional[List[Dict]] = None
    ) -> None:
        """
        Add metric to buffer and flush if needed.
        
        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Metric unit
            dimensions: Metric dimensions
        """
        with self._lock:
            self._metric_buffer.append({
                'MetricName': metric_name,
                'Value': value,
                'Unit': unit,
                'Dimensions': dimensions or [],
                'Timestamp': time.time()
            })
            full = len(self._metric_buffer) >= self._buffer_size
        
        if full:
            self._schedule_flush()
    
    def flush(self) -> None:
        """Flush buffered metrics to CloudWatch."""
        with self._lock:
            batch = self._metric_buffer[:self._max_buffered]
            self._metric_buffer = self._metric_buffer[self._max_buffered:]
        
        if not batch:
            return
        
        try:
            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=batch
            )
        except (ClientError, BotoCoreError) as e:
            with self._lock:
                # Keep the newest datums for the next flush
                retained = batch + self._metric_buffer
                dropped = max(0, len(retained) - self._max_buffered)
                self._metric_buffer = retained[dropped:]
            
            logger.error(
                f"Failed to emit metrics: {e}",
                extra={
                    'namespace': self.namespace,
                    'buffered': len(self._metric_buffer),
                    'dropped': dropped
                }
            )
    
    def _schedule_flush(self) -> None:
        """Flush from the default executor when called on an event loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        
        if self._flush_future is not None and not self._flush_future.done():
            return
        
        self._flush_future = loop.run_in_executor(None, self.flush)
