"""
Scheduling Module

- resources.py: Permit pools per resource class
- metrics.py: Explicit batch metrics collector
- scheduler.py: Concurrency-gated batch runner
"""

from .resources import ResourceKind, ResourcePool, ResourceManager
from .metrics import BatchMetricsCollector
from .scheduler import (
    ConcurrencyGatedScheduler,
    ImageJob,
    ImageOutcome,
    FailedImage,
    BatchResult,
    BatchStatus,
    ImageStatus,
)

__all__ = [
    'ResourceKind',
    'ResourcePool',
    'ResourceManager',
    'BatchMetricsCollector',
    'ConcurrencyGatedScheduler',
    'ImageJob',
    'ImageOutcome',
    'FailedImage',
    'BatchResult',
    'BatchStatus',
    'ImageStatus',
]
