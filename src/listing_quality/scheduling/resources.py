"""
Resource permit pools.

One bounded semaphore per resource class (upload, processing, search,
embedding). Permits are taken through a context manager so they are handed
back on every exit path, including exceptions raised by the guarded work.
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterator, Optional

from ..config import ResourceLimits
from ..errors import ResourceAcquisitionError

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    UPLOAD = "upload"
    PROCESSING = "processing"
    SEARCH = "search"
    EMBEDDING = "embedding"


def capacity_for(limits: ResourceLimits, kind: ResourceKind) -> int:
    return {
        ResourceKind.UPLOAD: limits.max_concurrent_uploads,
        ResourceKind.PROCESSING: limits.max_concurrent_processing,
        ResourceKind.SEARCH: limits.max_concurrent_searches,
        ResourceKind.EMBEDDING: limits.max_concurrent_embeddings,
    }[kind]


class ResourcePool:
    """Fixed-capacity permit pool for a single resource class."""

    def __init__(self, kind: ResourceKind, capacity: int):
        if capacity < 1:
            raise ValueError(f"Capacity for {kind.value} must be positive, got {capacity}")
        self.kind = kind
        self.capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._in_use = 0

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @property
    def available(self) -> int:
        return self.capacity - self.in_use

    def acquire(self, timeout: Optional[float] = None) -> None:
        """Block until a permit is free; raise ResourceAcquisitionError on timeout."""
        if timeout is None:
            acquired = self._semaphore.acquire()
        else:
            acquired = self._semaphore.acquire(timeout=timeout)
        if not acquired:
            raise ResourceAcquisitionError(self.kind.value, timeout)
        with self._lock:
            self._in_use += 1

    def release(self) -> None:
        with self._lock:
            self._in_use -= 1
        self._semaphore.release()

    @contextmanager
    def permit(self, timeout: Optional[float] = None) -> Iterator["ResourcePool"]:
        self.acquire(timeout)
        try:
            yield self
        finally:
            self.release()


class ResourceManager:
    """
    Permit pools for every ResourceKind.

    Usage:
        manager = ResourceManager(ResourceLimits(max_concurrent_processing=2))
        with manager.permit(ResourceKind.PROCESSING):
            run_analysis()
    """

    def __init__(self, limits: Optional[ResourceLimits] = None):
        self.limits = limits or ResourceLimits()
        self._pools: Dict[ResourceKind, ResourcePool] = {
            kind: ResourcePool(kind, capacity_for(self.limits, kind)) for kind in ResourceKind
        }

    def pool(self, kind: ResourceKind) -> ResourcePool:
        return self._pools[ResourceKind(kind)]

    @contextmanager
    def permit(self, kind: ResourceKind, timeout: Optional[float] = None) -> Iterator[ResourcePool]:
        """
        Hold one permit of `kind` for the duration of the block.

        Args:
            kind: Resource class to draw from
            timeout: Seconds to wait; defaults to limits.acquire_timeout

        Raises:
            ResourceAcquisitionError: no permit became free in time
        """
        if timeout is None:
            timeout = self.limits.acquire_timeout
        pool = self.pool(kind)
        with pool.permit(timeout):
            yield pool

    def usage(self) -> Dict[str, Dict[str, int]]:
        return {
            kind.value: {"in_use": pool.in_use, "capacity": pool.capacity}
            for kind, pool in self._pools.items()
        }
