"""
Batch processing counters.

An explicit collector object handed to the scheduler; nothing here is
process-global, so tests can create as many independent collectors as they
need.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class DurationStats:
    count: int = 0
    total: float = 0.0
    maximum: float = 0.0

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def record(self, seconds: float) -> None:
        self.count += 1
        self.total += seconds
        self.maximum = max(self.maximum, seconds)


@dataclass
class MetricsSnapshot:
    batches_processed: int
    jobs_completed: int
    jobs_failed: int
    in_flight: Dict[str, int]
    peak_in_flight: Dict[str, int]
    processing: DurationStats = field(default_factory=DurationStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batches_processed": self.batches_processed,
            "jobs_completed": self.jobs_completed,
            "jobs_failed": self.jobs_failed,
            "in_flight": dict(self.in_flight),
            "peak_in_flight": dict(self.peak_in_flight),
            "processing": {
                "count": self.processing.count,
                "total_seconds": self.processing.total,
                "mean_seconds": self.processing.mean,
                "max_seconds": self.processing.maximum,
            },
        }


class BatchMetricsCollector:
    """Lock-protected counters for batches, jobs and in-flight work per resource kind."""

    def __init__(self):
        self._lock = threading.Lock()
        self._batches = 0
        self._completed = 0
        self._failed = 0
        self._in_flight: Dict[str, int] = {}
        self._peak: Dict[str, int] = {}
        self._durations = DurationStats()

    def batch_processed(self) -> None:
        with self._lock:
            self._batches += 1

    def job_started(self, kind: str) -> None:
        kind = getattr(kind, "value", kind)
        with self._lock:
            current = self._in_flight.get(kind, 0) + 1
            self._in_flight[kind] = current
            self._peak[kind] = max(self._peak.get(kind, 0), current)

    def job_finished(self, kind: str, seconds: float, success: bool) -> None:
        kind = getattr(kind, "value", kind)
        with self._lock:
            self._in_flight[kind] = self._in_flight.get(kind, 0) - 1
            self._durations.record(seconds)
            if success:
                self._completed += 1
            else:
                self._failed += 1

    def job_rejected(self) -> None:
        """Failure that never reached the processing stage (e.g. no permit)."""
        with self._lock:
            self._failed += 1

    def peak_in_flight(self, kind: str) -> int:
        kind = getattr(kind, "value", kind)
        with self._lock:
            return self._peak.get(kind, 0)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                batches_processed=self._batches,
                jobs_completed=self._completed,
                jobs_failed=self._failed,
                in_flight=dict(self._in_flight),
                peak_in_flight=dict(self._peak),
                processing=DurationStats(self._durations.count, self._durations.total,
                                         self._durations.maximum),
            )
