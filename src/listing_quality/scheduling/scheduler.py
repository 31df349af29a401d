"""
Concurrency-gated batch scheduler.

Fans a batch of decoded images through QualityAnalyzer and
QualityReportGenerator on a thread pool. Every image takes one permit from
its resource pool before any work starts and gives it back when the work
ends, whatever the outcome. Per-image failures are recorded in the result
and never cancel the rest of the batch.

Per-image lifecycle: pending -> processing -> completed | failed
Batch lifecycle:     pending -> processing -> aggregated
"""

import logging
import threading
import time
import uuid
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from tqdm import tqdm

from ..config import ResourceLimits
from ..errors import BatchTooLargeError, DuplicateImageError, ResourceAcquisitionError
from ..imaging.pixel_buffer import PixelBuffer
from ..reporting.batch_report import BatchAggregator, BatchQualityReport
from ..reporting.quality_report import QualityReport, QualityReportGenerator
from ..scoring.quality_analyzer import QualityAnalysis, QualityAnalyzer
from .metrics import BatchMetricsCollector
from .resources import ResourceKind, ResourceManager

logger = logging.getLogger(__name__)


class ImageStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class BatchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    AGGREGATED = "aggregated"


@dataclass
class ImageJob:
    """One decoded image waiting to be analyzed."""
    filename: str
    pixels: Union[PixelBuffer, np.ndarray]
    content_type: str = "unknown"
    resource: ResourceKind = ResourceKind.PROCESSING

    @property
    def content_label(self) -> str:
        return str(getattr(self.content_type, "value", self.content_type))


@dataclass(frozen=True)
class ImageOutcome:
    filename: str
    content_type: str
    analysis: QualityAnalysis
    report: QualityReport
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "content_type": self.content_type,
            "analysis": self.analysis.to_dict(),
            "report": self.report.to_dict(),
            "duration": self.duration,
        }


@dataclass(frozen=True)
class FailedImage:
    filename: str
    error_type: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"filename": self.filename, "error_type": self.error_type, "message": self.message}


@dataclass
class BatchResult:
    batch_id: str
    status: BatchStatus
    succeeded: List[ImageOutcome] = field(default_factory=list)
    failed: List[FailedImage] = field(default_factory=list)
    report: BatchQualityReport = field(default_factory=BatchQualityReport)
    statuses: Dict[str, ImageStatus] = field(default_factory=dict)
    elapsed: float = 0.0

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "status": self.status.value,
            "succeeded": [o.to_dict() for o in self.succeeded],
            "failed": [f.to_dict() for f in self.failed],
            "report": self.report.to_dict(),
            "statuses": {name: s.value for name, s in self.statuses.items()},
            "elapsed": self.elapsed,
        }


class ConcurrencyGatedScheduler:
    """
    Runs image batches with bounded parallelism per resource class.

    Usage:
        with ConcurrencyGatedScheduler(limits=ResourceLimits(max_concurrent_processing=2)) as s:
            result = s.run_batch([ImageJob("a.jpg", pixels, "kitchen")])
    """

    def __init__(self,
                 analyzer: Optional[QualityAnalyzer] = None,
                 report_generator: Optional[QualityReportGenerator] = None,
                 limits: Optional[ResourceLimits] = None,
                 metrics: Optional[BatchMetricsCollector] = None,
                 max_workers: Optional[int] = None):
        """
        Args:
            analyzer: Per-image analyzer (shared by all workers)
            report_generator: Turns analyses into reports
            limits: Permit ceilings and batch size limit
            metrics: Collector for counters; a private one is created if omitted
            max_workers: Worker threads. Defaults to the largest pool capacity,
                         so the permits rather than the pool size do the gating.
        """
        self.analyzer = analyzer or QualityAnalyzer()
        self.report_generator = report_generator or QualityReportGenerator()
        self.limits = limits or ResourceLimits()
        self.resources = ResourceManager(self.limits)
        self.metrics = metrics or BatchMetricsCollector()

        if max_workers is None:
            max_workers = max(self.resources.pool(kind).capacity for kind in ResourceKind)
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="listing-quality")
        self._coordinator: Optional[ThreadPoolExecutor] = None
        self._coordinator_lock = threading.Lock()

    def __enter__(self) -> "ConcurrencyGatedScheduler":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def shutdown(self, wait: bool = True) -> None:
        if self._coordinator is not None:
            self._coordinator.shutdown(wait=wait)
        self._executor.shutdown(wait=wait)

    def submit_batch(self, jobs: Sequence[ImageJob], show_progress: bool = False) -> "Future[BatchResult]":
        """
        Start a batch in the background and return a Future for its result.

        BatchTooLargeError and DuplicateImageError are raised here, before
        anything is scheduled.
        """
        self._validate_batch(jobs)
        with self._coordinator_lock:
            if self._coordinator is None:
                self._coordinator = ThreadPoolExecutor(max_workers=1,
                                                       thread_name_prefix="listing-quality-batch")
        return self._coordinator.submit(self.run_batch, list(jobs), show_progress)

    def run_batch(self, jobs: Sequence[ImageJob], show_progress: bool = False) -> BatchResult:
        """
        Analyze every job and aggregate the reports.

        Args:
            jobs: Images to analyze
            show_progress: Show a tqdm progress bar

        Returns:
            BatchResult with successes and failures separated

        Raises:
            BatchTooLargeError: more jobs than limits.max_batch_size
            DuplicateImageError: two jobs share a filename
        """
        jobs = list(jobs)
        self._validate_batch(jobs)

        batch_id = uuid.uuid4().hex
        result = BatchResult(batch_id=batch_id, status=BatchStatus.PENDING)
        statuses = {job.filename: ImageStatus.PENDING for job in jobs}
        status_lock = threading.Lock()
        aggregator = BatchAggregator()
        start = time.perf_counter()

        def set_status(filename: str, status: ImageStatus) -> None:
            with status_lock:
                statuses[filename] = status

        logger.info(f"Batch {batch_id}: processing {len(jobs)} images")
        result.status = BatchStatus.PROCESSING

        futures = {
            self._executor.submit(self._process_job, job, aggregator, set_status): job
            for job in jobs
        }
        with tqdm(total=len(jobs), desc=f"Batch {batch_id[:8]}", disable=not show_progress) as pbar:
            for future in as_completed(futures):
                job = futures[future]
                try:
                    outcome = future.result()
                    result.succeeded.append(outcome)
                    set_status(job.filename, ImageStatus.COMPLETED)
                except Exception as exc:
                    if isinstance(exc, ResourceAcquisitionError):
                        self.metrics.job_rejected()
                    logger.warning(f"Batch {batch_id}: {job.filename} failed: {exc}")
                    result.failed.append(FailedImage(
                        filename=job.filename,
                        error_type=type(exc).__name__,
                        message=str(exc),
                    ))
                    set_status(job.filename, ImageStatus.FAILED)
                pbar.update(1)

        result.report = aggregator.snapshot()
        with status_lock:
            result.statuses = dict(statuses)
        result.status = BatchStatus.AGGREGATED
        result.elapsed = time.perf_counter() - start
        self.metrics.batch_processed()

        logger.info(
            f"Batch {batch_id}: {len(result.succeeded)} succeeded, {len(result.failed)} failed, "
            f"score {result.report.overall_batch_score:.3f} in {result.elapsed:.2f}s"
        )
        return result

    def _validate_batch(self, jobs: Sequence[ImageJob]) -> None:
        if len(jobs) > self.limits.max_batch_size:
            raise BatchTooLargeError(len(jobs), self.limits.max_batch_size)
        # outcomes and statuses are keyed by filename
        counts = Counter(job.filename for job in jobs)
        duplicates = [name for name, count in counts.items() if count > 1]
        if duplicates:
            raise DuplicateImageError(duplicates)

    def _process_job(self, job: ImageJob, aggregator: BatchAggregator, set_status) -> ImageOutcome:
        kind = ResourceKind(job.resource)
        with self.resources.permit(kind):
            set_status(job.filename, ImageStatus.PROCESSING)
            self.metrics.job_started(kind)
            start = time.perf_counter()
            success = False
            try:
                analysis = self.analyzer.analyze(job.pixels, job.filename)
                report = self.report_generator.generate(analysis)
                success = True
            finally:
                duration = time.perf_counter() - start
                self.metrics.job_finished(kind, duration, success)

        aggregator.add_report(report, job.content_label)
        logger.debug(f"{job.filename}: score {report.overall_score:.3f} ({duration:.3f}s)")
        return ImageOutcome(
            filename=job.filename,
            content_type=job.content_label,
            analysis=analysis,
            report=report,
            duration=duration,
        )
