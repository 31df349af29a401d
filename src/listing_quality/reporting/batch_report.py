"""
Batch Quality Aggregation

Folds per-image QualityReports into one BatchQualityReport:
- Four-bucket quality distribution (excellent > 0.8, good > 0.6, fair > 0.4,
  poor otherwise) on each report's overall score
- Issue counts by severity and by category
- Per content type running average score and most common issues
- Batch recommendations ordered by how often they were raised

Every mutation goes through BatchAggregator, which serializes folds with a
lock so scheduler worker threads can report concurrently. Final counts do
not depend on the order reports arrive in.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .quality_report import IssueCategory, IssueSeverity, QualityReport

logger = logging.getLogger(__name__)

EXCELLENT_THRESHOLD = 0.8
GOOD_THRESHOLD = 0.6
FAIR_THRESHOLD = 0.4
COMMON_ISSUE_LIMIT = 3


@dataclass
class QualityDistribution:
    excellent: int = 0  # > 0.8
    good: int = 0       # 0.6 - 0.8
    fair: int = 0       # 0.4 - 0.6
    poor: int = 0       # < 0.4

    def add(self, score: float) -> None:
        if score > EXCELLENT_THRESHOLD:
            self.excellent += 1
        elif score > GOOD_THRESHOLD:
            self.good += 1
        elif score > FAIR_THRESHOLD:
            self.fair += 1
        else:
            self.poor += 1

    @property
    def weighted_total(self) -> int:
        return self.excellent * 4 + self.good * 3 + self.fair * 2 + self.poor

    def to_dict(self) -> Dict[str, int]:
        return {"excellent": self.excellent, "good": self.good,
                "fair": self.fair, "poor": self.poor}


@dataclass
class IssueSummary:
    critical_issues: int = 0
    major_issues: int = 0
    minor_issues: int = 0
    issues_by_category: Dict[IssueCategory, int] = field(default_factory=dict)

    def add(self, severity: IssueSeverity, category: IssueCategory) -> None:
        if severity is IssueSeverity.CRITICAL:
            self.critical_issues += 1
        elif severity is IssueSeverity.MAJOR:
            self.major_issues += 1
        else:
            self.minor_issues += 1
        self.issues_by_category[category] = self.issues_by_category.get(category, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "critical_issues": self.critical_issues,
            "major_issues": self.major_issues,
            "minor_issues": self.minor_issues,
            "issues_by_category": {c.value: n for c, n in sorted(
                self.issues_by_category.items(), key=lambda item: item[0].value)},
        }


@dataclass
class ContentTypeStats:
    count: int = 0
    avg_score: float = 0.0
    common_issues: List[IssueCategory] = field(default_factory=list)
    issue_counts: Dict[IssueCategory, int] = field(default_factory=dict)

    def update(self, report: QualityReport) -> None:
        self.count += 1
        self.avg_score = (self.avg_score * (self.count - 1) + report.overall_score) / self.count
        for issue in report.issues:
            self.issue_counts[issue.category] = self.issue_counts.get(issue.category, 0) + 1
        ranked = sorted(self.issue_counts.items(), key=lambda item: (-item[1], item[0].value))
        self.common_issues = [category for category, _ in ranked[:COMMON_ISSUE_LIMIT]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "avg_score": self.avg_score,
            "common_issues": [c.value for c in self.common_issues],
        }


@dataclass
class BatchQualityReport:
    overall_batch_score: float = 0.0
    total_images: int = 0
    issue_summary: IssueSummary = field(default_factory=IssueSummary)
    quality_distribution: QualityDistribution = field(default_factory=QualityDistribution)
    content_type_analysis: Dict[str, ContentTypeStats] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_batch_score": self.overall_batch_score,
            "total_images": self.total_images,
            "issue_summary": self.issue_summary.to_dict(),
            "quality_distribution": self.quality_distribution.to_dict(),
            "content_type_analysis": {name: stats.to_dict() for name, stats in sorted(
                self.content_type_analysis.items())},
            "recommendations": list(self.recommendations),
        }


class BatchAggregator:
    """
    Thread-safe incremental fold of QualityReports.

    Usage:
        aggregator = BatchAggregator()
        aggregator.add_report(report, "kitchen")
        summary = aggregator.snapshot()
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._report = BatchQualityReport()
        self._recommendation_counts: Counter = Counter()

    def add_report(self, report: QualityReport, content_type: str) -> None:
        content_type = getattr(content_type, "value", content_type)
        with self._lock:
            batch = self._report
            batch.total_images += 1
            batch.quality_distribution.add(report.overall_score)

            for issue in report.issues:
                batch.issue_summary.add(issue.severity, issue.category)

            stats = batch.content_type_analysis.setdefault(str(content_type), ContentTypeStats())
            stats.update(report)

            self._recommendation_counts.update(report.recommendations)
            batch.recommendations = [
                text for text, _ in sorted(self._recommendation_counts.items(),
                                           key=lambda item: (-item[1], item[0]))
            ]
            batch.overall_batch_score = batch.quality_distribution.weighted_total / (batch.total_images * 4)
            total, score = batch.total_images, batch.overall_batch_score

        logger.debug(f"Aggregated report for '{content_type}' ({total} images, batch score {score:.3f})")

    @property
    def total_images(self) -> int:
        with self._lock:
            return self._report.total_images

    def snapshot(self) -> BatchQualityReport:
        """Independent copy of the current aggregate."""
        with self._lock:
            batch = self._report
            return BatchQualityReport(
                overall_batch_score=batch.overall_batch_score,
                total_images=batch.total_images,
                issue_summary=IssueSummary(
                    critical_issues=batch.issue_summary.critical_issues,
                    major_issues=batch.issue_summary.major_issues,
                    minor_issues=batch.issue_summary.minor_issues,
                    issues_by_category=dict(batch.issue_summary.issues_by_category),
                ),
                quality_distribution=QualityDistribution(**batch.quality_distribution.to_dict()),
                content_type_analysis={
                    name: ContentTypeStats(
                        count=s.count,
                        avg_score=s.avg_score,
                        common_issues=list(s.common_issues),
                        issue_counts=dict(s.issue_counts),
                    )
                    for name, s in batch.content_type_analysis.items()
                },
                recommendations=list(batch.recommendations),
            )


def aggregate_reports(reports, content_type: Optional[str] = "unknown") -> BatchQualityReport:
    """Fold an iterable of reports (or (report, content_type) pairs) in one call."""
    aggregator = BatchAggregator()
    for item in reports:
        if isinstance(item, tuple):
            aggregator.add_report(*item)
        else:
            aggregator.add_report(item, content_type)
    return aggregator.snapshot()
