"""
Reporting Module

- quality_report.py: Issues, recommendations and overall score per image
- batch_report.py: Thread-safe batch aggregation
"""

from .quality_report import (
    QualityReportGenerator,
    QualityReport,
    QualityIssue,
    IssueSeverity,
    IssueCategory,
)
from .batch_report import (
    BatchAggregator,
    BatchQualityReport,
    IssueSummary,
    QualityDistribution,
    ContentTypeStats,
)

__all__ = [
    'QualityReportGenerator',
    'QualityReport',
    'QualityIssue',
    'IssueSeverity',
    'IssueCategory',
    'BatchAggregator',
    'BatchQualityReport',
    'IssueSummary',
    'QualityDistribution',
    'ContentTypeStats',
]
