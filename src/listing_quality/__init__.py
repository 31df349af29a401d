"""
Listing Photo Quality

Technical and compositional quality analysis for real-estate photos, plus a
bounded-concurrency batch scheduler.
"""

from .config import AnalysisConfig, ResourceLimits, QualityConfig, load_config
from .errors import (
    ListingQualityError,
    InvalidImageError,
    ImageAnalysisError,
    ResourceAcquisitionError,
    BatchTooLargeError,
    DuplicateImageError,
    ConfigurationError,
)
from .imaging import PixelBuffer, HistogramAnalyzer, HistogramStats
from .scoring import QualityAnalyzer, QualityAnalysis, ContentType
from .reporting import QualityReportGenerator, QualityReport, BatchAggregator, BatchQualityReport
from .scheduling import ConcurrencyGatedScheduler, ImageJob, BatchResult, ResourceKind

__version__ = "0.1.0"

__all__ = [
    'AnalysisConfig',
    'ResourceLimits',
    'QualityConfig',
    'load_config',
    'ListingQualityError',
    'InvalidImageError',
    'ImageAnalysisError',
    'ResourceAcquisitionError',
    'BatchTooLargeError',
    'DuplicateImageError',
    'ConfigurationError',
    'PixelBuffer',
    'HistogramAnalyzer',
    'HistogramStats',
    'QualityAnalyzer',
    'QualityAnalysis',
    'ContentType',
    'QualityReportGenerator',
    'QualityReport',
    'BatchAggregator',
    'BatchQualityReport',
    'ConcurrencyGatedScheduler',
    'ImageJob',
    'BatchResult',
    'ResourceKind',
]
