"""
Per-image Quality Analysis

QualityAnalyzer runs every detector once per image and folds the results
into a QualityAnalysis:
- Edge map (EdgeDetector) shared by lines, windows, composition and flags
- Architectural lines (LineDetector) for alignment and perspective
- Window regions (WindowRegionDetector) for placement and glare
- Composition sub-scores (CompositionScorer)
- Technical metrics (noise, lighting, colour balance, detail)

Usage:
    analyzer = QualityAnalyzer()
    analysis = analyzer.analyze(PixelBuffer.load_image("kitchen.jpg"))
    print(analysis.composition_score, analysis.is_blurry)
"""

import logging
import math
import time
from concurrent.futures import Executor
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Optional, Union

import numpy as np

from ..config import AnalysisConfig
from ..detection.edges import EdgeDetector, mean_edge_strength
from ..detection.lines import LineDetector, PolarLine
from ..detection.windows import Rect, WindowRegionDetector
from ..errors import ImageAnalysisError, InvalidImageError
from ..imaging.histogram import HistogramAnalyzer, HistogramStats
from ..imaging.pixel_buffer import PixelBuffer, as_pixel_buffer
from . import metrics
from .composition import CompositionBreakdown, CompositionScorer

logger = logging.getLogger(__name__)

SCORE_FIELDS = (
    "noise_level",
    "composition_score",
    "vertical_alignment",
    "room_depth_score",
    "lighting_uniformity",
    "color_balance",
    "detail_preservation",
)


@dataclass(frozen=True)
class QualityAnalysis:
    """
    Canonical per-image result.

    Continuous scores are forced into [0, 1] on construction (NaN becomes
    0.0) so one bad metric degrades the report instead of breaking it.
    """
    is_blurry: bool
    noise_level: float
    composition_score: float
    vertical_alignment: float
    has_perspective_issues: bool
    room_depth_score: float
    lighting_uniformity: float
    has_poor_lighting: bool
    window_overexposure: bool
    color_balance: float
    detail_preservation: float

    def __post_init__(self):
        for name in SCORE_FIELDS:
            value = getattr(self, name)
            clamped = metrics.clamp_unit(value)
            if value is None or math.isnan(value) or clamped != value:
                logger.debug(f"Clamped {name}={value!r} to {clamped}")
            object.__setattr__(self, name, clamped)
        for f in fields(self):
            if f.name not in SCORE_FIELDS:
                object.__setattr__(self, f.name, bool(getattr(self, f.name)))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImageAssessment:
    """QualityAnalysis plus the intermediate detections that produced it."""
    analysis: QualityAnalysis
    histogram: HistogramStats
    composition: CompositionBreakdown
    lines: List[PolarLine]
    windows: List[Rect]
    mean_edge_strength: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis.to_dict(),
            "histogram": self.histogram.to_dict(),
            "composition": self.composition.to_dict(),
            "lines": [{"r": line.r, "angle": line.angle_in_degrees} for line in self.lines],
            "windows": [asdict(w) for w in self.windows],
            "mean_edge_strength": self.mean_edge_strength,
        }


class QualityAnalyzer:
    """
    Orchestrates the detectors and scorers for one image at a time.

    Instances hold no per-image state and can be shared between threads.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.histogram_analyzer = HistogramAnalyzer(self.config)
        self.edge_detector = EdgeDetector(self.config)
        self.line_detector = LineDetector(self.config)
        self.window_detector = WindowRegionDetector(self.config)
        self.composition_scorer = CompositionScorer(self.config, self.line_detector)

    def validate(self, image: Union[PixelBuffer, np.ndarray]) -> PixelBuffer:
        """Coerce to a PixelBuffer and enforce the configured dimension bounds."""
        buffer = as_pixel_buffer(image)
        buffer.check_dimensions(self.config.min_dimensions, self.config.max_dimensions)
        return buffer

    def assess(self,
               image: Union[PixelBuffer, np.ndarray],
               identifier: str = "<image>",
               executor: Optional[Executor] = None) -> ImageAssessment:
        """
        Run the full pipeline on one image.

        Args:
            image: PixelBuffer or (H, W, 3) uint8 array
            identifier: Name used in logs and errors
            executor: Optional executor for parallel histogram chunks

        Returns:
            ImageAssessment

        Raises:
            InvalidImageError: malformed input or dimensions out of bounds
            ImageAnalysisError: anything unexpected inside the pipeline
        """
        buffer = self.validate(image)
        start = time.perf_counter()
        try:
            assessment = self._assess(buffer, executor)
        except InvalidImageError:
            raise
        except Exception as e:
            raise ImageAnalysisError(identifier, f"{type(e).__name__}: {e}", cause=e) from e

        logger.debug(
            f"Analyzed {identifier} ({buffer.width}x{buffer.height}) "
            f"in {time.perf_counter() - start:.3f}s"
        )
        return assessment

    def analyze(self,
                image: Union[PixelBuffer, np.ndarray],
                identifier: str = "<image>") -> QualityAnalysis:
        """Shortcut returning only the QualityAnalysis."""
        return self.assess(image, identifier).analysis

    def _assess(self, buffer: PixelBuffer, executor: Optional[Executor]) -> ImageAssessment:
        cfg = self.config
        histogram = self.histogram_analyzer.analyze(buffer, executor=executor)

        edges = self.edge_detector.detect(buffer)
        lines = self.line_detector.detect_architectural_lines(edges)
        windows = self.window_detector.detect(buffer, edges)
        composition = self.composition_scorer.score(buffer, edges, lines, windows)
        mean_edge = mean_edge_strength(edges)

        analysis = QualityAnalysis(
            is_blurry=metrics.is_blurry(edges, cfg),
            noise_level=metrics.noise_level(buffer, edges, cfg),
            composition_score=composition.total,
            vertical_alignment=self.line_detector.vertical_alignment(lines),
            has_perspective_issues=self.line_detector.has_perspective_issues(lines),
            room_depth_score=composition.room_depth,
            lighting_uniformity=metrics.lighting_uniformity(buffer, cfg),
            has_poor_lighting=metrics.has_poor_lighting(buffer, cfg),
            window_overexposure=any(self.window_detector.is_overexposed(buffer, w) for w in windows),
            color_balance=metrics.color_balance(buffer),
            detail_preservation=metrics.detail_preservation(edges),
        )
        return ImageAssessment(
            analysis=analysis,
            histogram=histogram,
            composition=composition,
            lines=lines,
            windows=windows,
            mean_edge_strength=mean_edge,
        )
