"""
Composition Scoring

Sub-scores that make up composition_score, each in [0, 1]:
- Rule of thirds: edge interest around the four intersections and along the
  four third-lines
- Architectural alignment: framing lines, converging pairs, symmetric pairs
- Room depth: edge density in horizontal bands, nearer bands weighted more
- Visual balance: left/right luminance mass
- Window placement: how close window centres sit to the thirds grid

The weighted total is 0.30 thirds + 0.25 architecture + 0.25 depth + 0.20
balance, where the balance share is split evenly with window placement when
windows were found.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

import numpy as np

from ..config import AnalysisConfig
from ..detection.lines import LineDetector, PolarLine, leading_lines_score
from ..detection.windows import Rect
from ..imaging.pixel_buffer import PixelBuffer
from .metrics import clamp_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositionBreakdown:
    """Individual composition sub-scores and their weighted total."""
    rule_of_thirds: float
    architectural: float
    room_depth: float
    visual_balance: float
    window_placement: Optional[float]  # None when no windows were detected
    leading_lines: float               # informational, not part of total
    total: float

    def to_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


def region_interest(edges: np.ndarray, x: int, y: int, radius: int) -> float:
    """Mean normalized edge strength in the square of `radius` around (x, y), clipped to the image."""
    height, width = edges.shape[:2]
    y0, y1 = max(y - radius, 0), min(y + radius + 1, height)
    x0, x1 = max(x - radius, 0), min(x + radius + 1, width)
    region = edges[y0:y1, x0:x1]
    if region.size == 0:
        return 0.0
    return float(region.mean()) / 255.0


def column_strength(edges: np.ndarray, x: int) -> float:
    """Mean normalized edge strength along one image column."""
    column = edges[:, x]
    return float(column.mean()) / 255.0 if column.size else 0.0


def row_strength(edges: np.ndarray, y: int) -> float:
    """Mean normalized edge strength along one image row."""
    row = edges[y, :]
    return float(row.mean()) / 255.0 if row.size else 0.0


def _nearest_third_deviation(position: float, extent: int) -> float:
    """Distance to the nearest 1/3 or 2/3 gridline in units of one third, capped at 1."""
    third = extent / 3.0
    if third <= 0:
        return 1.0
    distance = min(abs(position - third), abs(position - 2.0 * third))
    return min(distance / third, 1.0)


class CompositionScorer:
    """Computes the composition sub-scores from precomputed detections."""

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 line_detector: Optional[LineDetector] = None):
        self.config = config or AnalysisConfig()
        self.line_detector = line_detector or LineDetector(self.config)

    def rule_of_thirds(self, edges: np.ndarray) -> float:
        """
        Interest at the four thirds intersections (0.15 each) plus along the
        two vertical and two horizontal third-lines (0.10 each).
        """
        height, width = edges.shape[:2]
        cfg = self.config
        third_w = width / 3.0
        third_h = height / 3.0

        points = [
            (third_w, third_h),
            (third_w * 2.0, third_h),
            (third_w, third_h * 2.0),
            (third_w * 2.0, third_h * 2.0),
        ]
        score = 0.0
        for px, py in points:
            score += region_interest(edges, int(px), int(py), cfg.thirds_radius) * cfg.thirds_point_weight

        for i in (1, 2):
            x = min(int(width * (i / 3.0)), width - 1)
            y = min(int(height * (i / 3.0)), height - 1)
            score += column_strength(edges, x) * cfg.thirds_line_weight
            score += row_strength(edges, y) * cfg.thirds_line_weight

        return clamp_unit(score)

    def architectural(self, lines: List[PolarLine], width: int) -> float:
        """0.2 per framing line (capped at 0.4) + 0.3 converging + 0.3 symmetry."""
        if not lines:
            return 0.0
        detector = self.line_detector
        framing = min(detector.framing_line_count(lines, width) * 0.2, 0.4)
        converging = detector.converging_fraction(lines) * 0.3
        symmetry = detector.symmetry_fraction(lines, width) * 0.3
        return clamp_unit(framing + converging + symmetry)

    def room_depth(self, edges: np.ndarray) -> float:
        """Band edge density weighted by 1 - band/sections, averaged over the bands."""
        height = edges.shape[0]
        sections = self.config.depth_sections
        score = 0.0
        for i in range(sections):
            y_start = height * i // sections
            y_end = height * (i + 1) // sections
            band = edges[y_start:y_end]
            density = float(band.mean()) / 255.0 if band.size else 0.0
            score += density * (1.0 - i / sections)
        return clamp_unit(score / sections)

    def visual_balance(self, image: PixelBuffer) -> float:
        """1 - |left - right| / (left + right) over summed luminance; 0.5 for a black frame."""
        luminance = image.perceptual_luminance()
        mid = image.width // 2
        left = float(luminance[:, :mid].sum())
        right = float(luminance[:, mid:].sum())
        total = left + right
        if total <= 0.0:
            return 0.5
        return clamp_unit(1.0 - abs(left - right) / total)

    def window_placement(self, windows: List[Rect], width: int, height: int) -> float:
        """Average of 1 - mean(x, y deviation from the thirds grid) over window centres."""
        if not windows:
            return 0.0
        scores = []
        for window in windows:
            cx, cy = window.center
            x_dev = _nearest_third_deviation(cx, width)
            y_dev = _nearest_third_deviation(cy, height)
            scores.append(1.0 - (x_dev + y_dev) / 2.0)
        return clamp_unit(sum(scores) / len(scores))

    def score(self,
              image: PixelBuffer,
              edges: np.ndarray,
              lines: List[PolarLine],
              windows: List[Rect]) -> CompositionBreakdown:
        """
        Score composition for one image.

        Args:
            image: Pixel buffer
            edges: Edge map from EdgeDetector
            lines: Architectural lines from LineDetector
            windows: Merged window regions

        Returns:
            CompositionBreakdown whose total is the composition score
        """
        cfg = self.config
        thirds = self.rule_of_thirds(edges)
        arch = self.architectural(lines, image.width)
        depth = self.room_depth(edges)
        balance = self.visual_balance(image)

        total = thirds * cfg.thirds_weight + depth * cfg.depth_weight
        if lines:
            total += arch * cfg.architecture_weight

        placement = None
        if windows:
            placement = self.window_placement(windows, image.width, image.height)
            half = cfg.balance_weight / 2.0
            total += balance * half + placement * half
        else:
            total += balance * cfg.balance_weight

        breakdown = CompositionBreakdown(
            rule_of_thirds=thirds,
            architectural=arch,
            room_depth=depth,
            visual_balance=balance,
            window_placement=placement,
            leading_lines=leading_lines_score(lines, image.width, image.height),
            total=clamp_unit(min(total, 1.0)),
        )
        logger.debug(f"Composition breakdown: {breakdown}")
        return breakdown
