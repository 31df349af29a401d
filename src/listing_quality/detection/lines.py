"""
Hough Line Detection and Architectural Line Analysis

Extracts straight lines from an edge map with a standard Hough transform and
keeps the ones that look like architectural structure:
- Voting over 180 one-degree angle bins and one-pixel radius bins
- Non-maximum suppression on the accumulator
- Near-90 degree filter with a minimum radius to reject weak/noisy lines
- Pairwise convergence and symmetry measures used by composition scoring

Lines use the polar convention r = x*cos(theta) + y*sin(theta), with theta
in whole degrees [0, 180) and r possibly negative.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy import ndimage

from ..config import AnalysisConfig

logger = logging.getLogger(__name__)

NUM_ANGLES = 180
_VOTE_CHUNK = 20000  # edge points per accumulation step


@dataclass(frozen=True)
class PolarLine:
    """Line in Hough space."""
    r: float
    angle_in_degrees: int

    @property
    def angle_radians(self) -> float:
        return math.radians(self.angle_in_degrees)

    @property
    def vertical_deviation(self) -> float:
        """Absolute distance of the angle from 90 degrees."""
        return abs(float(self.angle_in_degrees) - 90.0)

    @property
    def x_intercept(self) -> float:
        """Horizontal position r * cos(theta) used for framing and symmetry."""
        return self.r * math.cos(self.angle_radians)

    def endpoints(self, length: float = 1000.0) -> Tuple[float, float, float, float]:
        """Two points `length` away on either side of the foot of the normal."""
        theta = self.angle_radians
        x0 = self.r * math.cos(theta)
        y0 = self.r * math.sin(theta)
        x1 = x0 + length * (-math.sin(theta))
        y1 = y0 + length * math.cos(theta)
        x2 = x0 - length * (-math.sin(theta))
        y2 = y0 - length * math.cos(theta)
        return x1, y1, x2, y2


class LineDetector:
    """Hough transform over an edge map plus architectural filtering."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        angles = np.radians(np.arange(NUM_ANGLES, dtype=np.float64))
        self._cos = np.cos(angles)
        self._sin = np.sin(angles)

    def accumulate(self, edges: np.ndarray) -> Tuple[np.ndarray, int]:
        """
        Vote every non-zero edge pixel into the (angle, radius) accumulator.

        Returns:
            (accumulator of shape (180, 2*rmax + 1), rmax)
        """
        height, width = edges.shape[:2]
        rmax = int(math.sqrt(width * width + height * height))
        n_radii = 2 * rmax + 1
        acc = np.zeros(NUM_ANGLES * n_radii, dtype=np.int64)

        ys, xs = np.nonzero(edges)
        angle_offsets = np.arange(NUM_ANGLES, dtype=np.int64) * n_radii

        for start in range(0, len(xs), _VOTE_CHUNK):
            x = xs[start:start + _VOTE_CHUNK].astype(np.float64)[:, None]
            y = ys[start:start + _VOTE_CHUNK].astype(np.float64)[:, None]
            r = x * self._cos[None, :] + y * self._sin[None, :]
            d = np.trunc(r).astype(np.int64) + rmax
            valid = (d >= 0) & (d <= 2 * rmax)
            flat = (d + angle_offsets[None, :])[valid]
            acc += np.bincount(flat, minlength=acc.size)

        return acc.reshape(NUM_ANGLES, n_radii), rmax

    def suppress_non_maximum(self, acc: np.ndarray, radius: int, threshold: int) -> List[Tuple[int, int]]:
        """
        Accumulator cells that reach `threshold` and are the maximum of their
        (2*radius + 1) square neighbourhood. Ties go to the cell that comes
        first in raster order.
        """
        size = 2 * radius + 1
        local_max = ndimage.maximum_filter(acc, size=size, mode='constant', cval=0)
        mask = (acc == local_max) & (acc >= threshold) & (acc > 0)
        candidates = [(int(m), int(d)) for m, d in zip(*np.nonzero(mask))]

        kept = []
        for i, (m, d) in enumerate(candidates):
            votes = acc[m, d]
            shadowed = any(
                abs(m - pm) <= radius and abs(d - pd) <= radius and acc[pm, pd] == votes
                for pm, pd in candidates[:i]
            )
            if not shadowed:
                kept.append((m, d))
        return kept

    def detect_lines(self, edges: np.ndarray) -> List[PolarLine]:
        """All Hough lines above the vote threshold, in (angle, radius) order."""
        if edges.size == 0 or not np.any(edges):
            return []
        acc, rmax = self.accumulate(edges)
        peaks = self.suppress_non_maximum(
            acc,
            self.config.hough_suppression_radius,
            self.config.hough_vote_threshold,
        )
        lines = [PolarLine(r=float(d - rmax), angle_in_degrees=m) for m, d in peaks]
        logger.debug(f"Hough transform found {len(lines)} lines")
        return lines

    def is_architectural(self, line: PolarLine) -> bool:
        """Near 90 degrees and far enough from the origin to not be noise."""
        return (line.vertical_deviation < self.config.vertical_tolerance_deg and
                line.r > self.config.min_line_radius)

    def detect_architectural_lines(self, edges: np.ndarray) -> List[PolarLine]:
        return [line for line in self.detect_lines(edges) if self.is_architectural(line)]

    def converging_fraction(self, lines: List[PolarLine]) -> float:
        """
        Among pairs where both lines are within 20 degrees of vertical, the
        fraction whose angles differ by more than 1 degree.
        """
        tolerance = self.config.converging_tolerance_deg
        min_diff = self.config.converging_min_diff_deg
        converging = 0
        total = 0
        for i, line1 in enumerate(lines):
            for line2 in lines[i + 1:]:
                if line1.vertical_deviation < tolerance and line2.vertical_deviation < tolerance:
                    if abs(line1.angle_in_degrees - line2.angle_in_degrees) > min_diff:
                        converging += 1
                    total += 1
        return converging / total if total > 0 else 0.0

    def symmetry_fraction(self, lines: List[PolarLine], width: int) -> float:
        """Fraction of line pairs whose distances from the image centre differ by < 10px."""
        center_x = width / 2.0
        tolerance = self.config.symmetry_tolerance_px
        symmetric = 0
        pairs = 0
        for i, line1 in enumerate(lines):
            for line2 in lines[i + 1:]:
                dist1 = abs(line1.x_intercept - center_x)
                dist2 = abs(line2.x_intercept - center_x)
                if abs(dist1 - dist2) < tolerance:
                    symmetric += 1
                pairs += 1
        return symmetric / pairs if pairs > 0 else 0.0

    def framing_line_count(self, lines: List[PolarLine], width: int) -> int:
        """Straight (< 2 degree) lines in the outer 20% on either side."""
        tolerance = self.config.perspective_tolerance_deg
        count = 0
        for line in lines:
            x = line.x_intercept
            if line.vertical_deviation < tolerance and (x < width * 0.2 or x > width * 0.8):
                count += 1
        return count

    def has_perspective_issues(self, lines: List[PolarLine]) -> bool:
        tolerance = self.config.perspective_tolerance_deg
        return any(line.vertical_deviation > tolerance for line in lines)

    def vertical_alignment(self, lines: List[PolarLine]) -> float:
        """1 - min(1, mean deviation / 10 degrees); 0 when there are no lines."""
        if not lines:
            return 0.0
        mean_dev = sum(line.vertical_deviation for line in lines) / len(lines)
        return 1.0 - min(1.0, mean_dev / self.config.vertical_tolerance_deg)


def point_line_distance(px: float, py: float,
                        x1: float, y1: float, x2: float, y2: float) -> float:
    numerator = abs((y2 - y1) * px - (x2 - x1) * py + x2 * y1 - y2 * x1)
    denominator = math.sqrt((y2 - y1) ** 2 + (x2 - x1) ** 2)
    if denominator > 0.0:
        return numerator / denominator
    return float('inf')


def leading_lines_score(lines: List[PolarLine], width: int, height: int) -> float:
    """Fraction of lines that pass within 20% of the short side from the centre."""
    if not lines:
        return 0.0
    center_x = width / 2.0
    center_y = height / 2.0
    limit = min(width, height) * 0.2
    hits = 0
    for line in lines:
        if point_line_distance(center_x, center_y, *line.endpoints()) < limit:
            hits += 1
    return min(hits / len(lines), 1.0)
