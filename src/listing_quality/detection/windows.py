"""
Window region detection.

Scans the frame in fixed blocks and keeps bright, locally contrasted blocks
as window candidates, then merges overlapping candidates into bounding boxes.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..config import AnalysisConfig
from ..imaging.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned region in pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def center(self):
        return self.x + self.width // 2, self.y + self.height // 2

    def overlaps(self, other: "Rect") -> bool:
        return (self.x < other.x + other.width and
                self.x + self.width > other.x and
                self.y < other.y + other.height and
                self.y + self.height > other.y)

    def merge(self, other: "Rect") -> "Rect":
        x1 = min(self.x, other.x)
        y1 = min(self.y, other.y)
        x2 = max(self.x + self.width, other.x + other.width)
        y2 = max(self.y + self.height, other.y + other.height)
        return Rect(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class BlockStats:
    avg_brightness: float
    local_contrast: float


def analyze_block(luminance: np.ndarray, x: int, y: int, width: int, height: int) -> BlockStats:
    """Mean and max-min spread of perceptual luminance inside a block."""
    block = luminance[y:y + height, x:x + width]
    if block.size == 0:
        return BlockStats(avg_brightness=0.0, local_contrast=0.0)
    return BlockStats(
        avg_brightness=float(block.mean()),
        local_contrast=float(block.max() - block.min()),
    )


def iter_blocks(width: int, height: int, block_size: int):
    """(x, y, w, h) for a block grid; edge blocks are cropped to the image."""
    for y in range(0, height, block_size):
        for x in range(0, width, block_size):
            yield x, y, min(block_size, width - x), min(block_size, height - y)


def merge_overlapping_regions(regions: List[Rect]) -> List[Rect]:
    """Union overlapping rectangles until no two overlap."""
    merged = sorted(regions, key=lambda r: (r.x, r.y))
    changed = True
    while changed:
        changed = False
        i = 0
        while i < len(merged):
            j = i + 1
            while j < len(merged):
                if merged[i].overlaps(merged[j]):
                    merged[i] = merged[i].merge(merged[j])
                    del merged[j]
                    changed = True
                else:
                    j += 1
            i += 1
    return merged


class WindowRegionDetector:
    """Block-wise brightness/contrast scan for likely windows."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def is_potential_window(self, stats: BlockStats) -> bool:
        return (stats.avg_brightness > self.config.window_min_brightness and
                stats.local_contrast > self.config.window_min_contrast)

    def detect(self, image: PixelBuffer, edges: Optional[np.ndarray] = None) -> List[Rect]:
        """
        Find window regions.

        Args:
            image: Pixel buffer
            edges: Edge map of the same image; accepted for interface
                   symmetry with the other detectors, not used for scoring

        Returns:
            Merged window rectangles
        """
        luminance = image.perceptual_luminance()
        candidates = []
        for x, y, w, h in iter_blocks(image.width, image.height, self.config.window_block_size):
            if self.is_potential_window(analyze_block(luminance, x, y, w, h)):
                candidates.append(Rect(x=x, y=y, width=w, height=h))

        regions = merge_overlapping_regions(candidates)
        logger.debug(f"Window scan: {len(candidates)} candidate blocks -> {len(regions)} regions")
        return regions

    def is_overexposed(self, image: PixelBuffer, window: Rect) -> bool:
        """Blown-out glare: very bright and nearly featureless."""
        stats = analyze_block(image.perceptual_luminance(),
                              window.x, window.y, window.width, window.height)
        return (stats.avg_brightness > self.config.window_glare_brightness and
                stats.local_contrast < self.config.window_glare_max_contrast)
