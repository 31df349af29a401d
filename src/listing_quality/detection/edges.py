"""
Gradient-magnitude edge map with region-adaptive thresholding.

The top third of the frame (usually sky or ceiling) uses a more tolerant
threshold than the rest of the image.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from ..config import AnalysisConfig
from ..imaging.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


class EdgeDetector:
    """Sobel edge strength map (uint8, 0-255)."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def gradient_magnitude(self, gray: np.ndarray) -> np.ndarray:
        """Unnormalized 3x3 Sobel magnitude sqrt(gx^2 + gy^2)."""
        gray = gray.astype(np.float64)
        grad_x = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
        grad_y = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3, borderType=cv2.BORDER_REPLICATE)
        return np.sqrt(grad_x ** 2 + grad_y ** 2)

    def threshold_map(self, height: int, width: int) -> np.ndarray:
        """Per-row threshold column broadcastable against an (H, W) map."""
        thresholds = np.full((height, 1), self.config.edge_threshold_default, dtype=np.float64)
        thresholds[:height // 3] = self.config.edge_threshold_top
        return thresholds

    def detect(self, image: PixelBuffer) -> np.ndarray:
        """
        Compute the edge map for an image.

        Args:
            image: Pixel buffer

        Returns:
            (H, W) uint8 array; magnitudes below the row threshold are 0,
            the rest are clamped to 255 and truncated to integers.
        """
        magnitude = self.gradient_magnitude(image.grayscale())
        thresholds = self.threshold_map(image.height, image.width)
        edges = np.where(magnitude < thresholds, 0.0, np.minimum(magnitude, 255.0))
        return edges.astype(np.uint8)


def mean_edge_strength(edges: np.ndarray) -> float:
    return float(edges.mean()) if edges.size else 0.0
