"""
Detection Module

Structure detectors built on the edge map:
- edges.py: Sobel edge strength with region-adaptive thresholds
- lines.py: Hough lines and architectural line analysis
- windows.py: Bright, contrasted window regions
"""

from .edges import EdgeDetector, mean_edge_strength
from .lines import LineDetector, PolarLine
from .windows import WindowRegionDetector, Rect

__all__ = [
    'EdgeDetector',
    'mean_edge_strength',
    'LineDetector',
    'PolarLine',
    'WindowRegionDetector',
    'Rect',
]
