"""
Imaging Module

Pixel-level building blocks shared by every analyzer:
- pixel_buffer.py: Immutable decoded RGB buffer
- color.py: RGB/HSL conversion and tonal adjustments
- histogram.py: Perceptual luminance histogram and statistics
"""

from .pixel_buffer import PixelBuffer, as_pixel_buffer
from .color import (
    Rgb,
    Hsl,
    rgb_to_hsl,
    hsl_to_rgb,
    adjust_brightness,
    adjust_contrast,
    adjust_saturation,
    adjust_shadows,
    adjust_highlights,
)
from .histogram import HistogramAnalyzer, HistogramStats, ChannelAnalysis, RoomBrightness

__all__ = [
    'PixelBuffer',
    'as_pixel_buffer',
    'Rgb',
    'Hsl',
    'rgb_to_hsl',
    'hsl_to_rgb',
    'adjust_brightness',
    'adjust_contrast',
    'adjust_saturation',
    'adjust_shadows',
    'adjust_highlights',
    'HistogramAnalyzer',
    'HistogramStats',
    'ChannelAnalysis',
    'RoomBrightness',
]
