"""
Per-image technical metrics.

Each function takes an already-decoded PixelBuffer (and, where needed, its
edge map) and returns either a flag or a score in [0, 1].
"""

import math

import cv2
import numpy as np

from ..config import AnalysisConfig
from ..imaging.pixel_buffer import PixelBuffer
from ..detection.edges import mean_edge_strength
from ..detection.windows import analyze_block, iter_blocks

_DEFAULT = AnalysisConfig()


def clamp_unit(value: float) -> float:
    """Clamp into [0, 1]; NaN becomes 0.0."""
    if value is None or math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


def is_blurry(edges: np.ndarray, config: AnalysisConfig = _DEFAULT) -> bool:
    """Mean edge strength below the blur threshold."""
    if edges.size == 0:
        return True
    return mean_edge_strength(edges) < config.blur_threshold


def block_brightness(image: PixelBuffer, block_size: int) -> np.ndarray:
    """Average perceptual luminance of each block in raster order."""
    luminance = image.perceptual_luminance()
    return np.array([
        analyze_block(luminance, x, y, w, h).avg_brightness
        for x, y, w, h in iter_blocks(image.width, image.height, block_size)
    ], dtype=np.float64)


def has_poor_lighting(image: PixelBuffer, config: AnalysisConfig = _DEFAULT) -> bool:
    """More than 20% of blocks are very dark, or more than 20% are very bright."""
    brightness = block_brightness(image, config.lighting_block_size)
    if brightness.size == 0:
        return False
    dark = np.count_nonzero(brightness < config.dark_block_brightness) / brightness.size
    bright = np.count_nonzero(brightness > config.bright_block_brightness) / brightness.size
    return dark > config.poor_lighting_fraction or bright > config.poor_lighting_fraction


def lighting_uniformity(image: PixelBuffer, config: AnalysisConfig = _DEFAULT) -> float:
    """1 - variance of block brightness / 10000."""
    brightness = block_brightness(image, config.lighting_block_size)
    if brightness.size == 0:
        return 0.0
    variance = float(brightness.var())
    return clamp_unit(1.0 - min(variance / 10000.0, 1.0))


def noise_level(image: PixelBuffer, edges: np.ndarray, config: AnalysisConfig = _DEFAULT) -> float:
    """
    Mean 3x3 luminance variance over smooth (low edge strength) interior
    pixels, clamped to [0, 1].
    """
    if image.height < 3 or image.width < 3:
        return 0.0

    lum = np.ascontiguousarray(image.perceptual_luminance())
    mean = cv2.boxFilter(lum, cv2.CV_64F, (3, 3), normalize=True, borderType=cv2.BORDER_REPLICATE)
    mean_sq = cv2.boxFilter(lum * lum, cv2.CV_64F, (3, 3), normalize=True,
                            borderType=cv2.BORDER_REPLICATE)
    local_var = np.maximum(mean_sq - mean * mean, 0.0)[1:-1, 1:-1]

    smooth = edges[1:-1, 1:-1] < config.noise_edge_cutoff
    if not np.any(smooth):
        return 0.0
    return clamp_unit(float(local_var[smooth].mean()))


def color_balance(image: PixelBuffer) -> float:
    """1 - largest pairwise channel-mean difference / 128."""
    means = image.pixels.reshape(-1, 3).mean(axis=0)
    r_mean, g_mean, b_mean = (float(m) for m in means)
    max_diff = max(abs(r_mean - g_mean), abs(g_mean - b_mean), abs(b_mean - r_mean))
    return clamp_unit(1.0 - min(max_diff / 128.0, 1.0))


def detail_preservation(edges: np.ndarray) -> float:
    """Share of pixels whose edge strength is at least 128."""
    if edges.size == 0:
        return 0.0
    return clamp_unit(np.count_nonzero(edges >= 128) / edges.size)


def yellow_cast(image: PixelBuffer) -> float:
    """How much R and G outweigh B on average, 0..1."""
    r, g, b = (float(m) / 255.0 for m in image.pixels.reshape(-1, 3).mean(axis=0))
    return max((r + g) / 2.0 - b, 0.0)


def is_sky_color(pixels: np.ndarray) -> np.ndarray:
    """Boolean mask of blue sky, white/grey cloud and sunset coloured pixels."""
    rgb = pixels.astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    is_blue = (b > r) & (b > g) & (b > 100.0)
    is_cloud = (((r + g + b) / 3.0 > 200.0) &
                (np.abs(r - g) < 20.0) &
                (np.abs(r - b) < 20.0))
    is_sunset = (r > 180.0) & (g > 100.0) & (b < 150.0)
    return is_blue | is_cloud | is_sunset


def sky_fraction(image: PixelBuffer) -> float:
    """Sky-coloured share of the top third of the frame."""
    top = image.pixels[:image.height // 3]
    if top.size == 0:
        return 0.0
    return float(np.count_nonzero(is_sky_color(top))) / (image.width * image.height / 3.0)


def blue_dominance(image: PixelBuffer) -> float:
    """Mean amount by which blue exceeds the other channels (blue-hour cue)."""
    rgb = image.pixels.astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    dominant = (b > r) & (b > g)
    excess = np.where(dominant, (b - np.maximum(r, g)) / 255.0, 0.0)
    return float(excess.sum()) / image.total_pixels


def sample_grid(image: PixelBuffer, step: int = 20) -> np.ndarray:
    """Mean-of-channels brightness (0-1) sampled every `step` pixels."""
    samples = image.pixels[::step, ::step].astype(np.float64)
    return samples.mean(axis=2) / 255.0
