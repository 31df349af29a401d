"""
Perceptual Luminance Histogram Analysis

Builds a 256-bin luminance histogram tuned for real-estate photography and
derives exposure statistics from it:
- Gamma-aware channel weighting (reduces blue/sky bias from windows)
- Soft HDR roll-off instead of hard clipping above 255
- Row-chunked accumulation (chunks can run on an executor)
- Exposure, clipping, shadow detail and window likelihood metrics
"""

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Tuple, Dict, Any

import numpy as np

from ..config import AnalysisConfig
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

NUM_BINS = 256

# Perceptual channel weights
R_WEIGHT = 0.299  # warm interior tones
G_WEIGHT = 0.587  # natural perception
B_WEIGHT = 0.114  # keeps windows and sky from dominating

# Float noise tolerated above 255 before the HDR roll-off kicks in
_HDR_EPSILON = 1e-6


@dataclass(frozen=True)
class HistogramStats:
    """Statistics derived from a 256-bin luminance histogram."""
    mean: float
    median: int
    std_dev: float
    peaks: List[Tuple[int, int]]
    total_pixels: int
    dark_fraction: float       # bins < 64
    light_fraction: float      # bins >= 192
    mid_fraction: float        # everything in between
    contrast_ratio: float      # (last non-zero bin + 1) / (first non-zero bin + 1)
    exposure_bias: float       # -1.0 .. 1.0, 0 is ideal
    highlight_clipping: float  # fraction of pixels >= 250
    shadow_detail: float       # spread of the 0-63 sub-histogram
    window_probability: float  # 0.0 .. 1.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["peaks"] = [list(p) for p in self.peaks]
        return data


@dataclass(frozen=True)
class ChannelAnalysis:
    """Per-channel means, spreads and tonal thresholds."""
    r_mean: float
    g_mean: float
    b_mean: float
    r_std_dev: float
    g_std_dev: float
    b_std_dev: float
    dark_threshold: float
    bright_threshold: float


@dataclass(frozen=True)
class RoomBrightness:
    """Grayscale brightness summary of a room photo."""
    overall_brightness: float       # 0-1
    uniformity: float               # 1 - std/128
    dark_areas_percentage: float    # 0-100
    bright_areas_percentage: float  # 0-100


def soft_clip(intensity: np.ndarray, factor: float = 0.1) -> np.ndarray:
    """Roll off values above 255 with 255 - 255 / (1 + (x - 255) * factor)."""
    intensity = np.asarray(intensity, dtype=np.float64)
    over = intensity > 255.0 + _HDR_EPSILON
    out = np.where(over, 0.0, np.minimum(intensity, 255.0))
    if np.any(over):
        excess = intensity[over] - 255.0
        out[over] = 255.0 - 255.0 / (1.0 + excess * factor)
    return out


class HistogramAnalyzer:
    """
    Computes the perceptual luminance histogram and its statistics.

    Luminance is (0.299 R^g + 0.587 G^g + 0.114 B^g)^(1/g) with g = 2.2,
    i.e. channels are weighted in linear light rather than on the encoded
    values.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        gamma = self.config.gamma
        self._expand_lut = np.arange(NUM_BINS, dtype=np.float64) ** gamma
        self._weights = (R_WEIGHT, G_WEIGHT, B_WEIGHT)

    def luminance(self, pixels: np.ndarray) -> np.ndarray:
        """Gamma-aware weighted luminance of an (H, W, 3) uint8 block, after HDR roll-off."""
        lut = self._expand_lut
        wr, wg, wb = self._weights
        linear = (wr * lut[pixels[..., 0]] +
                  wg * lut[pixels[..., 1]] +
                  wb * lut[pixels[..., 2]])
        intensity = linear ** (1.0 / self.config.gamma)
        return soft_clip(intensity, self.config.hdr_soft_clip_factor)

    def _chunk_histogram(self, pixels: np.ndarray) -> np.ndarray:
        mapped = self.luminance(pixels)
        index = np.minimum((mapped + 0.5).astype(np.int64), NUM_BINS - 1)
        return np.bincount(index.ravel(), minlength=NUM_BINS).astype(np.int64)

    def compute_histogram(self,
                          image: PixelBuffer,
                          chunks: Optional[int] = None,
                          executor: Optional[Executor] = None) -> np.ndarray:
        """
        Accumulate the 256-bin luminance histogram.

        Rows are split into blocks of height // chunks rows (at least one
        row); each block gets its own histogram and the partial histograms
        are summed bin-wise, so the result does not depend on the chunk
        count.

        Args:
            image: Pixel buffer to analyze
            chunks: Number of row chunks (defaults to config.histogram_chunks)
            executor: Optional executor used to accumulate chunks in parallel

        Returns:
            int64 array of 256 bin counts
        """
        chunks = chunks or self.config.histogram_chunks
        pixels = image.pixels
        height = image.height
        chunk_rows = max(height // chunks, 1)
        starts = range(0, height, chunk_rows)

        def accumulate(y: int) -> np.ndarray:
            return self._chunk_histogram(pixels[y:min(y + chunk_rows, height)])

        if executor is not None:
            partials = list(executor.map(accumulate, starts))
        else:
            partials = [accumulate(y) for y in starts]

        histogram = np.zeros(NUM_BINS, dtype=np.int64)
        for partial in partials:
            histogram += partial
        return histogram

    def analyze(self, image: PixelBuffer, executor: Optional[Executor] = None) -> HistogramStats:
        """Histogram plus derived statistics for one image."""
        return self.statistics(self.compute_histogram(image, executor=executor))

    def statistics(self, histogram: np.ndarray) -> HistogramStats:
        """Derive HistogramStats from bin counts."""
        histogram = np.asarray(histogram, dtype=np.int64)
        if histogram.shape != (NUM_BINS,):
            raise ValueError(f"Expected {NUM_BINS} bins, got shape {histogram.shape}")
        total = int(histogram.sum())
        if total <= 0:
            raise ValueError("Histogram is empty")

        cfg = self.config
        mean = calculate_mean(histogram, total)
        dark_fraction = float(histogram[:cfg.dark_bin_limit].sum()) / total
        light_fraction = float(histogram[cfg.light_bin_limit:].sum()) / total

        return HistogramStats(
            mean=mean,
            median=calculate_median(histogram, total),
            std_dev=calculate_std_dev(histogram, mean, total),
            peaks=find_peaks(histogram),
            total_pixels=total,
            dark_fraction=dark_fraction,
            light_fraction=light_fraction,
            mid_fraction=1.0 - dark_fraction - light_fraction,
            contrast_ratio=calculate_contrast_ratio(histogram),
            exposure_bias=(mean - cfg.ideal_mean) / cfg.ideal_mean,
            highlight_clipping=float(histogram[cfg.highlight_clip_bin:].sum()) / total,
            shadow_detail=calculate_shadow_detail(histogram, cfg.dark_bin_limit),
            window_probability=estimate_window_probability(histogram, total),
        )

    def analyze_channels(self, image: PixelBuffer) -> ChannelAnalysis:
        """Per-channel statistics and the 10% / 90% tonal thresholds."""
        pixels = image.pixels
        total = image.total_pixels
        hists = [np.bincount(pixels[..., c].ravel(), minlength=NUM_BINS).astype(np.int64)
                 for c in range(3)]
        means = [calculate_mean(h, total) for h in hists]
        stds = [calculate_std_dev(h, m, total) for h, m in zip(hists, means)]
        combined = np.maximum(np.maximum(hists[0], hists[1]), hists[2])

        return ChannelAnalysis(
            r_mean=means[0], g_mean=means[1], b_mean=means[2],
            r_std_dev=stds[0], g_std_dev=stds[1], b_std_dev=stds[2],
            dark_threshold=_find_threshold(combined, total // 10, reverse=False),
            bright_threshold=_find_threshold(combined, total * 9 // 10, reverse=True),
        )

    def compute_room_brightness(self, image: PixelBuffer) -> RoomBrightness:
        gray = image.grayscale()
        total = image.total_pixels
        hist = np.bincount(gray.ravel(), minlength=NUM_BINS).astype(np.int64)
        mean = calculate_mean(hist, total)
        std = calculate_std_dev(hist, mean, total)
        return RoomBrightness(
            overall_brightness=mean / 255.0,
            uniformity=1.0 - std / 128.0,
            dark_areas_percentage=float(hist[:64].sum()) / total * 100.0,
            bright_areas_percentage=float(hist[192:].sum()) / total * 100.0,
        )


def calculate_mean(histogram: np.ndarray, total: int) -> float:
    bins = np.arange(len(histogram), dtype=np.float64)
    return float((bins * histogram).sum() / total)


def calculate_median(histogram: np.ndarray, total: int) -> int:
    # first bin where the running count reaches half the pixels
    cumsum = np.cumsum(histogram)
    return int(np.searchsorted(cumsum, total // 2, side='left'))


def calculate_std_dev(histogram: np.ndarray, mean: float, total: int) -> float:
    bins = np.arange(len(histogram), dtype=np.float64)
    variance = ((bins - mean) ** 2 * histogram).sum() / total
    return float(np.sqrt(variance))


def calculate_contrast_ratio(histogram: np.ndarray) -> float:
    nonzero = np.flatnonzero(histogram)
    first = int(nonzero[0]) if nonzero.size else 0
    last = int(nonzero[-1]) if nonzero.size else NUM_BINS - 1
    return (last + 1.0) / (first + 1.0)


def find_peaks(histogram: np.ndarray) -> List[Tuple[int, int]]:
    """Interior bins strictly greater than both neighbours."""
    inner = histogram[1:-1]
    mask = (inner > histogram[:-2]) & (inner > histogram[2:])
    return [(int(i) + 1, int(histogram[i + 1])) for i in np.flatnonzero(mask)]


def calculate_shadow_detail(histogram: np.ndarray, limit: int = 64) -> float:
    """Standard deviation of the shadow sub-histogram (bins 0..limit-1), divided by 64."""
    shadows = histogram[:limit].astype(np.float64)
    count = shadows.sum()
    if count == 0:
        return 0.0
    bins = np.arange(limit, dtype=np.float64)
    mean = (bins * shadows).sum() / count
    variance = ((bins - mean) ** 2 * shadows).sum() / count
    return float(np.sqrt(variance) / 64.0)


def estimate_window_probability(histogram: np.ndarray, total: int) -> float:
    """
    Windows show up as a bright mass with a sharp edge in the histogram.

    Doubles the bright (>= 200) fraction when some step between adjacent
    bins in 180-255 exceeds 1% of all pixels and the bright fraction is
    above 5%; otherwise returns the bright fraction unchanged.
    """
    bright_region_size = float(histogram[200:].sum()) / total
    steps = np.abs(np.diff(histogram[180:].astype(np.float64)))
    has_sharp_transition = bool(np.any(steps > total * 0.01))

    if has_sharp_transition and bright_region_size > 0.05:
        return min(bright_region_size * 2.0, 1.0)
    return min(bright_region_size, 1.0)


def _find_threshold(histogram: np.ndarray, target: int, reverse: bool) -> float:
    order = histogram[::-1] if reverse else histogram
    cumsum = np.cumsum(order)
    hits = np.flatnonzero(cumsum >= target)
    if hits.size == 0:
        return 255.0 if reverse else 0.0
    idx = int(hits[0])
    return float(NUM_BINS - 1 - idx) if reverse else float(idx)
