"""
Scene diagnostics and enhancement recommendations.

Classifies exposure, colour cast, windows, sky and twilight conditions from
the histogram and a few spatial cues, then picks enhancement parameters for
an external renderer based on the room type. Nothing is rendered here.
"""

import logging
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Dict, Optional

import numpy as np

from ..config import AnalysisConfig
from ..detection.edges import EdgeDetector, mean_edge_strength
from ..detection.lines import LineDetector
from ..imaging.histogram import HistogramAnalyzer, HistogramStats
from ..imaging.pixel_buffer import PixelBuffer
from . import metrics

logger = logging.getLogger(__name__)


class ContentType(str, Enum):
    """Photo or document category attached to each listing image."""
    LIVING_ROOM = "living_room"
    BEDROOM = "bedroom"
    KITCHEN = "kitchen"
    BATHROOM = "bathroom"
    OTHER_INTERIOR = "other_interior"
    EXTERIOR = "exterior"
    VIEW = "view"
    FLOOR_PLAN = "floor_plan"
    TITLE_PAPER = "title_paper"
    SPA_CONTRACT = "spa_contract"
    RESERVATION = "reservation"
    RENTAL_AGREEMENT = "rental_agreement"
    LISTING_AGREEMENT = "listing_agreement"

    @classmethod
    def parse(cls, value) -> "ContentType":
        """Accept an enum member or its value/name in any case."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown content type: {value!r}")


@dataclass(frozen=True)
class ImageDiagnosis:
    is_underexposed: bool
    is_overexposed: bool
    is_yellow_cast: bool
    has_window: bool
    has_sky: bool
    is_twilight: bool
    needs_perspective_correction: bool
    needs_sharpening: bool

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class ColorTemperature:
    temperature_offset: float  # negative = too cool, positive = too warm
    tint_offset: float         # green-magenta balance


@dataclass(frozen=True)
class InteriorLighting:
    ambient_level: float
    lighting_uniformity: float
    shadow_depth: float


@dataclass
class EnhancementSettings:
    """Parameters handed to the renderer."""
    contrast_boost: float = 1.0
    color_enhancement_strength: float = 1.0
    shadow_recovery: float = 0.3
    highlight_protection: float = 0.2
    sharpening_threshold: float = 10.0
    brightness_adjustment: float = 0.0
    window_recovery_strength: float = 1.0
    white_balance_temp: float = 0.0
    exterior_sky_enhancement: float = 1.0

    @classmethod
    def default(cls) -> "EnhancementSettings":
        return cls()

    @classmethod
    def interior(cls) -> "EnhancementSettings":
        return cls(
            contrast_boost=1.1,
            color_enhancement_strength=1.1,
            shadow_recovery=0.4,
            highlight_protection=0.3,
            window_recovery_strength=1.5,
            white_balance_temp=-0.05,
        )

    @classmethod
    def exterior(cls) -> "EnhancementSettings":
        return cls(
            contrast_boost=1.2,
            color_enhancement_strength=1.2,
            shadow_recovery=0.2,
            highlight_protection=0.4,
            window_recovery_strength=0.8,
            exterior_sky_enhancement=1.4,
        )

    @classmethod
    def twilight(cls) -> "EnhancementSettings":
        return cls(
            contrast_boost=1.3,
            color_enhancement_strength=1.3,
            shadow_recovery=0.5,
            highlight_protection=0.2,
            window_recovery_strength=1.2,
            white_balance_temp=-0.1,
            exterior_sky_enhancement=1.2,
        )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def recommend_enhancement(content_type, diagnosis: ImageDiagnosis) -> EnhancementSettings:
    """
    Pick enhancement settings for a room type, then apply global fixes.

    Args:
        content_type: ContentType or its string value
        diagnosis: Result of SceneDiagnostics.diagnose

    Returns:
        A fresh EnhancementSettings instance
    """
    content_type = ContentType.parse(content_type)

    if content_type in (ContentType.LIVING_ROOM, ContentType.BEDROOM):
        settings = EnhancementSettings.interior()
        if diagnosis.has_window:
            settings = replace(
                settings,
                window_recovery_strength=1.5 if diagnosis.is_overexposed else 1.2,
                highlight_protection=0.95 if diagnosis.is_overexposed else 0.85,
            )
        if diagnosis.is_underexposed:
            settings = replace(
                settings,
                shadow_recovery=0.4 if diagnosis.is_yellow_cast else 0.6,
                brightness_adjustment=12.0 if diagnosis.needs_sharpening else 15.0,
            )
    elif content_type in (ContentType.KITCHEN, ContentType.BATHROOM):
        # reflective surfaces
        settings = replace(
            EnhancementSettings.interior(),
            sharpening_threshold=0.4,
            highlight_protection=0.92,
            white_balance_temp=-0.1,
        )
    elif content_type is ContentType.EXTERIOR:
        settings = EnhancementSettings.exterior()
        if diagnosis.has_sky:
            settings = replace(settings, exterior_sky_enhancement=1.4, highlight_protection=0.85)
        if diagnosis.is_twilight:
            settings = EnhancementSettings.twilight()
    else:
        settings = EnhancementSettings.default()

    if diagnosis.is_underexposed:
        settings.brightness_adjustment += 10.0
        settings.shadow_recovery += 0.2
    if diagnosis.is_overexposed:
        settings.highlight_protection += 0.1
        settings.brightness_adjustment -= 5.0
    if diagnosis.is_yellow_cast:
        settings.white_balance_temp -= 0.15

    return settings


class SceneDiagnostics:
    """Exposure, colour and scene-type checks used to choose enhancement settings."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.histogram_analyzer = HistogramAnalyzer(self.config)
        self.edge_detector = EdgeDetector(self.config)
        self.line_detector = LineDetector(self.config)

    def diagnose(self, image: PixelBuffer, stats: Optional[HistogramStats] = None) -> ImageDiagnosis:
        """
        Diagnose one image.

        Args:
            image: Pixel buffer
            stats: Precomputed histogram statistics, computed when omitted

        Returns:
            ImageDiagnosis
        """
        if stats is None:
            stats = self.histogram_analyzer.analyze(image)

        edges = self.edge_detector.detect(image)
        mean_edge = mean_edge_strength(edges)
        lines = self.line_detector.detect_architectural_lines(edges)

        diagnosis = ImageDiagnosis(
            is_underexposed=stats.dark_fraction > 0.3 and stats.mean < 80.0,
            is_overexposed=stats.highlight_clipping > 0.1 or stats.light_fraction > 0.4,
            is_yellow_cast=stats.exposure_bias > 0.2 and metrics.yellow_cast(image) > 0.15,
            has_window=(stats.window_probability > 0.2 and
                        stats.light_fraction > 0.15 and
                        stats.contrast_ratio > 4.0),
            has_sky=metrics.sky_fraction(image) > 0.15 and stats.light_fraction > 0.2,
            is_twilight=(stats.mean < 100.0 and
                         stats.window_probability > 0.15 and
                         stats.shadow_detail < 0.3 and
                         metrics.blue_dominance(image) > 0.15),
            needs_perspective_correction=self.line_detector.has_perspective_issues(lines),
            needs_sharpening=mean_edge < 30.0 or stats.std_dev < 20.0,
        )
        logger.debug(f"Scene diagnosis for {image!r}: {diagnosis}")
        return diagnosis

    def color_temperature(self, image: PixelBuffer) -> ColorTemperature:
        r, g, b = (float(m) / 255.0 for m in image.pixels.reshape(-1, 3).mean(axis=0))
        return ColorTemperature(
            temperature_offset=(r - b) * 2.0,
            tint_offset=g - (r + b) / 2.0,
        )

    def interior_lighting(self, image: PixelBuffer, step: int = 20) -> InteriorLighting:
        """Ambient level, uniformity and shadow depth from a sparse sample grid."""
        samples = metrics.sample_grid(image, step)
        return InteriorLighting(
            ambient_level=float(samples.mean()),
            lighting_uniformity=metrics.clamp_unit(1.0 - float(np.std(samples))),
            shadow_depth=float(samples.min()),
        )
