"""
Configuration for the quality analysis pipeline and the batch scheduler.

Two dataclasses hold every tunable the core exposes:
- AnalysisConfig: detection thresholds and scoring weights. The defaults are
  the reference values the scoring contract is built around; change them
  only for experiments.
- ResourceLimits: permit ceilings per resource class plus batch limits.

Values can come from code, from a JSON file (load_config) or, for resource
limits, from LISTING_QUALITY_* environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Dict, Optional, Tuple, Any

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "LISTING_QUALITY_"


@dataclass
class AnalysisConfig:
    """Thresholds and weights used by the per-image analyzers."""

    # Histogram
    histogram_chunks: int = 4
    hdr_soft_clip_factor: float = 0.1
    gamma: float = 2.2
    dark_bin_limit: int = 64
    light_bin_limit: int = 192
    highlight_clip_bin: int = 250
    ideal_mean: float = 127.0

    # Edges
    edge_threshold_top: float = 10.0
    edge_threshold_default: float = 15.0

    # Hough lines
    hough_vote_threshold: int = 150
    hough_suppression_radius: int = 8
    vertical_tolerance_deg: float = 10.0
    min_line_radius: float = 50.0
    perspective_tolerance_deg: float = 2.0
    converging_tolerance_deg: float = 20.0
    converging_min_diff_deg: float = 1.0
    symmetry_tolerance_px: float = 10.0

    # Windows
    window_block_size: int = 32
    window_min_brightness: float = 180.0
    window_min_contrast: float = 30.0
    window_glare_brightness: float = 240.0
    window_glare_max_contrast: float = 10.0

    # Per-image flags
    blur_threshold: float = 12.0
    lighting_block_size: int = 64
    dark_block_brightness: float = 40.0
    bright_block_brightness: float = 220.0
    poor_lighting_fraction: float = 0.2
    noise_edge_cutoff: int = 10

    # Composition
    thirds_weight: float = 0.30
    architecture_weight: float = 0.25
    depth_weight: float = 0.25
    balance_weight: float = 0.20
    thirds_point_weight: float = 0.15
    thirds_line_weight: float = 0.10
    thirds_radius: int = 50
    depth_sections: int = 5

    # Accepted input dimensions, (width, height). None disables the check.
    min_dimensions: Optional[Tuple[int, int]] = None
    max_dimensions: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        if self.histogram_chunks < 1:
            raise ConfigurationError("histogram_chunks must be at least 1")
        if self.window_block_size < 1 or self.lighting_block_size < 1:
            raise ConfigurationError("block sizes must be positive")
        if self.depth_sections < 1:
            raise ConfigurationError("depth_sections must be at least 1")
        if self.min_dimensions is not None:
            self.min_dimensions = tuple(self.min_dimensions)
        if self.max_dimensions is not None:
            self.max_dimensions = tuple(self.max_dimensions)


@dataclass
class ResourceLimits:
    """Permit ceilings per resource class."""
    max_concurrent_uploads: int = 4
    max_concurrent_processing: int = 4
    max_concurrent_searches: int = 8
    max_concurrent_embeddings: int = 2
    max_batch_size: int = 100
    acquire_timeout: Optional[float] = None  # seconds, None waits forever

    def __post_init__(self):
        for name in ("max_concurrent_uploads", "max_concurrent_processing",
                     "max_concurrent_searches", "max_concurrent_embeddings",
                     "max_batch_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        if self.acquire_timeout is not None and self.acquire_timeout <= 0:
            raise ConfigurationError("acquire_timeout must be positive or None")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ResourceLimits":
        """
        Build limits from LISTING_QUALITY_* environment variables.

        Recognized variables: MAX_CONCURRENT_UPLOADS, MAX_CONCURRENT_PROCESSING,
        MAX_CONCURRENT_SEARCHES, MAX_CONCURRENT_EMBEDDINGS, MAX_BATCH_SIZE and
        ACQUIRE_TIMEOUT. Missing variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            try:
                values[f.name] = float(raw) if f.name == "acquire_timeout" else int(raw)
            except ValueError:
                raise ConfigurationError(f"{ENV_PREFIX}{f.name.upper()}={raw!r} is not a number")
        return cls(**values)


@dataclass
class QualityConfig:
    """Top-level configuration bundle."""
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    resources: ResourceLimits = field(default_factory=ResourceLimits)

    def to_dict(self) -> Dict[str, Any]:
        return {"analysis": asdict(self.analysis), "resources": asdict(self.resources)}


def _build(cls, section: str, payload: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(payload) - known
    if unknown:
        raise ConfigurationError(f"Unknown {section} keys: {', '.join(sorted(unknown))}")
    try:
        return cls(**payload)
    except TypeError as e:
        raise ConfigurationError(f"Invalid {section} section: {e}")


def load_config(path: Optional[str] = None) -> QualityConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: JSON file with optional "analysis" and "resources" objects.
              Defaults to $LISTING_QUALITY_CONFIG when unset.

    Returns:
        QualityConfig; defaults are used when the file does not exist.
    """
    if path is None:
        path = os.environ.get(ENV_PREFIX + "CONFIG")
    if not path:
        return QualityConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found, using defaults")
        return QualityConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read config {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {config_path} must contain a JSON object")

    unknown = set(data) - {"analysis", "resources"}
    if unknown:
        raise ConfigurationError(f"Unknown config sections: {', '.join(sorted(unknown))}")

    analysis = _build(AnalysisConfig, "analysis", data.get("analysis", {}))
    resources = _build(ResourceLimits, "resources", data.get("resources", {}))
    logger.info(f"Loaded configuration from {config_path}")
    return QualityConfig(analysis=analysis, resources=resources)
