"""
Shared fixtures for all tests.

Synthetic images only: solid colours, gradients, striped scenes and seeded
noise, so every test is deterministic and needs no files on disk.
"""
import pytest
import sys
from pathlib import Path

import numpy as np

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from listing_quality.config import AnalysisConfig, ResourceLimits
from listing_quality.imaging.pixel_buffer import PixelBuffer


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, isolated tests of one module")
    config.addinivalue_line("markers", "integration: tests that run several components together")
    config.addinivalue_line("markers", "slow: tests that take more than a few seconds")


# =============================================================================
# Image Fixtures
# =============================================================================

def make_solid(color, height=120, width=160):
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[...] = color
    return PixelBuffer(pixels)


@pytest.fixture
def solid_image():
    """Factory for uniform colour images."""
    return make_solid


@pytest.fixture(scope="session")
def black_image():
    return make_solid((0, 0, 0))


@pytest.fixture(scope="session")
def white_image():
    return make_solid((255, 255, 255))


@pytest.fixture(scope="session")
def gray_image():
    return make_solid((128, 128, 128))


@pytest.fixture(scope="session")
def gradient_image():
    """Horizontal grey ramp, 0 on the left to 255 on the right."""
    ramp = np.linspace(0, 255, 256).astype(np.uint8)
    pixels = np.repeat(np.tile(ramp, (100, 1))[..., None], 3, axis=2)
    return PixelBuffer(pixels)


@pytest.fixture(scope="session")
def noise_image():
    """Seeded uniform RGB noise."""
    np.random.seed(42)
    return PixelBuffer(np.random.randint(0, 256, (240, 320, 3), dtype=np.uint8))


@pytest.fixture(scope="session")
def striped_image():
    """Dark frame with full-width bright horizontal bars (strong straight edges)."""
    pixels = np.full((240, 320, 3), 40, dtype=np.uint8)
    for y in (60, 120, 180):
        pixels[y:y + 8, :] = 220
    return PixelBuffer(pixels)


@pytest.fixture(scope="session")
def checkerboard_image():
    """8px black/white checkerboard: edges almost everywhere."""
    yy, xx = np.mgrid[0:240, 0:320]
    board = (((yy // 8) + (xx // 8)) % 2 * 255).astype(np.uint8)
    return PixelBuffer(np.repeat(board[..., None], 3, axis=2))


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def analysis_config():
    return AnalysisConfig()


@pytest.fixture
def small_limits():
    return ResourceLimits(max_concurrent_processing=2, max_batch_size=10)


# =============================================================================
# Analysis Fixtures
# =============================================================================

@pytest.fixture
def analysis_factory():
    """Build a QualityAnalysis with good defaults and selected overrides."""
    from listing_quality.scoring.quality_analyzer import QualityAnalysis

    def _make(**overrides):
        values = dict(
            is_blurry=False,
            noise_level=0.1,
            composition_score=0.9,
            vertical_alignment=0.9,
            has_perspective_issues=False,
            room_depth_score=0.9,
            lighting_uniformity=0.9,
            has_poor_lighting=False,
            window_overexposure=False,
            color_balance=0.9,
            detail_preservation=0.9,
        )
        values.update(overrides)
        return QualityAnalysis(**values)

    return _make
