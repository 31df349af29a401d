"""
Unit tests for the Sobel edge detector.
"""
import pytest
import numpy as np

from listing_quality.detection.edges import EdgeDetector, mean_edge_strength
from listing_quality.imaging.pixel_buffer import PixelBuffer


def step_image(left, right, height=90, width=100):
    pixels = np.full((height, width, 3), left, dtype=np.uint8)
    pixels[:, width // 2:] = right
    return PixelBuffer(pixels)


@pytest.mark.unit
class TestEdgeDetector:
    """Tests for EdgeDetector.detect."""

    def test_shape_and_dtype(self, noise_image):
        edges = EdgeDetector().detect(noise_image)
        assert edges.shape == (noise_image.height, noise_image.width)
        assert edges.dtype == np.uint8

    def test_solid_image_has_no_edges(self, gray_image):
        assert EdgeDetector().detect(gray_image).max() == 0

    def test_gentle_ramp_is_below_threshold(self, gradient_image):
        """A one-level-per-pixel ramp gives Sobel magnitude 8, under both thresholds."""
        assert EdgeDetector().detect(gradient_image).max() == 0

    def test_hard_step_saturates(self):
        edges = EdgeDetector().detect(step_image(0, 255))
        assert np.all(edges[:, 49] == 255)
        assert np.all(edges[:, 50] == 255)
        assert edges[:, :48].max() == 0
        assert edges[:, 52:].max() == 0

    def test_top_third_uses_tolerant_threshold(self):
        """A step of 3 levels gives magnitude 12: kept above the top-third cutoff only."""
        edges = EdgeDetector().detect(step_image(100, 103, height=90))
        top = edges[:30]
        rest = edges[30:]
        assert np.all(top[:, 49] == 12)
        assert np.all(top[:, 50] == 12)
        assert rest.max() == 0

    def test_threshold_map(self):
        thresholds = EdgeDetector().threshold_map(9, 4)
        assert thresholds.shape == (9, 1)
        assert list(thresholds[:, 0]) == [10.0] * 3 + [15.0] * 6


@pytest.mark.unit
class TestMeanEdgeStrength:
    """Tests for the shared mean edge strength helper."""

    def test_mean_of_map(self):
        edges = np.zeros((4, 4), dtype=np.uint8)
        edges[0] = 255
        assert mean_edge_strength(edges) == pytest.approx(63.75)

    def test_empty_map(self):
        assert mean_edge_strength(np.zeros((0, 0), dtype=np.uint8)) == 0.0
