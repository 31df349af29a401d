"""
Unit tests for the per-image technical metrics.
"""
import pytest
import numpy as np

from listing_quality.imaging.pixel_buffer import PixelBuffer
from listing_quality.scoring import metrics


def split_image(left, right, height=128, width=128):
    pixels = np.full((height, width, 3), left, dtype=np.uint8)
    pixels[:, width // 2:] = right
    return PixelBuffer(pixels)


@pytest.mark.unit
class TestClampUnit:
    def test_values(self):
        assert metrics.clamp_unit(float('nan')) == 0.0
        assert metrics.clamp_unit(1.5) == 1.0
        assert metrics.clamp_unit(-0.2) == 0.0
        assert metrics.clamp_unit(0.25) == 0.25
        assert metrics.clamp_unit(None) == 0.0


@pytest.mark.unit
class TestFlags:
    """Blur and lighting flags."""

    def test_blurry_without_edges(self):
        assert metrics.is_blurry(np.zeros((10, 10), dtype=np.uint8))

    def test_sharp_with_strong_edges(self):
        assert not metrics.is_blurry(np.full((10, 10), 255, dtype=np.uint8))

    def test_poor_lighting_dark(self, black_image):
        assert metrics.has_poor_lighting(black_image)

    def test_poor_lighting_bright(self, white_image):
        assert metrics.has_poor_lighting(white_image)

    def test_even_mid_gray_lighting(self, gray_image):
        assert not metrics.has_poor_lighting(gray_image)


@pytest.mark.unit
class TestScores:
    """Continuous technical scores."""

    def test_uniform_lighting(self, gray_image):
        assert metrics.lighting_uniformity(gray_image) == 1.0

    def test_split_lighting_is_not_uniform(self):
        # four 64px blocks at 0 and 255: variance far above 10000
        assert metrics.lighting_uniformity(split_image(0, 255)) == 0.0

    def test_neutral_color_balance(self, gray_image):
        assert metrics.color_balance(gray_image) == 1.0

    def test_pure_red_color_balance(self, solid_image):
        assert metrics.color_balance(solid_image((255, 0, 0))) == 0.0

    def test_detail_preservation(self):
        assert metrics.detail_preservation(np.full((4, 4), 255, dtype=np.uint8)) == 1.0
        assert metrics.detail_preservation(np.zeros((4, 4), dtype=np.uint8)) == 0.0
        half = np.zeros((4, 4), dtype=np.uint8)
        half[:2] = 128
        assert metrics.detail_preservation(half) == 0.5

    def test_noise_on_flat_image(self, gray_image):
        edges = np.zeros(gray_image.shape, dtype=np.uint8)
        assert metrics.noise_level(gray_image, edges) == pytest.approx(0.0, abs=1e-9)

    def test_noise_is_raw_local_variance(self):
        """A one-level pixel checkerboard has 3x3 variance 20/81 everywhere inside."""
        yy, xx = np.mgrid[0:20, 0:20]
        values = (100 + (yy + xx) % 2).astype(np.uint8)
        image = PixelBuffer(np.repeat(values[..., None], 3, axis=2))
        edges = np.zeros(image.shape, dtype=np.uint8)
        assert metrics.noise_level(image, edges) == pytest.approx(20.0 / 81.0, rel=1e-6)

    def test_noise_on_random_image(self, noise_image):
        edges = np.zeros(noise_image.shape, dtype=np.uint8)
        assert metrics.noise_level(noise_image, edges) == 1.0

    def test_noise_ignores_edge_pixels(self, noise_image):
        edges = np.full(noise_image.shape, 255, dtype=np.uint8)
        assert metrics.noise_level(noise_image, edges) == 0.0

    def test_noise_on_tiny_image(self, solid_image):
        image = solid_image((10, 10, 10), height=2, width=2)
        assert metrics.noise_level(image, np.zeros((2, 2), dtype=np.uint8)) == 0.0


@pytest.mark.unit
class TestColourCues:
    """Sky, twilight and cast measures used by scene diagnostics."""

    def test_sky_fraction_blue(self, solid_image):
        assert metrics.sky_fraction(solid_image((50, 100, 200))) == pytest.approx(1.0)

    def test_sky_fraction_dark(self, black_image):
        assert metrics.sky_fraction(black_image) == 0.0

    def test_blue_dominance(self, solid_image):
        assert metrics.blue_dominance(solid_image((50, 100, 200))) == pytest.approx(100.0 / 255.0)

    def test_yellow_cast(self, solid_image):
        expected = 200.0 / 255.0 - 50.0 / 255.0
        assert metrics.yellow_cast(solid_image((200, 200, 50))) == pytest.approx(expected)

    def test_no_yellow_cast_on_blue(self, solid_image):
        assert metrics.yellow_cast(solid_image((0, 0, 255))) == 0.0

    def test_sample_grid(self, gray_image):
        samples = metrics.sample_grid(gray_image, step=20)
        assert samples.shape == (6, 8)
        assert np.allclose(samples, 128.0 / 255.0)
