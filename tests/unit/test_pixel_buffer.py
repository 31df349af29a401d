"""
Unit tests for PixelBuffer.
"""
import numpy as np
import pytest

from listing_quality.errors import InvalidImageError
from listing_quality.imaging.pixel_buffer import PixelBuffer, as_pixel_buffer


@pytest.mark.unit
class TestPixelBuffer:
    """Construction, validation and derived planes."""

    def test_from_bytes(self):
        data = bytes([10, 20, 30] * 6)
        image = PixelBuffer.from_bytes(data, width=3, height=2)
        assert image.shape == (2, 3)
        assert image.total_pixels == 6
        assert tuple(image.pixels[1, 2]) == (10, 20, 30)

    def test_from_bytes_length_mismatch(self):
        with pytest.raises(InvalidImageError):
            PixelBuffer.from_bytes(bytes(10), width=2, height=2)

    def test_from_bytes_zero_size(self):
        with pytest.raises(InvalidImageError):
            PixelBuffer.from_bytes(b"", width=0, height=5)

    def test_rejects_wrong_dtype(self):
        with pytest.raises(InvalidImageError):
            PixelBuffer(np.zeros((4, 4, 3), dtype=np.float32))

    def test_is_read_only(self):
        source = np.zeros((4, 4, 3), dtype=np.uint8)
        image = PixelBuffer(source)
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1
        # caller's array stays writable
        source[0, 0, 0] = 1
        assert image.pixels[0, 0, 0] == 0

    def test_grayscale_of_gray(self, gray_image):
        gray = gray_image.grayscale()
        assert gray.shape == (gray_image.height, gray_image.width)
        assert int(gray[0, 0]) == 128

    def test_grayscale_uses_rec709_integer_luma(self):
        """Green and blue halves map to 7152*255//10000 and 722*255//10000."""
        pixels = np.zeros((4, 6, 3), dtype=np.uint8)
        pixels[:, :3] = (0, 255, 0)
        pixels[:, 3:] = (0, 0, 255)
        gray = PixelBuffer(pixels).grayscale()
        assert gray.dtype == np.uint8
        assert int(gray[0, 0]) == 182
        assert int(gray[0, 5]) == 18
        assert int(PixelBuffer(np.full((2, 2, 3), (255, 0, 0), dtype=np.uint8)).grayscale()[0, 0]) == 54

    def test_luminance(self, solid_image):
        image = solid_image((255, 0, 0))
        assert image.perceptual_luminance()[0, 0] == pytest.approx(0.299 * 255)

    def test_check_dimensions(self, gray_image):
        gray_image.check_dimensions(min_dimensions=(160, 120), max_dimensions=(160, 120))
        with pytest.raises(InvalidImageError):
            gray_image.check_dimensions(min_dimensions=(161, 1))
        with pytest.raises(InvalidImageError):
            gray_image.check_dimensions(max_dimensions=(100, 200))

    def test_as_pixel_buffer(self, gray_image):
        assert as_pixel_buffer(gray_image) is gray_image
        assert isinstance(as_pixel_buffer(np.ones((2, 2, 3), dtype=np.uint8)), PixelBuffer)
