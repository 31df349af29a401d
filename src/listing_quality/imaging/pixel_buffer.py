"""
Decoded RGB pixel buffer shared by every analyzer.

Analyzers borrow the buffer and never write to it; the underlying array is
marked read-only on construction.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from ..errors import InvalidImageError

logger = logging.getLogger(__name__)

# Plain perceptual weights used for block statistics and balance
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)

# Integer Rec. 709 luma for the 8-bit grayscale plane, divided by 10000
GRAY_WEIGHTS = np.array([2126, 7152, 722], dtype=np.uint32)


class PixelBuffer:
    """Immutable width x height grid of 8-bit RGB samples."""

    def __init__(self, pixels: np.ndarray):
        if not isinstance(pixels, np.ndarray):
            raise InvalidImageError(f"Expected a numpy array, got {type(pixels).__name__}")
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise InvalidImageError(f"Expected an (H, W, 3) RGB array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidImageError("Pixel buffer is empty")
        if pixels.dtype != np.uint8:
            raise InvalidImageError(f"Expected uint8 samples, got {pixels.dtype}")

        self._pixels = np.ascontiguousarray(pixels)
        if self._pixels is pixels:
            self._pixels = pixels.copy()
        self._pixels.setflags(write=False)
        self._gray: Optional[np.ndarray] = None
        self._luminance: Optional[np.ndarray] = None

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "PixelBuffer":
        return cls(pixels)

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> "PixelBuffer":
        """
        Build a buffer from packed RGB bytes (row-major, 3 bytes per pixel).

        Raises:
            InvalidImageError: if the dimensions are not positive or do not
                match the byte length.
        """
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Invalid dimensions {width}x{height}")
        expected = width * height * 3
        if len(data) != expected:
            raise InvalidImageError(
                f"Buffer holds {len(data)} bytes but {width}x{height} RGB needs {expected}"
            )
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 3)
        return cls(pixels)

    @classmethod
    def load_image(cls, path: Union[str, Path]) -> "PixelBuffer":
        """Decode an image file with OpenCV (BGR on disk, RGB in memory)."""
        bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if bgr is None:
            raise InvalidImageError(f"Could not decode image: {path}")
        return cls(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    def grayscale(self) -> np.ndarray:
        """8-bit grayscale (2126 R + 7152 G + 722 B) // 10000, cached."""
        if self._gray is None:
            gray = ((self._pixels.astype(np.uint32) @ GRAY_WEIGHTS) // 10000).astype(np.uint8)
            gray.setflags(write=False)
            self._gray = gray
        return self._gray

    def perceptual_luminance(self) -> np.ndarray:
        """Float luminance 0.299R + 0.587G + 0.114B in the 0-255 range, cached."""
        if self._luminance is None:
            lum = self._pixels.astype(np.float64) @ LUMA_WEIGHTS
            lum.setflags(write=False)
            self._luminance = lum
        return self._luminance

    def check_dimensions(self,
                         min_dimensions: Optional[Tuple[int, int]] = None,
                         max_dimensions: Optional[Tuple[int, int]] = None) -> None:
        """Raise InvalidImageError when the buffer falls outside (width, height) bounds."""
        if min_dimensions is not None:
            min_w, min_h = min_dimensions
            if self.width < min_w or self.height < min_h:
                raise InvalidImageError(
                    f"Image {self.width}x{self.height} is smaller than {min_w}x{min_h}"
                )
        if max_dimensions is not None:
            max_w, max_h = max_dimensions
            if self.width > max_w or self.height > max_h:
                raise InvalidImageError(
                    f"Image {self.width}x{self.height} is larger than {max_w}x{max_h}"
                )

    def __repr__(self):
        return f"PixelBuffer({self.width}x{self.height})"


def as_pixel_buffer(image: Union["PixelBuffer", np.ndarray]) -> PixelBuffer:
    """Accept either a PixelBuffer or a raw (H, W, 3) uint8 array."""
    if isinstance(image, PixelBuffer):
        return image
    return PixelBuffer(image)
