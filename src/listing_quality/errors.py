"""
Exception hierarchy for the listing photo quality core.

Malformed input fails fast with InvalidImageError. Everything raised while a
single image is being analyzed inside a batch is caught by the scheduler and
recorded against that image only.
"""

from typing import Optional


class ListingQualityError(Exception):
    """Base class for all errors raised by this package."""
    pass


class InvalidImageError(ListingQualityError):
    """Pixel buffer is empty, has the wrong shape, or does not match its declared size."""
    pass


class ImageAnalysisError(ListingQualityError):
    """Unexpected failure while running the per-image analysis pipeline."""

    def __init__(self, identifier: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{identifier}: {message}")
        self.identifier = identifier
        self.cause = cause


class ResourceAcquisitionError(ListingQualityError):
    """A resource permit could not be obtained before the configured timeout."""

    def __init__(self, kind: str, timeout: Optional[float]):
        super().__init__(f"Timed out after {timeout}s waiting for a '{kind}' permit")
        self.kind = kind
        self.timeout = timeout


class BatchTooLargeError(ListingQualityError):
    """Batch holds more images than ResourceLimits.max_batch_size allows."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Batch of {size} images exceeds the limit of {limit}")
        self.size = size
        self.limit = limit


class DuplicateImageError(ListingQualityError):
    """Two jobs in one batch share a filename, so their outcomes could not be told apart."""

    def __init__(self, filenames):
        names = ", ".join(sorted(filenames))
        super().__init__(f"Batch contains duplicate filenames: {names}")
        self.filenames = sorted(filenames)


class ConfigurationError(ListingQualityError):
    """Invalid configuration value, file, or environment variable."""
    pass
