"""
Error types raised by the tile extraction pipeline.

Only ImageDecodeError, ImageTooSmall, OCREngineUnavailable and
NoCandidatesFound ever leave a run. RecognitionPassFailure is recorded on
the failing pass and the run carries on with the remaining passes.
"""

from typing import List, Optional


class ExtractionError(Exception):
    """Base class for every tile extraction failure."""


class ImageDecodeError(ExtractionError, ValueError):
    """The input could not be interpreted as a raster image."""


class ImageTooSmall(ExtractionError, ValueError):
    """The image decoded but is too small to hold the puzzle grid."""


class RecognitionPassFailure(ExtractionError):
    """A single recognition pass errored or timed out."""

    def __init__(self, pass_label: str, reason: Optional[BaseException] = None):
        self.pass_label = pass_label
        self.reason = reason
        detail = f"{type(reason).__name__}: {reason}" if reason is not None else "unknown error"
        super().__init__(f"Recognition pass '{pass_label}' failed ({detail})")


class OCREngineUnavailable(ExtractionError):
    """Every configured recognition pass failed."""

    def __init__(self, failures: List[RecognitionPassFailure]):
        self.failures = list(failures)
        super().__init__(
            f"All {len(self.failures)} recognition passes failed; is tesseract installed?"
        )


class NoCandidatesFound(ExtractionError):
    """Recognition ran but no usable tile text survived validation."""

    def __init__(self, message: str = "Could not extract tiles from the image. "
                                      "Please try a clearer screenshot."):
        super().__init__(message)
