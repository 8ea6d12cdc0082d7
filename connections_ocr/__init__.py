"""
Connections Tile OCR

This package contains modules for:
- Screenshot preprocessing (crop, threshold, row slicing)
- Multi-pass Tesseract recognition
- Candidate extraction, validation and row clustering
- Reconciliation of all passes into the 16 puzzle tiles
"""

from .errors import (
    ExtractionError,
    ImageDecodeError,
    ImageTooSmall,
    NoCandidatesFound,
    OCREngineUnavailable,
    RecognitionPassFailure,
)
from .config import PipelineConfig, get_preset
from .tile_extractor import ExtractionResult, TileExtractor, extract_tiles

__version__ = "1.0.0"

__all__ = [
    "ExtractionError",
    "ExtractionResult",
    "ImageDecodeError",
    "ImageTooSmall",
    "NoCandidatesFound",
    "OCREngineUnavailable",
    "PipelineConfig",
    "RecognitionPassFailure",
    "TileExtractor",
    "extract_tiles",
    "get_preset",
]
