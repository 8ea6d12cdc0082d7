"""
Pipeline configuration.

The crop ratios, binarization cutoff, confidence gate and vocabulary were
tuned separately for different screenshot sources. They all live here as
fields of one PipelineConfig, and the tuned combinations are kept as presets.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from .validation import DEFAULT_RULESET, ValidationRuleset


# Tesseract page segmentation modes used by the recognition passes
PSM_AUTO = 3
PSM_UNIFORM_BLOCK = 6
PSM_SINGLE_LINE = 7
PSM_SPARSE_TEXT = 11

UPPERCASE_WHITELIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class CropRatios:
    """Grid rectangle as fractions of the screenshot height/width."""
    top: float = 0.22
    bottom: float = 0.68
    left: float = 0.02
    right: float = 0.98

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return self.top, self.bottom, self.left, self.right


@dataclass(frozen=True)
class PipelineConfig:
    """
    All tunables of one extraction pipeline.

    Attributes:
        crop: Grid crop ratios, or None to process the whole image
        threshold: Luminance cutoff for binarization (useful range 120-140)
        invert: Swap black/white after thresholding (dark-mode screenshots)
        row_count: Number of grid rows
        tile_count: Number of tiles in a finished TileSet
        full_grid_psms: Segmentation modes tried on the binarized full grid
        row_psm: Segmentation mode for the per-row passes
        raw_psm: Segmentation mode for the retry on the unprocessed image
        row_passes: Run one single-line pass per row band
        raw_retry: Retry on the original image when binarized passes fall short
        min_confidence: Word confidence gate (0-100), only where reported
        whitelist: Optional character whitelist passed to the engine
        language: Tesseract language code
        timeout_s: Per-pass engine timeout in seconds (0 disables)
        max_workers: Passes run concurrently when greater than 1
        max_width: Screenshots wider than this are downscaled first
        min_row_size: Smallest plausible row population for clustering
        max_row_size: Largest plausible row population for clustering
        ruleset: Validator configuration
    """
    crop: Optional[CropRatios] = field(default_factory=CropRatios)
    threshold: int = 120
    invert: bool = False
    row_count: int = 4
    tile_count: int = 16
    full_grid_psms: Tuple[int, ...] = (PSM_SPARSE_TEXT, PSM_UNIFORM_BLOCK)
    row_psm: int = PSM_SINGLE_LINE
    raw_psm: int = PSM_AUTO
    row_passes: bool = True
    raw_retry: bool = True
    min_confidence: float = 50.0
    whitelist: Optional[str] = None
    language: str = "eng"
    timeout_s: float = 30.0
    max_workers: int = 1
    max_width: int = 1600
    min_row_size: int = 2
    max_row_size: int = 6
    ruleset: ValidationRuleset = DEFAULT_RULESET

    @property
    def tiles_per_row(self) -> int:
        return self.tile_count // self.row_count


PRESETS: Dict[str, PipelineConfig] = {
    # Crop + threshold 120, sparse text on the grid plus one pass per row
    "default": PipelineConfig(),
    # Crop used by the in-browser version, slightly higher on the screen
    "in-app": PipelineConfig(
        crop=CropRatios(top=0.18, bottom=0.62, left=0.02, right=0.98),
        threshold=140,
    ),
    # Whole screenshot, no row slicing: first iteration of the app
    "full-image": PipelineConfig(
        crop=None,
        threshold=140,
        full_grid_psms=(PSM_AUTO,),
        row_passes=False,
    ),
}


def get_preset(name: str = "default", **overrides) -> PipelineConfig:
    """
    Look up a named preset, optionally overriding individual fields.

    Raises:
        KeyError: If the preset name is unknown
    """
    if name not in PRESETS:
        raise KeyError(f"Unknown preset '{name}' (choose from: {', '.join(sorted(PRESETS))})")
    config = PRESETS[name]
    if overrides:
        config = replace(config, **overrides)
    return config
