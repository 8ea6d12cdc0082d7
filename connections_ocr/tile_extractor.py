"""
Connections Tile OCR - Main Application Module
"""

import argparse
import json
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import cv2
import numpy as np

from .candidates import WordCandidate
from .clustering import reading_order
from .config import PRESETS, UPPERCASE_WHITELIST, PipelineConfig, get_preset
from .errors import ExtractionError, ImageTooSmall, OCREngineUnavailable
from .preprocessing import (
    PreprocessedImage,
    apply_threshold,
    crop_to_grid,
    load_image,
    resize_image,
    show_variants,
    split_rows,
)
from .recognition import (
    PassOutcome,
    RecognitionEngine,
    TesseractEngine,
    plan_passes,
    plan_raw_pass,
    run_passes,
)
from .reconcile import is_placeholder, merge_unique, reconcile
from .validation import is_valid_tile_word

ProgressCallback = Callable[[str], None]


@dataclass
class ExtractionResult:
    """
    The 16 tiles recovered from one screenshot.

    `tiles` always has exactly `tile_count` entries. When fewer real words
    were found the remainder are placeholders, listed in
    `placeholder_indices`, and `is_degraded` is True.
    """
    tiles: List[str]
    real_count: int
    placeholder_indices: List[int] = field(default_factory=list)
    used_fallback_parse: bool = False
    pass_labels: List[str] = field(default_factory=list)
    failed_passes: List[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.placeholder_indices)

    def rows(self, row_count: int = 4) -> List[List[str]]:
        per_row = len(self.tiles) // row_count
        return [self.tiles[r * per_row:(r + 1) * per_row] for r in range(row_count)]

    def to_dict(self) -> dict:
        return {
            'tiles': list(self.tiles),
            'real_count': self.real_count,
            'placeholder_indices': list(self.placeholder_indices),
            'degraded': self.is_degraded,
            'used_fallback_parse': self.used_fallback_parse,
            'passes': list(self.pass_labels),
            'failed_passes': list(self.failed_passes),
        }


@dataclass
class ExtractionRun:
    """Per-run working state; created by each extract_tiles call and then dropped."""
    source: np.ndarray
    progress: Optional[ProgressCallback] = None
    variants: List[PreprocessedImage] = field(default_factory=list)
    outcomes: List[PassOutcome] = field(default_factory=list)

    def notify(self, stage: str):
        if self.progress is not None:
            self.progress(stage)


class TileExtractor:
    """
    Main class for the tile extraction pipeline.

    This class encapsulates the entire pipeline for turning a puzzle
    screenshot into the 16 tile labels in grid reading order. It holds only
    configuration and the engine; all per-image state lives in an
    ExtractionRun, so one extractor can serve any number of runs.
    """

    def __init__(self, config: Optional[PipelineConfig] = None,
                 engine: Optional[RecognitionEngine] = None,
                 verbose: bool = True, save_dir: Optional[str] = None,
                 display: bool = False):
        """
        Initialize the extractor.

        Args:
            config: Pipeline configuration (default preset if None)
            engine: Recognition engine (Tesseract if None)
            verbose: Print progress while processing
            save_dir: Directory to save preprocessed variants, None to skip
            display: Show preprocessed variants with matplotlib
        """
        self.config = config if config is not None else get_preset("default")
        self.engine = engine if engine is not None else TesseractEngine()
        self.verbose = verbose
        self.save_dir = save_dir
        self.display = display

    def _print(self, message: str):
        if self.verbose:
            print(message)

    def extract_tiles(self, image, progress: Optional[ProgressCallback] = None) -> ExtractionResult:
        """
        Run the complete pipeline on one screenshot.

        Pipeline steps:
        1. Load, downscale, crop and binarize
        2. Recognition passes (full grid, rows, original image if needed)
        3. Validation and reading-order reconstruction per pass
        4. Reconciliation into exactly 16 tiles

        Args:
            image: File path, encoded bytes, numpy array or PIL image
            progress: Optional callback receiving stage labels

        Returns:
            ExtractionResult

        Raises:
            ImageDecodeError: Input is not an image
            ImageTooSmall: Image cannot hold a 4-row grid
            OCREngineUnavailable: Every recognition pass failed
            NoCandidatesFound: Nothing usable was recognized
        """
        config = self.config

        self._print(f"\n{'='*60}")
        self._print(f"Processing: {image if isinstance(image, (str, os.PathLike)) else '<image data>'}")
        self._print(f"{'='*60}")

        run = ExtractionRun(source=load_image(image), progress=progress)

        self._print("\n[1/4] Preprocessing image...")
        run.notify("preprocessing")
        binary = self._preprocess(run)

        specs = plan_passes(binary, config)
        raw_spec = plan_raw_pass(run.source, config) if config.raw_retry else None
        total = len(specs)

        self._print(f"\n[2/4] Running {len(specs)} recognition passes...")
        run.outcomes = run_passes(self.engine, specs, max_workers=config.max_workers,
                                  progress=run.progress, first_index=1, total=total)
        self._report_outcomes(run.outcomes)

        streams = [self._ordered_tokens(o) for o in run.outcomes]
        found = len(merge_unique(streams))

        if raw_spec is not None and found < config.tile_count:
            self._print(f"      Only {found} tiles found, retrying on original image...")
            retry = run_passes(self.engine, [raw_spec], progress=run.progress,
                               first_index=total + 1, total=total + 1)
            self._report_outcomes(retry)
            run.outcomes.extend(retry)
            streams.extend(self._ordered_tokens(o) for o in retry)

        failures = [o.error for o in run.outcomes if not o.ok]
        if run.outcomes and len(failures) == len(run.outcomes):
            self._print("\n      ERROR: every recognition pass failed")
            raise OCREngineUnavailable(failures)

        self._print("\n[3/4] Reconciling passes...")
        run.notify("reconciling")
        merged = reconcile(
            streams,
            raw_texts=[o.raw_text for o in run.outcomes if o.ok],
            tile_count=config.tile_count,
            ruleset=config.ruleset,
        )

        result = ExtractionResult(
            tiles=merged.tiles,
            real_count=merged.real_count,
            placeholder_indices=merged.placeholder_indices,
            used_fallback_parse=merged.used_fallback,
            pass_labels=[o.spec.label for o in run.outcomes],
            failed_passes=[o.spec.label for o in run.outcomes if not o.ok],
        )

        self._print("\n[4/4] Tiles:")
        self._print(format_tiles(result.tiles, config.row_count))
        if result.is_degraded:
            self._print(f"      WARNING: only {result.real_count} tiles recognized, "
                        f"padded to {config.tile_count}")
        self._print(f"\n{'='*60}\n")

        return result

    def _preprocess(self, run: ExtractionRun) -> PreprocessedImage:
        """Crop and binarize the source; returns the binarized grid."""
        config = self.config
        source = resize_image(run.source, max_width=config.max_width)
        run.source = source
        self._print(f"      Image size: {source.shape[1]}x{source.shape[0]}")

        if config.crop is not None:
            try:
                grid = crop_to_grid(source, config.crop)
            except ValueError as e:
                raise ImageTooSmall(str(e)) from e
            x0, y0, x1, y1 = grid.crop
            self._print(f"      Crop: y={y0}-{y1}, x={x0}-{x1}")
        else:
            grid = PreprocessedImage(pixels=source, label="full")
            self._print("      Crop: none (full image)")

        if config.row_passes and grid.height < config.row_count:
            raise ImageTooSmall(f"Grid area is {grid.width}x{grid.height}, "
                                f"too small for {config.row_count} rows")

        binary = apply_threshold(grid, cutoff=config.threshold, invert=config.invert)
        self._print(f"      Threshold: {config.threshold}{' (inverted)' if config.invert else ''}")

        run.variants = [grid, binary]
        if config.row_passes:
            run.variants.extend(split_rows(binary, config.row_count))

        if self.save_dir:
            self._save_variants(run.variants)
        if self.display:
            show_variants(run.variants)

        return binary

    def _ordered_tokens(self, outcome: PassOutcome) -> List[str]:
        """Validated tokens of one pass, in grid reading order where possible."""
        config = self.config
        valid: List[WordCandidate] = [
            c for c in outcome.candidates if is_valid_tile_word(c.text, config.ruleset)
        ]

        if outcome.spec.row_index is not None:
            # A single row: just left to right
            valid = sorted(valid, key=lambda c: c.center_x if c.has_position else float('inf'))
        elif any(c.has_position for c in valid):
            valid = reading_order(
                valid,
                row_count=config.row_count,
                per_row=config.tiles_per_row,
                min_row_size=config.min_row_size,
                max_row_size=config.max_row_size,
            )

        return [c.text for c in valid]

    def _report_outcomes(self, outcomes: List[PassOutcome]):
        for outcome in outcomes:
            if outcome.ok:
                self._print(f"      ✓ {outcome.spec.label}: {len(outcome.candidates)} candidates")
            else:
                self._print(f"      ✗ {outcome.error}")

    def _save_variants(self, variants: List[PreprocessedImage]):
        """Save preprocessed variants to disk for inspection."""
        os.makedirs(self.save_dir, exist_ok=True)
        for variant in variants:
            cv2.imwrite(os.path.join(self.save_dir, f"{variant.label}.png"), variant.pixels)
        self._print(f"      Saved {len(variants)} preprocessed images to {self.save_dir}/")


def extract_tiles(image, config: Optional[PipelineConfig] = None,
                  engine: Optional[RecognitionEngine] = None,
                  progress: Optional[ProgressCallback] = None) -> ExtractionResult:
    """Extract the 16 tiles from a screenshot with a quiet, one-off extractor."""
    extractor = TileExtractor(config=config, engine=engine, verbose=False)
    return extractor.extract_tiles(image, progress=progress)


def format_tiles(tiles: List[str], row_count: int = 4) -> str:
    """Render the tiles as a human-friendly grid."""
    per_row = max(1, len(tiles) // row_count)
    width = max((len(t) for t in tiles), default=4)
    lines = []
    for r in range(row_count):
        row = tiles[r * per_row:(r + 1) * per_row]
        lines.append("      " + " | ".join(t.ljust(width) for t in row))
    return "\n".join(lines)


def score_against_expected(tiles: List[str], expected: List[str]):
    """Compare recognized tiles with a known answer set: (found, missing)."""
    real = {t for t in tiles if not is_placeholder(t)}
    found = [e for e in expected if e in real]
    missing = [e for e in expected if e not in real]
    return found, missing


def main():
    """
    Main entry point for the tile extractor.

    Handles command-line arguments and processes images.
    """
    parser = argparse.ArgumentParser(
        description='Connections Tile OCR - extract the 16 tiles from a puzzle screenshot',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Process a single screenshot:
    python -m connections_ocr --image IMG_1029.PNG

  Use the in-app crop and save the preprocessed images:
    python -m connections_ocr --image IMG_1029.PNG --preset in-app --output output

  Check against a known answer:
    python -m connections_ocr --image IMG_1029.PNG --expected CREDIT,VILLAGER,...
        """
    )

    parser.add_argument('--image', '-i', required=True,
                        help='Path to input screenshot')
    parser.add_argument('--preset', '-p', default='default', choices=sorted(PRESETS),
                        help='Pipeline preset (default: default)')
    parser.add_argument('--threshold', '-t', type=int, default=None,
                        help='Override the binarization cutoff')
    parser.add_argument('--invert', action='store_true',
                        help='Invert binarization (dark-mode screenshots)')
    parser.add_argument('--whitelist', action='store_true',
                        help='Restrict recognition to upper-case letters')
    parser.add_argument('--workers', '-w', type=int, default=1,
                        help='Run recognition passes on this many threads (default: 1)')
    parser.add_argument('--output', '-o', default='output',
                        help='Output directory for preprocessed images (default: output)')
    parser.add_argument('--no-save', action='store_true',
                        help='Do not save preprocessed images')
    parser.add_argument('--display', action='store_true',
                        help='Show preprocessed images')
    parser.add_argument('--json', action='store_true',
                        help='Print the result as JSON only')
    parser.add_argument('--expected', default=None,
                        help='Comma-separated expected tiles to score the result against')
    parser.add_argument('--ignore', default=None,
                        help='Comma-separated extra interface words to reject (e.g. localized buttons)')

    args = parser.parse_args()

    if not os.path.exists(args.image):
        print(f"Error: Image file not found: {args.image}")
        sys.exit(1)

    overrides = {'max_workers': args.workers}
    if args.threshold is not None:
        overrides['threshold'] = args.threshold
    if args.invert:
        overrides['invert'] = True
    if args.whitelist:
        overrides['whitelist'] = UPPERCASE_WHITELIST
    if args.ignore:
        overrides['ruleset'] = PRESETS[args.preset].ruleset.with_banned(
            w.strip() for w in args.ignore.split(',') if w.strip())
    config = get_preset(args.preset, **overrides)

    extractor = TileExtractor(
        config=config,
        verbose=not args.json,
        save_dir=None if args.no_save else args.output,
        display=args.display,
    )

    try:
        result = extractor.extract_tiles(args.image)
    except ExtractionError as e:
        print(f"\nExtraction failed: {e}")
        sys.exit(1)

    score = None
    if args.expected:
        expected = [e.strip().upper() for e in args.expected.split(',') if e.strip()]
        found, missing = score_against_expected(result.tiles, expected)
        score = {'found': found, 'missing': missing, 'expected_count': len(expected)}

    if args.json:
        data = result.to_dict()
        if score is not None:
            data['score'] = score
        print(json.dumps(data, indent=2))
        return

    print(f"Recognized {result.real_count}/{config.tile_count} tiles"
          f"{' (fallback parse used)' if result.used_fallback_parse else ''}")
    if result.failed_passes:
        print(f"Failed passes: {', '.join(result.failed_passes)}")
    if score is not None:
        print(f"Found: {len(score['found'])}/{score['expected_count']} | "
              f"Missing: {', '.join(score['missing']) or '-'}")


if __name__ == '__main__':
    main()
