"""
Recognition passes against the OCR engine.

Each pass runs the engine once on one image variant with one segmentation
mode. Passes are independent: a pass that fails is recorded and contributes
nothing, it never stops the others.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np
import pytesseract
from PIL import Image

from .candidates import (
    BoundingBox,
    RecognitionResult,
    RecognizedWord,
    WordCandidate,
    candidates_from_result,
)
from .config import PipelineConfig
from .errors import RecognitionPassFailure
from .preprocessing import PreprocessedImage, split_rows


@dataclass(frozen=True)
class RecognitionConfig:
    """Engine settings for one pass."""
    psm: int = 11
    whitelist: Optional[str] = None
    min_confidence: Optional[float] = 50.0
    language: str = "eng"
    timeout_s: float = 0

    def to_tesseract_args(self) -> str:
        args = f"--psm {self.psm}"
        if self.whitelist:
            args += f" -c tessedit_char_whitelist={self.whitelist}"
        return args


class RecognitionEngine(ABC):
    """
    Interface for text recognition engines.

    Engines return literal text and word boxes; filtering and correction
    happen downstream.
    """

    @abstractmethod
    def recognize(self, image: np.ndarray, config: RecognitionConfig) -> RecognitionResult:
        raise NotImplementedError


def _to_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_tesseract_data(data: Dict[str, list]) -> RecognitionResult:
    """
    Convert pytesseract.image_to_data dict output into a RecognitionResult.

    Only word-level rows (level 5) with text are kept. The plain text is
    rebuilt line by line so that a single engine call gives both.
    """
    words: List[RecognizedWord] = []
    lines: Dict[Tuple[int, int, int, int], List[str]] = {}

    for i, text in enumerate(data.get('text', [])):
        text = (text or '').strip()
        if not text:
            continue
        if int(data['level'][i]) != 5:
            continue

        conf = _to_float(data['conf'][i])
        if conf is not None and conf < 0:
            # -1 means tesseract did not score this row
            conf = None

        left, top = int(data['left'][i]), int(data['top'][i])
        width, height = int(data['width'][i]), int(data['height'][i])
        bbox = BoundingBox(x0=left, y0=top, x1=left + width, y1=top + height)
        words.append(RecognizedWord(text=text, confidence=conf, bbox=bbox))

        key = (int(data['page_num'][i]), int(data['block_num'][i]),
               int(data['par_num'][i]), int(data['line_num'][i]))
        lines.setdefault(key, []).append(text)

    full_text = "\n".join(" ".join(line_words) for line_words in lines.values())
    return RecognitionResult(text=full_text, words=words)


class TesseractEngine(RecognitionEngine):
    """
    Tesseract OCR through pytesseract.

    Stateless: every call starts its own tesseract process, so one instance
    can serve concurrent passes.
    """

    def recognize(self, image: np.ndarray, config: RecognitionConfig) -> RecognitionResult:
        if image.ndim == 3:
            # PIL expects RGB; our buffers are BGR
            pil_image = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        else:
            pil_image = Image.fromarray(image)

        data = pytesseract.image_to_data(
            pil_image,
            lang=config.language,
            config=config.to_tesseract_args(),
            output_type=pytesseract.Output.DICT,
            timeout=config.timeout_s,
        )
        return parse_tesseract_data(data)


@dataclass
class PassSpec:
    """One planned recognition pass."""
    label: str
    image: PreprocessedImage
    config: RecognitionConfig

    @property
    def row_index(self) -> Optional[int]:
        return self.image.row_index


@dataclass
class PassOutcome:
    """What one pass produced; `error` is set when the engine call failed."""
    spec: PassSpec
    result: Optional[RecognitionResult] = None
    candidates: List[WordCandidate] = field(default_factory=list)
    error: Optional[RecognitionPassFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def raw_text(self) -> Optional[str]:
        return self.result.text if self.result is not None else None


def _pass_config(config: PipelineConfig, psm: int) -> RecognitionConfig:
    return RecognitionConfig(
        psm=psm,
        whitelist=config.whitelist,
        min_confidence=config.min_confidence,
        language=config.language,
        timeout_s=config.timeout_s,
    )


def plan_passes(grid_binary: PreprocessedImage, config: PipelineConfig) -> List[PassSpec]:
    """
    Plan the passes over the binarized grid.

    The full grid is tried under every configured segmentation mode, then
    each row band is read as a single text line.
    """
    specs = []
    for psm in config.full_grid_psms:
        specs.append(PassSpec(
            label=f"{grid_binary.label}_psm{psm}",
            image=grid_binary,
            config=_pass_config(config, psm),
        ))

    if config.row_passes:
        for row in split_rows(grid_binary, config.row_count):
            specs.append(PassSpec(
                label=f"{row.label}_psm{config.row_psm}",
                image=row,
                config=_pass_config(config, config.row_psm),
            ))
    return specs


def plan_raw_pass(source: np.ndarray, config: PipelineConfig) -> PassSpec:
    """Last-resort pass on the unprocessed screenshot."""
    return PassSpec(
        label=f"original_psm{config.raw_psm}",
        image=PreprocessedImage(pixels=source, label="original"),
        config=_pass_config(config, config.raw_psm),
    )


def run_pass(engine: RecognitionEngine, spec: PassSpec) -> PassOutcome:
    """Run one pass, converting any engine exception into a recorded failure."""
    try:
        result = engine.recognize(spec.image.pixels, spec.config)
    except Exception as e:
        failure = RecognitionPassFailure(spec.label, e)
        failure.__cause__ = e
        return PassOutcome(spec=spec, error=failure)

    candidates = candidates_from_result(result, spec.config.min_confidence)
    return PassOutcome(spec=spec, result=result, candidates=candidates)


def run_passes(engine: RecognitionEngine, specs: Sequence[PassSpec], max_workers: int = 1,
               progress: Optional[Callable[[str], None]] = None,
               first_index: int = 1, total: Optional[int] = None) -> List[PassOutcome]:
    """
    Run a batch of passes and return their outcomes in plan order.

    With `max_workers` > 1 the passes run on a thread pool. Each worker only
    fills its own slot of the outcome list, so the merged result is the same
    as a sequential run.

    Args:
        engine: Recognition engine
        specs: Passes to run
        max_workers: Thread pool size (1 = sequential)
        progress: Optional callback receiving stage labels
        first_index: Number of the first pass, for progress labels
        total: Total pass count, for progress labels

    Returns:
        list: PassOutcome per spec, same order as `specs`
    """
    total = total if total is not None else first_index - 1 + len(specs)

    def notify(k):
        if progress is not None:
            progress(f"recognition pass {k} of {total}")

    if max_workers <= 1 or len(specs) <= 1:
        outcomes = []
        for offset, spec in enumerate(specs):
            notify(first_index + offset)
            outcomes.append(run_pass(engine, spec))
        return outcomes

    slots: List[Optional[PassOutcome]] = [None] * len(specs)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(run_pass, engine, spec): i for i, spec in enumerate(specs)}
        for done, future in enumerate(as_completed(futures)):
            slots[futures[future]] = future.result()
            notify(first_index + done)
    return [outcome for outcome in slots if outcome is not None]
