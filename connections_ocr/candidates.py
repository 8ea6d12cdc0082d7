"""
Candidate extraction from raw recognition output.

A pass either reports plain text only, or per-word text with a bounding box
and a confidence. Both are turned into WordCandidate tokens here; only the
word-level form carries a position for row clustering.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

WORD_PATTERN = re.compile(r'[A-Z]{2,}')


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixel coordinates of the recognized image."""
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def center_x(self) -> float:
        return (self.x0 + self.x1) / 2.0

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2.0


@dataclass(frozen=True)
class RecognizedWord:
    """One word as reported by the recognition engine."""
    text: str
    confidence: Optional[float]
    bbox: BoundingBox


@dataclass(frozen=True)
class RecognitionResult:
    """Raw output of one engine call: full text plus optional word data."""
    text: str
    words: Optional[List[RecognizedWord]] = None


@dataclass(frozen=True)
class WordCandidate:
    """A token proposed by a pass, before validation."""
    text: str
    confidence: Optional[float] = None
    bbox: Optional[BoundingBox] = None

    @property
    def has_position(self) -> bool:
        return self.bbox is not None

    @property
    def center_x(self) -> Optional[float]:
        return self.bbox.center_x if self.bbox is not None else None

    @property
    def center_y(self) -> Optional[float]:
        return self.bbox.center_y if self.bbox is not None else None


def extract_words_from_text(text: str) -> List[str]:
    """Maximal runs of two or more A-Z letters after upper-casing."""
    if not text:
        return []
    return WORD_PATTERN.findall(text.upper())


def candidates_from_text(text: str) -> List[WordCandidate]:
    return [WordCandidate(text=word) for word in extract_words_from_text(text)]


def candidates_from_words(words: Iterable[RecognizedWord],
                          min_confidence: Optional[float] = None) -> List[WordCandidate]:
    """
    Build positioned candidates from word-level engine output.

    Words below `min_confidence` are dropped, but only when the engine
    actually reported a confidence for them. A word such as "CREDIT," or
    "FIRST-" yields the letter runs it contains, all sharing its box.

    Args:
        words: Words reported by the engine
        min_confidence: Confidence gate on a 0-100 scale, None to disable

    Returns:
        list: WordCandidate tokens in engine order
    """
    candidates = []
    for word in words:
        if (min_confidence is not None and word.confidence is not None
                and word.confidence < min_confidence):
            continue
        for token in extract_words_from_text(word.text):
            candidates.append(WordCandidate(text=token, confidence=word.confidence, bbox=word.bbox))
    return candidates


def candidates_from_result(result: RecognitionResult,
                           min_confidence: Optional[float] = None) -> List[WordCandidate]:
    """Word-level extraction when positions are available, text-level otherwise."""
    if result.words is not None:
        return candidates_from_words(result.words, min_confidence)
    return candidates_from_text(result.text)
