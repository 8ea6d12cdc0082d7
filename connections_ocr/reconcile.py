"""
Reconciliation of validated candidates across recognition passes.

The union of all passes is taken in pass order and then discovery order,
de-duplicated by exact text. Disagreements between passes about the same
grid cell are not arbitrated: whichever token was seen first wins.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .errors import NoCandidatesFound
from .validation import DEFAULT_RULESET, ValidationRuleset, is_valid_tile_word

PLACEHOLDER_TEMPLATE = "TILE {}"

EDGE_PUNCTUATION = re.compile(r'^[^A-Z0-9]+|[^A-Z0-9]+$')


@dataclass
class Reconciliation:
    """Outcome of merging every pass into the final tile list."""
    tiles: List[str]
    real_count: int
    placeholder_indices: List[int]
    used_fallback: bool


def merge_unique(streams: Iterable[Iterable[str]]) -> List[str]:
    """Concatenate token streams, keeping the first occurrence of each text."""
    merged: List[str] = []
    seen = set()
    for stream in streams:
        for token in stream:
            if token not in seen:
                seen.add(token)
                merged.append(token)
    return merged


def fallback_fragments(raw_text: str) -> List[str]:
    """
    Split raw recognition text on lines and whitespace.

    Fragments are upper-cased and stripped of leading/trailing punctuation
    so that "Credit," and "CREDIT" compare equal.
    """
    fragments = []
    for line in raw_text.splitlines():
        for piece in line.split():
            fragment = EDGE_PUNCTUATION.sub('', piece.upper())
            if fragment:
                fragments.append(fragment)
    return fragments


def richest_text(raw_texts: Sequence[Optional[str]]) -> Optional[str]:
    """Pick the raw text with the most fragments; ties go to the earlier pass."""
    best_text, best_count = None, 0
    for text in raw_texts:
        if not text:
            continue
        count = len(text.split())
        if count > best_count:
            best_text, best_count = text, count
    return best_text


def pad_with_placeholders(tiles: List[str], tile_count: int = 16) -> List[int]:
    """
    Pad `tiles` in place with synthetic labels up to `tile_count`.

    Returns:
        list: Indices that were filled with placeholders
    """
    padded = []
    while len(tiles) < tile_count:
        padded.append(len(tiles))
        tiles.append(PLACEHOLDER_TEMPLATE.format(len(tiles) + 1))
    return padded


def is_placeholder(text: str) -> bool:
    return re.fullmatch(r'TILE \d+', text) is not None


def reconcile(validated_streams: Iterable[Iterable[str]],
              raw_texts: Sequence[Optional[str]] = (),
              tile_count: int = 16,
              ruleset: ValidationRuleset = DEFAULT_RULESET) -> Reconciliation:
    """
    Merge validated candidates from every pass into exactly `tile_count` tiles.

    Steps:
    1. Union of all streams, de-duplicated, first-seen order
    2. Enough tiles: keep the first `tile_count`
    3. Too few: re-parse the richest raw text fragment by fragment
    4. Still too few: pad with placeholders (degraded success)
    5. Nothing at all: NoCandidatesFound

    Args:
        validated_streams: Per-pass validated tokens, in pass order
        raw_texts: Per-pass raw text used by the fallback parse
        tile_count: Size of the finished tile set
        ruleset: Validator configuration for fallback fragments

    Returns:
        Reconciliation
    """
    tiles = merge_unique(validated_streams)
    used_fallback = False

    if 0 < len(tiles) < tile_count:
        source_text = richest_text(raw_texts)
        if source_text:
            extra = [f for f in fallback_fragments(source_text) if is_valid_tile_word(f, ruleset)]
            before = len(tiles)
            tiles = merge_unique([tiles, extra])
            used_fallback = len(tiles) > before

    if not tiles:
        raise NoCandidatesFound()

    tiles = tiles[:tile_count]
    real_count = len(tiles)
    placeholder_indices = pad_with_placeholders(tiles, tile_count)

    return Reconciliation(
        tiles=tiles,
        real_count=real_count,
        placeholder_indices=placeholder_indices,
        used_fallback=used_fallback,
    )
