"""
Tests for merging validated candidates across passes.
"""

import pytest

from connections_ocr.errors import NoCandidatesFound
from connections_ocr.reconcile import (
    fallback_fragments,
    is_placeholder,
    merge_unique,
    reconcile,
    richest_text,
)

from tests.conftest import ANSWER


def test_merge_preserves_first_seen_order():
    assert merge_unique([["CAT", "DOG", "CAT", "FISH"]]) == ["CAT", "DOG", "FISH"]


def test_merge_across_passes_is_pass_then_discovery_order():
    merged = merge_unique([["DOG", "CAT"], ["FISH", "DOG"], ["BIRD"]])
    assert merged == ["DOG", "CAT", "FISH", "BIRD"]


def test_dedupe_then_pad():
    result = reconcile([["CAT", "DOG", "CAT", "FISH"]])
    assert result.tiles[:3] == ["CAT", "DOG", "FISH"]
    assert len(result.tiles) == 16
    assert result.real_count == 3


def test_sixteen_or_more_truncates_without_placeholders():
    streams = [ANSWER[:10], ANSWER[8:] + ["EXTRA", "MORE"]]

    result = reconcile(streams)

    assert result.tiles == ANSWER
    assert result.real_count == 16
    assert result.placeholder_indices == []
    assert not any(is_placeholder(t) for t in result.tiles)


def test_shortfall_is_padded_with_distinct_placeholders():
    result = reconcile([ANSWER[:5]])

    assert len(result.tiles) == 16
    assert result.tiles[:5] == ANSWER[:5]
    placeholders = result.tiles[5:]
    assert placeholders == [f"TILE {n}" for n in range(6, 17)]
    assert len(set(placeholders)) == 11
    assert result.placeholder_indices == list(range(5, 16))
    assert all(is_placeholder(t) for t in placeholders)
    assert not any(is_placeholder(t) for t in ANSWER)


def test_fallback_parse_uses_richest_raw_text():
    raw = [
        "CREDIT",
        "Credit, Villager Calling\nFirst 11:29 SHUFFLE",
    ]

    result = reconcile([["CREDIT"]], raw_texts=raw)

    assert result.used_fallback
    assert result.tiles[:4] == ["CREDIT", "VILLAGER", "CALLING", "FIRST"]
    assert result.real_count == 4


def test_fallback_not_used_when_enough():
    result = reconcile([ANSWER], raw_texts=["SOMETHING ELSE ENTIRELY"])
    assert not result.used_fallback


def test_zero_candidates_is_an_error():
    with pytest.raises(NoCandidatesFound):
        reconcile([[], []], raw_texts=["SHUFFLE 11:29 42"])


def test_fallback_fragments_strip_edge_punctuation():
    assert fallback_fragments("credit, (name)\n  line.") == ["CREDIT", "NAME", "LINE"]
    assert fallback_fragments("... --") == []


def test_richest_text_tie_goes_to_first():
    assert richest_text(["A B", None, "C D", "E"]) == "A B"
    assert richest_text([None, ""]) is None
