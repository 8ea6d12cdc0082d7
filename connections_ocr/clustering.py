"""
Row clustering of positioned candidates.

Sparse-text recognition returns words in an order that does not follow the
grid. When word boxes are available, the grid reading order is rebuilt by
banding candidates vertically into rows and sorting each row left to right.
"""

from typing import List, Sequence

from .candidates import WordCandidate


def _positional_split(ordered: Sequence[WordCandidate], per_row: int) -> List[List[WordCandidate]]:
    """Strict top-to-bottom split: index // per_row."""
    rows: List[List[WordCandidate]] = []
    for i, candidate in enumerate(ordered):
        row = i // per_row
        if row == len(rows):
            rows.append([])
        rows[row].append(candidate)
    return rows


def assign_rows(candidates: Sequence[WordCandidate], row_count: int = 4,
                min_row_size: int = 2, max_row_size: int = 6,
                per_row: int = 4) -> List[List[WordCandidate]]:
    """
    Group positioned candidates into grid rows.

    The span between the smallest and largest vertical centre is divided
    into `row_count` equal bands. If any band ends up with an implausible
    population, the banding is distrusted and the candidates (sorted by
    vertical centre) are split into consecutive groups of `per_row`.

    Args:
        candidates: Candidates that all carry a bounding box
        row_count: Number of grid rows
        min_row_size: Fewest members a band may have
        max_row_size: Most members a band may have
        per_row: Group size for the positional fallback

    Returns:
        list: Rows top to bottom, members in vertical order
    """
    if not candidates:
        return []

    ordered = sorted(candidates, key=lambda c: c.center_y)
    min_y = ordered[0].center_y
    max_y = ordered[-1].center_y
    band_height = (max_y - min_y) / row_count

    bands: List[List[WordCandidate]] = [[] for _ in range(row_count)]
    for candidate in ordered:
        if band_height > 0:
            band = int((candidate.center_y - min_y) / band_height)
        else:
            band = 0
        bands[min(band, row_count - 1)].append(candidate)

    plausible = all(min_row_size <= len(band) <= max_row_size for band in bands)
    if not plausible:
        return _positional_split(ordered, per_row)

    return bands


def reading_order(candidates: Sequence[WordCandidate], row_count: int = 4,
                  per_row: int = 4, min_row_size: int = 2,
                  max_row_size: int = 6) -> List[WordCandidate]:
    """
    Reorder candidates into grid reading order (row-major).

    Positioned candidates are clustered into rows, each row sorted by
    horizontal centre and capped at `per_row` entries. Candidates without a
    position cannot be placed and follow in their original order.
    """
    positioned = [c for c in candidates if c.has_position]
    unplaced = [c for c in candidates if not c.has_position]

    rows = assign_rows(positioned, row_count=row_count, min_row_size=min_row_size,
                       max_row_size=max_row_size, per_row=per_row)

    result: List[WordCandidate] = []
    for row in rows:
        result.extend(sorted(row, key=lambda c: c.center_x)[:per_row])
    result.extend(unplaced)
    return result
