"""
Pytest configuration and fixtures for the tile extraction tests.
"""

import sys
import threading
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path so we can import connections_ocr
sys.path.insert(0, str(Path(__file__).parent.parent))

from connections_ocr.candidates import BoundingBox, RecognitionResult, RecognizedWord
from connections_ocr.recognition import RecognitionEngine


ANSWER = [
    'CREDIT', 'VILLAGER', 'CALLING', 'FIRST',
    'BUSINESS', 'NAME', 'REPORT', 'NAMESAKE',
    'DECIDER', 'PREMIUM', 'CRAFT', 'ECONOMY',
    'LINE', 'CITE', 'TRADE', 'REFERENCE',
]


class FakeEngine(RecognitionEngine):
    """
    Scripted recognition engine.

    `responder(image, config)` returns a RecognitionResult, a plain string
    (text-only output) or an exception instance to raise.
    """

    def __init__(self, responder):
        self.responder = responder
        self.calls = []
        self._lock = threading.Lock()

    def recognize(self, image, config):
        with self._lock:
            self.calls.append((config.psm, image.shape))
        response = self.responder(image, config)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return RecognitionResult(text=response)
        return response

    def psms_called(self):
        return [psm for psm, _ in self.calls]


def make_grid_words(tiles, cell_w=200, cell_h=80, origin=(20, 30), conf=90.0, order=None):
    """
    Lay out tiles as positioned words on a 4-column grid.

    Args:
        tiles: Tile texts in row-major order
        order: Optional list of indices giving the reporting order

    Returns:
        list: RecognizedWord objects in reporting order
    """
    words = []
    for i, text in enumerate(tiles):
        row, col = divmod(i, 4)
        x0 = origin[0] + col * cell_w
        y0 = origin[1] + row * cell_h
        words.append(RecognizedWord(
            text=text,
            confidence=conf,
            bbox=BoundingBox(x0=x0, y0=y0, x1=x0 + cell_w * 0.6, y1=y0 + 30),
        ))
    if order is not None:
        words = [words[i] for i in order]
    return words


def column_major(n=16):
    """Reporting order that walks the grid column by column."""
    return [r * 4 + c for c in range(4) for r in range(n // 4)]


@pytest.fixture
def answer():
    return list(ANSWER)


@pytest.fixture
def fake_engine_factory():
    """Fixture that provides a factory for scripted engines."""
    def factory(responder):
        return FakeEngine(responder)
    return factory


@pytest.fixture
def screenshot():
    """A synthetic 'screenshot': light background with dark blocks, 600x1200 BGR."""
    image = np.full((1200, 600, 3), 235, dtype=np.uint8)
    image[300:700, 40:560] = (30, 30, 30)
    return image


@pytest.fixture
def striped_image():
    """
    400x200 BGR image of four 100px bands; band k has (k+1)*10 white columns.

    Row slices of this image can be told apart by their white pixel count.
    """
    image = np.zeros((400, 200, 3), dtype=np.uint8)
    for k in range(4):
        image[k * 100:(k + 1) * 100, :(k + 1) * 10] = 255
    return image
