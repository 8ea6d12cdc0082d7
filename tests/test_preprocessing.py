"""
Tests for screenshot preprocessing: loading, cropping, thresholding, row slicing.
"""

import cv2
import numpy as np
import pytest
from PIL import Image

from connections_ocr.config import CropRatios
from connections_ocr.errors import ImageDecodeError
from connections_ocr.preprocessing import (
    PreprocessedImage,
    apply_threshold,
    crop_to_grid,
    load_image,
    luminance,
    resize_image,
    split_rows,
)


def test_threshold_is_exact():
    image = np.zeros((1, 2, 3), dtype=np.uint8)
    image[0, 0] = (200, 200, 200)
    image[0, 1] = (10, 10, 10)

    binary = apply_threshold(image, cutoff=120)

    assert binary.pixels.shape == (1, 2)
    assert binary.pixels[0, 0] == 255
    assert binary.pixels[0, 1] == 0
    assert binary.threshold == 120


def test_threshold_uses_weighted_luminance():
    # Pure green (BGR) is bright, pure blue is dark
    image = np.zeros((1, 2, 3), dtype=np.uint8)
    image[0, 0] = (0, 255, 0)
    image[0, 1] = (255, 0, 0)

    assert luminance(image)[0, 0] == pytest.approx(0.587 * 255)
    binary = apply_threshold(image, cutoff=120)
    assert binary.pixels.tolist() == [[255, 0]]


def test_threshold_boundary_is_strict():
    image = np.full((1, 1), 120, dtype=np.uint8)
    assert apply_threshold(image, cutoff=120).pixels[0, 0] == 0
    assert apply_threshold(image, cutoff=119).pixels[0, 0] == 255


def test_threshold_invert():
    image = np.zeros((1, 2, 3), dtype=np.uint8)
    image[0, 0] = (200, 200, 200)

    binary = apply_threshold(image, cutoff=120, invert=True)

    assert binary.pixels.tolist() == [[0, 255]]
    assert binary.inverted
    assert binary.label.endswith("_inv")


def test_threshold_keeps_crop_tag():
    grid = PreprocessedImage(pixels=np.zeros((4, 4, 3), dtype=np.uint8), label="grid", crop=(1, 2, 5, 6))
    binary = apply_threshold(grid, cutoff=130)
    assert binary.crop == (1, 2, 5, 6)
    assert binary.label == "grid_t130"


def test_crop_to_grid_uses_proportional_offsets():
    image = np.zeros((1000, 500, 3), dtype=np.uint8)

    grid = crop_to_grid(image, CropRatios(top=0.22, bottom=0.68, left=0.02, right=0.98))

    assert grid.crop == (10, 220, 490, 680)
    assert grid.pixels.shape == (460, 480, 3)


def test_crop_does_not_alias_source():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    grid = crop_to_grid(image)
    grid.pixels[:] = 255
    assert image.max() == 0


def test_crop_rejects_empty_region():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        crop_to_grid(image, CropRatios(top=0.5, bottom=0.5))


def test_split_rows_equal_bands():
    image = np.zeros((403, 5), dtype=np.uint8)
    image[:100] = 7

    rows = split_rows(image, row_count=4)

    assert [r.row_index for r in rows] == [0, 1, 2, 3]
    assert sum(r.height for r in rows) == 403
    assert max(r.height for r in rows) - min(r.height for r in rows) <= 1
    assert np.array_equal(rows[0].pixels, image[:100])


def test_split_rows_keeps_threshold_tag():
    binary = apply_threshold(np.full((40, 10), 200, dtype=np.uint8), cutoff=120)
    rows = split_rows(binary, 4)
    assert all(r.threshold == 120 for r in rows)
    assert rows[2].label == f"{binary.label}_row3"


def test_split_rows_rejects_tiny_image():
    with pytest.raises(ValueError):
        split_rows(np.zeros((3, 10), dtype=np.uint8), 4)


def test_load_image_from_encoded_bytes():
    image = np.zeros((10, 20, 3), dtype=np.uint8)
    image[:, :, 2] = 255
    ok, encoded = cv2.imencode(".png", image)
    assert ok

    loaded = load_image(encoded.tobytes())

    assert loaded.shape == (10, 20, 3)
    assert np.array_equal(loaded, image)


def test_load_image_from_pil_converts_to_bgr():
    pil_image = Image.new("RGB", (4, 3), (255, 0, 0))
    loaded = load_image(pil_image)
    assert loaded.shape == (3, 4, 3)
    assert loaded[0, 0].tolist() == [0, 0, 255]


def test_load_image_copies_arrays():
    image = np.zeros((5, 5, 3), dtype=np.uint8)
    loaded = load_image(image)
    loaded[:] = 1
    assert image.max() == 0


@pytest.mark.parametrize("bad_input", [
    b"definitely not an image",
    b"",
    np.zeros((0, 0), dtype=np.uint8),
    12345,
])
def test_load_image_rejects_undecodable_input(bad_input):
    with pytest.raises(ImageDecodeError):
        load_image(bad_input)


def test_load_image_missing_file(tmp_path):
    with pytest.raises(ImageDecodeError):
        load_image(tmp_path / "missing.png")


def test_image_decode_error_is_value_error():
    assert issubclass(ImageDecodeError, ValueError)


def test_resize_image_only_shrinks():
    wide = np.zeros((100, 400, 3), dtype=np.uint8)
    assert resize_image(wide, max_width=200).shape == (50, 200, 3)
    assert resize_image(wide, max_width=800) is wide
