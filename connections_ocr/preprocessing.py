"""Image preprocessing utilities for Connections grid extraction."""


import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .config import CropRatios
from .errors import ImageDecodeError


@dataclass
class PreprocessedImage:
    """
    An image variant derived from the source screenshot.

    Attributes:
        pixels: Image buffer (BGR or single-channel uint8)
        label: Short name used in pass labels and saved files
        crop: (x0, y0, x1, y1) of the source region, None if uncropped
        threshold: Luminance cutoff used, None if not binarized
        inverted: Whether the binarization was inverted
        row_index: Grid row this band covers, None for full-grid variants
    """
    pixels: np.ndarray
    label: str
    crop: Optional[Tuple[int, int, int, int]] = None
    threshold: Optional[int] = None
    inverted: bool = False
    row_index: Optional[int] = None

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]


def load_image(image_input) -> np.ndarray:
    """
    Load a screenshot into a BGR array.

    Args:
        image_input: File path, encoded image bytes, numpy array or PIL image

    Returns:
        np.ndarray: BGR uint8 image

    Raises:
        ImageDecodeError: If the input cannot be interpreted as a raster image
    """
    if isinstance(image_input, (str, os.PathLike)):
        image = cv2.imread(os.fspath(image_input))
        if image is None:
            raise ImageDecodeError(f"Could not read {os.fspath(image_input)}")
        return image

    if isinstance(image_input, (bytes, bytearray)):
        buffer = np.frombuffer(bytes(image_input), dtype=np.uint8)
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
        if image is None:
            raise ImageDecodeError("Could not decode image bytes")
        return image

    if isinstance(image_input, Image.Image):
        rgb = np.array(image_input.convert("RGB"))
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)

    if isinstance(image_input, np.ndarray):
        if image_input.size == 0 or image_input.ndim not in (2, 3):
            raise ImageDecodeError(f"Unsupported image array shape {image_input.shape}")
        image = image_input
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        if image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        elif image.ndim == 3 and image.shape[2] != 3:
            raise ImageDecodeError(f"Unsupported channel count {image.shape[2]}")
        return image.copy()

    raise ImageDecodeError(f"Unsupported image input type: {type(image_input).__name__}")


def crop_to_grid(image: np.ndarray, crop: CropRatios = CropRatios()) -> PreprocessedImage:
    """
    Crop a screenshot to the area where the puzzle grid sits.

    The ratios are proportional offsets of the image dimensions, tuned for
    phone screenshots of the game.

    Args:
        image: Source screenshot
        crop: Fractions (top, bottom, left, right) of height/width

    Returns:
        PreprocessedImage: Cropped copy tagged with its pixel rectangle
    """
    h, w = image.shape[:2]
    start_y = int(np.floor(h * crop.top))
    end_y = int(np.floor(h * crop.bottom))
    start_x = int(np.floor(w * crop.left))
    end_x = int(np.floor(w * crop.right))

    if end_y <= start_y or end_x <= start_x:
        raise ValueError(f"Crop {crop.as_tuple()} selects an empty region of a {w}x{h} image")

    cropped = image[start_y:end_y, start_x:end_x].copy()
    return PreprocessedImage(pixels=cropped, label="grid", crop=(start_x, start_y, end_x, end_y))


def luminance(image: np.ndarray) -> np.ndarray:
    """Per-pixel luminance 0.299 R + 0.587 G + 0.114 B (BGR input)."""
    if image.ndim == 2:
        return image.astype(np.float64)
    b = image[:, :, 0].astype(np.float64)
    g = image[:, :, 1].astype(np.float64)
    r = image[:, :, 2].astype(np.float64)
    return 0.299 * r + 0.587 * g + 0.114 * b


def apply_threshold(image, cutoff: int = 120, invert: bool = False) -> PreprocessedImage:
    """
    Binarize an image by luminance.

    Pixels brighter than `cutoff` become white (255), everything else black.
    With `invert` the two are swapped, which helps on dark-mode screenshots.

    Args:
        image: np.ndarray or PreprocessedImage
        cutoff: Luminance threshold
        invert: Swap black and white

    Returns:
        PreprocessedImage: Single-channel binary image
    """
    source = image if isinstance(image, PreprocessedImage) else None
    pixels = source.pixels if source is not None else image

    is_light = luminance(pixels) > cutoff
    if invert:
        is_light = ~is_light

    binary = np.where(is_light, 255, 0).astype(np.uint8)

    return PreprocessedImage(
        pixels=binary,
        label=f"{source.label if source else 'image'}_t{cutoff}{'_inv' if invert else ''}",
        crop=source.crop if source else None,
        threshold=cutoff,
        inverted=invert,
        row_index=source.row_index if source else None,
    )


def split_rows(image, row_count: int = 4) -> List[PreprocessedImage]:
    """
    Partition an image into `row_count` equal-height horizontal bands.

    Returns:
        list: One PreprocessedImage per band, top to bottom
    """
    if row_count < 1:
        raise ValueError("row_count must be at least 1")

    source = image if isinstance(image, PreprocessedImage) else None
    pixels = source.pixels if source is not None else image
    h = pixels.shape[0]
    if h < row_count:
        raise ValueError(f"Cannot split an image of height {h} into {row_count} rows")

    base_label = source.label if source else "image"
    rows = []
    for k in range(row_count):
        y1 = (k * h) // row_count
        y2 = ((k + 1) * h) // row_count
        rows.append(PreprocessedImage(
            pixels=pixels[y1:y2].copy(),
            label=f"{base_label}_row{k + 1}",
            crop=source.crop if source else None,
            threshold=source.threshold if source else None,
            inverted=source.inverted if source else False,
            row_index=k,
        ))
    return rows


def resize_image(image, max_width=1600):
    """Resize while maintaining aspect ratio."""
    height, width = image.shape[:2]
    if width > max_width:
        ratio = max_width / width
        new_height = int(height * ratio)
        return cv2.resize(image, (max_width, new_height), interpolation=cv2.INTER_AREA)
    return image


def show_variants(variants: List[PreprocessedImage]) -> None:
    """Display preprocessed variants side by side (debugging aid)."""
    import matplotlib.pyplot as plt

    if not variants:
        return

    fig, axes = plt.subplots(len(variants), 1, figsize=(8, 2.5 * len(variants)))
    axes = np.atleast_1d(axes).ravel()

    for ax, variant in zip(axes, variants):
        if variant.pixels.ndim == 2:
            ax.imshow(variant.pixels, cmap='gray')
        else:
            ax.imshow(cv2.cvtColor(variant.pixels, cv2.COLOR_BGR2RGB))
        ax.set_title(variant.label)
        ax.axis('off')

    plt.tight_layout()
    plt.show()
