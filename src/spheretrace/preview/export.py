"""Image export utilities for rendered images.

This module writes quantized 8-bit images, as returned by
integrator.get_pixels(), to streams and files.

Supported formats:
    - PPM (plain-text P3)
    - PNG (8-bit RGB via Pillow)

The P3 layout is a "P3" line, a "<width> <height>" line, a "255" line and
then one "r g b" line per pixel, row-major from the top-left corner.

Example:
    >>> from spheretrace.preview.export import save_image
    >>> from spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> renderer.render(10)
    >>> save_image(renderer.get_pixels(), "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

ImageFormat = Literal["ppm", "png"]

FORMAT_SUFFIXES: dict[str, ImageFormat] = {".ppm": "ppm", ".png": "png"}


def _check_pixels(pixels: npt.NDArray[np.uint8]) -> None:
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {pixels.shape}")


def format_ppm(pixels: npt.NDArray[np.uint8]) -> str:
    """Render an (H, W, 3) uint8 image as P3 text.

    Raises:
        ValueError: If the array does not have shape (H, W, 3).
    """
    _check_pixels(pixels)
    height, width, _ = pixels.shape

    lines = ["P3", f"{width} {height}", "255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(pixels: npt.NDArray[np.uint8], stream: TextIO) -> None:
    """Write an (H, W, 3) uint8 image to a text stream in P3 format."""
    stream.write(format_ppm(pixels))


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an (H, W, 3) uint8 image as a PNG file.

    Raises:
        ValueError: If the array does not have shape (H, W, 3).
    """
    _check_pixels(pixels)
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    pil_image.save(filepath)


def infer_format(filepath: str | Path) -> ImageFormat:
    """Pick the output format from a file suffix.

    Raises:
        ValueError: If the suffix is neither .ppm nor .png.
    """
    suffix = Path(filepath).suffix.lower()
    try:
        return FORMAT_SUFFIXES[suffix]
    except KeyError:
        raise ValueError(
            f"Cannot infer image format from '{filepath}'; use a .ppm or .png suffix"
        ) from None


def save_image(
    pixels: npt.NDArray[np.uint8],
    filepath: str | Path,
    fmt: ImageFormat | None = None,
) -> None:
    """Save an image, choosing the format from fmt or the file suffix.

    Raises:
        ValueError: If the format is unknown.
    """
    if fmt is None:
        fmt = infer_format(filepath)

    if fmt == "ppm":
        with open(filepath, "w", encoding="ascii") as stream:
            write_ppm(pixels, stream)
    elif fmt == "png":
        save_png(pixels, filepath)
    else:
        raise ValueError(f"Unknown image format: {fmt}")

    logger.info("Wrote %s image to %s", fmt.upper(), filepath)


def read_ppm(text: str) -> npt.NDArray[np.uint8]:
    """Parse P3 text back into an (H, W, 3) uint8 array.

    Raises:
        ValueError: If the text is not a well-formed P3 image with maxval 255.
    """
    tokens = text.split()
    if len(tokens) < 4 or tokens[0] != "P3":
        raise ValueError("Not a P3 image")

    width, height, maxval = int(tokens[1]), int(tokens[2]), int(tokens[3])
    if maxval != 255:
        raise ValueError(f"Unsupported maxval {maxval}")

    values = tokens[4:]
    if len(values) != width * height * 3:
        raise ValueError(
            f"Expected {width * height * 3} color values, found {len(values)}"
        )
    data = np.array(values, dtype=np.int64)
    if data.size and (data.min() < 0 or data.max() > maxval):
        raise ValueError(f"Color values must be in [0, {maxval}]")
    return data.astype(np.uint8).reshape(height, width, 3)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
