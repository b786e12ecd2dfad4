"""Preview module for image output.

Components:
    export: PPM (P3) and PNG writers for quantized images

Example:
    >>> from spheretrace.preview import save_image
    >>> from spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> renderer.render(10)
    >>> save_image(renderer.get_pixels(), "output.png")
"""

from spheretrace.preview.export import (
    compute_rmse,
    format_ppm,
    infer_format,
    read_ppm,
    save_image,
    save_png,
    write_ppm,
)

__all__ = [
    "format_ppm",
    "write_ppm",
    "read_ppm",
    "save_png",
    "save_image",
    "infer_format",
    "compute_rmse",
]
