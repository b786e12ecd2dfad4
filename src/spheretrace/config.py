"""Render configuration and logging setup.

RenderConfig collects everything a single render needs: image size, sample
count, bounce limit, random seed, which scene to draw and how, the Taichi
backend and where the image goes. The command-line front end maps its flags
one-to-one onto these fields.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Matches the preallocated render target in core.integrator
MAX_IMAGE_SIZE = 2048

SCENE_NAMES = ("normals", "materials", "random")
SHADING_NAMES = ("path", "normals")
ARCH_NAMES = ("cpu", "gpu")
FORMAT_NAMES = ("ppm", "png")


@dataclass
class RenderConfig:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum number of scattering events per path.
        seed: Seed for Taichi's random number generator.
        scene: Name of a preset scene.
        scene_file: Optional JSON scene file; overrides scene when set.
        shading: "path" for path tracing, "normals" for normal visualization.
        arch: Taichi backend, "cpu" or "gpu".
        output: Output file, or None for a PPM stream on stdout.
        fmt: Output format; inferred from the output suffix when None.
    """

    width: int = 200
    height: int = 150
    samples: int = 10
    max_depth: int = 50
    seed: int = 0
    scene: str = "materials"
    scene_file: str | None = None
    shading: str = "path"
    arch: str = "cpu"
    output: str | None = None
    fmt: str | None = None

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def output_format(self) -> str:
        """The format the image will be written in."""
        if self.fmt is not None:
            return self.fmt
        if self.output is None:
            return "ppm"
        suffix = Path(self.output).suffix.lower().lstrip(".")
        return suffix if suffix in FORMAT_NAMES else "ppm"

    def validate(self) -> None:
        """Check every field.

        Raises:
            ValueError: On the first out-of-range or unknown value.
        """
        if not 0 < self.width <= MAX_IMAGE_SIZE:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_SIZE}], got {self.width}")
        if not 0 < self.height <= MAX_IMAGE_SIZE:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_SIZE}], got {self.height}")
        if self.samples <= 0:
            raise ValueError(f"samples must be positive, got {self.samples}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.seed < 0:
            raise ValueError(f"seed must be >= 0, got {self.seed}")
        if self.scene_file is None and self.scene not in SCENE_NAMES:
            raise ValueError(
                f"Unknown scene '{self.scene}'. Available scenes: {', '.join(SCENE_NAMES)}"
            )
        if self.shading not in SHADING_NAMES:
            raise ValueError(f"shading must be one of {SHADING_NAMES}, got '{self.shading}'")
        if self.arch not in ARCH_NAMES:
            raise ValueError(f"arch must be one of {ARCH_NAMES}, got '{self.arch}'")
        if self.fmt is not None and self.fmt not in FORMAT_NAMES:
            raise ValueError(f"fmt must be one of {FORMAT_NAMES}, got '{self.fmt}'")
        if self.output is None and self.output_format != "ppm":
            raise ValueError("Only PPM output can be written to stdout")
        if self.output is not None and self.fmt is None:
            suffix = Path(self.output).suffix.lower().lstrip(".")
            if suffix not in FORMAT_NAMES:
                raise ValueError(
                    f"Cannot infer image format from '{self.output}'; use a .ppm or .png suffix"
                )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> RenderConfig:
        """Build a config from parsed command-line arguments."""
        return cls(
            width=args.width,
            height=args.height,
            samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            scene=args.scene,
            scene_file=args.scene_file,
            shading=args.shading,
            arch=args.arch,
            output=args.output,
            fmt=args.format,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Send the package's log records to stderr.

    stdout is left alone so it can carry the PPM stream.

    Returns:
        The package logger.
    """
    logger = logging.getLogger("spheretrace")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
