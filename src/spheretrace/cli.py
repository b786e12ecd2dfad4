"""Command-line front end.

Usage:
    spheretrace [options] > image.ppm
    spheretrace --scene random --samples 50 --output random.png
    python -m spheretrace --shading normals --scene normals

Without --output the image is written to stdout as plain-text PPM (P3);
log messages and progress go to stderr.

Exit status is 0 on success, 1 when the configuration or scene is rejected
(reported as "Error: ..." on stderr) and 2 for malformed arguments.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import TextIO

import taichi as ti

from spheretrace.config import (
    ARCH_NAMES,
    FORMAT_NAMES,
    SCENE_NAMES,
    SHADING_NAMES,
    RenderConfig,
    setup_logging,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser; defaults come from RenderConfig."""
    defaults = RenderConfig()
    parser = argparse.ArgumentParser(
        prog="spheretrace",
        description="Render a scene of spheres with a stochastic path tracer.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Image width in pixels")
    parser.add_argument(
        "--height", type=int, default=defaults.height, help="Image height in pixels"
    )
    parser.add_argument(
        "--samples", type=int, default=defaults.samples, help="Samples per pixel"
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help="Maximum number of bounces per path",
    )
    parser.add_argument(
        "--seed", type=int, default=defaults.seed, help="Random seed for reproducible renders"
    )
    parser.add_argument(
        "--scene", default=defaults.scene, choices=SCENE_NAMES, help="Preset scene to render"
    )
    parser.add_argument(
        "--scene-file",
        default=None,
        help="JSON scene file to render instead of a preset",
    )
    parser.add_argument(
        "--shading",
        default=defaults.shading,
        choices=SHADING_NAMES,
        help="Path tracing or surface-normal visualization",
    )
    parser.add_argument(
        "--arch", default=defaults.arch, choices=ARCH_NAMES, help="Taichi backend"
    )
    parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output file (.ppm or .png); PPM goes to stdout when omitted",
    )
    parser.add_argument(
        "--format",
        default=None,
        choices=FORMAT_NAMES,
        help="Output format (default: inferred from the output suffix)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=1,
        help="Samples per progress update",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet", "-q", action="store_true", help="Only log warnings and errors"
    )
    verbosity.add_argument(
        "--verbose", "-v", action="store_true", help="Log debug details"
    )
    return parser


def init_taichi(config: RenderConfig) -> None:
    """Initialize Taichi on the requested backend with the configured seed."""
    if config.arch == "gpu":
        try:
            ti.init(arch=ti.gpu, random_seed=config.seed)
            logger.info("Using GPU backend")
            return
        except RuntimeError as exc:
            logger.warning("GPU backend unavailable (%s); falling back to CPU", exc)
    ti.init(arch=ti.cpu, random_seed=config.seed)
    logger.info("Using CPU backend")


def run(
    config: RenderConfig,
    stdout: TextIO | None = None,
    batch_size: int = 1,
    show_progress: bool = False,
) -> None:
    """Render according to config; Taichi must already be initialized.

    Raises:
        ValueError: If the configuration or the scene is invalid.
    """
    # Lazy imports so that Taichi fields are created after ti.init()
    from spheretrace.camera.pinhole import setup_camera
    from spheretrace.core.integrator import SHADING_MODES
    from spheretrace.core.progressive import ProgressiveRenderer
    from spheretrace.preview.export import save_image, write_ppm
    from spheretrace.scene.presets import build_scene, load_scene_file

    config.validate()
    if batch_size <= 0:
        raise ValueError(f"batch size must be positive, got {batch_size}")

    if config.scene_file is not None:
        scene, camera = load_scene_file(config.scene_file, config.aspect_ratio)
    else:
        scene, camera = build_scene(config.scene, config.aspect_ratio, config.seed)
    setup_camera(camera)
    logger.debug("Scene has %d spheres", scene.get_sphere_count())

    renderer = ProgressiveRenderer(
        config.width,
        config.height,
        max_depth=config.max_depth,
        shading=SHADING_MODES[config.shading],
    )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        progress_pct = (current / target) * 100 if target > 0 else 0
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        print(
            f"\r  Progress: {current}/{target} samples "
            f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
            end="",
            file=sys.stderr,
            flush=True,
        )

    renderer.render(
        num_samples=config.samples,
        batch_size=batch_size,
        callback=progress_callback if show_progress else None,
    )
    if show_progress:
        print(file=sys.stderr)

    pixels = renderer.get_pixels()
    if config.output is None:
        write_ppm(pixels, stdout if stdout is not None else sys.stdout)
    else:
        save_image(pixels, config.output, config.output_format)

    logger.info("Total time: %.2fs", time.time() - start_time)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    setup_logging(level)

    config = RenderConfig.from_args(args)
    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    init_taichi(config)

    try:
        run(config, batch_size=args.batch_size, show_progress=not args.quiet)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
