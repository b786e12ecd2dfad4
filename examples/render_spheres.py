#!/usr/bin/env python3
"""Render every preset scene to PNG files.

This script renders the normals, materials and random presets one after
another, each with the shading that suits it, and saves them next to each
other for comparison.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 200)
    --samples SAMPLES   Number of samples per pixel (default: 50)
    --outdir DIR        Output directory (default: renders)
    --quiet             Suppress progress output

Example:
    python -m examples.render_spheres --width 200 --height 100 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti

from spheretrace.config import RenderConfig, setup_logging

PRESET_SHADING = {
    "normals": "normals",
    "materials": "path",
    "random": "path",
}


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render every preset scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=200, help="Image height in pixels")
    parser.add_argument("--samples", type=int, default=50, help="Samples per pixel")
    parser.add_argument("--outdir", type=str, default="renders", help="Output directory")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_presets(
    width: int,
    height: int,
    num_samples: int,
    outdir: Path,
    quiet: bool = False,
) -> list[Path]:
    """Render each preset scene and return the written files."""
    from spheretrace.cli import run

    outdir.mkdir(parents=True, exist_ok=True)
    written = []
    for scene, shading in PRESET_SHADING.items():
        output = outdir / f"{scene}.png"
        config = RenderConfig(
            width=width,
            height=height,
            samples=num_samples,
            scene=scene,
            shading=shading,
            output=str(output),
        )
        run(config, batch_size=max(1, num_samples // 10), show_progress=not quiet)
        written.append(output)
    return written


def main() -> int:
    """Main entry point."""
    args = parse_args()
    setup_logging(logging.WARNING if args.quiet else logging.INFO)

    ti.init(arch=ti.cpu, random_seed=0)

    try:
        for path in render_presets(
            args.width, args.height, args.samples, Path(args.outdir), args.quiet
        ):
            if not args.quiet:
                print(f"Saved to: {path.absolute()}")
        return 0
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
