"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, vector utilities and random sampling
    integrator: Iterative path tracer, sky background, sampling and quantization
    progressive: Sample-pass renderer with progress reporting

All compute-intensive operations use Taichi kernels, so every pixel is traced
in parallel on the selected backend.
"""

from .ray import (
    Ray,
    cross,
    dot,
    gamma_correct,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    sample_in_unit_sphere,
    schlick_reflectance,
    vec3,
)

# Note: integrator and progressive are NOT imported here because they declare
# Taichi fields at import time. Import them directly once Taichi is initialized:
#   from spheretrace.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "gamma_correct",
    "near_zero",
    "sample_in_unit_sphere",
]
