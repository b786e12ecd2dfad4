"""Stochastic sphere ray tracer built on Taichi.

This package renders scenes made of spheres by Monte Carlo path tracing, with:
- Jittered supersampling and gamma-corrected 8-bit output
- Lambertian, metal and dielectric materials (plus checkered textures)
- Explicit-viewport and field-of-view/look-at cameras
- Sample-pass accumulation with progress callbacks

Subpackages:
    core: Ray algebra, the path-tracing integrator and the progressive renderer
    geometry: Sphere primitive and closed-form intersection
    materials: Scattering models and their parameter registries
    scene: Scene aggregate, scene manager and preset scenes
    camera: Camera models with ray generation
    preview: PPM and PNG output
"""

__version__ = "0.1.0"
