"""Lambertian (diffuse) material implementation.

A Lambertian surface scatters every incoming ray. The outgoing direction is
found by picking a random point inside the unit sphere tangent to the surface
at the hit point:

    target = hit_point + normal + sample_in_unit_sphere()
    scattered_direction = target - hit_point

which approximates a cosine-weighted bounce. The attenuation is the albedo,
either a constant color or the value of a texture at the hit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, hit_point, normal)
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import (
    near_zero,
    sample_in_unit_sphere,
)
from spheretrace.materials.texture import get_texture_count, texture_value

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(
    albedo: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Sample a scattered ray direction for a Lambertian material.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        hit_point: The intersection point on the surface.
        normal: The unit surface normal at the hit point.

    Returns:
        A tuple of (scattered_direction, attenuation) where:
        - scattered_direction: The bounce direction (not normalized).
        - attenuation: The albedo.
    """
    target = hit_point + normal + sample_in_unit_sphere()
    scattered_direction = target - hit_point

    # The random offset can cancel the normal exactly; fall back to the normal
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo


# =============================================================================
# Registry
# =============================================================================

MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
# -1 means the constant albedo is used
lambertian_texture_ids = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def _store(albedo: tuple[float, float, float], texture_id: int) -> int:
    idx = int(num_lambertian_materials[None])
    if idx == MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )
    lambertian_albedos[idx] = vec3(*albedo)
    lambertian_texture_ids[idx] = texture_id
    num_lambertian_materials[None] = idx + 1
    return idx


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Register a diffuse material with a constant albedo and return its index.

    Raises:
        ValueError: If an albedo component is outside [0, 1].
        RuntimeError: If the registry is full.
    """
    if any(not 0.0 <= c <= 1.0 for c in albedo):
        raise ValueError(f"Lambertian albedo {tuple(albedo)} has components outside [0, 1]")
    return _store(albedo, -1)


def add_textured_lambertian_material(texture_id: int) -> int:
    """Register a diffuse material that reads its albedo from a texture.

    Raises:
        ValueError: If texture_id is not a registered texture.
        RuntimeError: If the registry is full.
    """
    if not 0 <= texture_id < get_texture_count():
        raise ValueError(f"Invalid texture_id: {texture_id}")
    return _store((0.0, 0.0, 0.0), texture_id)


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32, hit_point: vec3) -> vec3:
    """Albedo of a registered material at a world-space point."""
    albedo = lambertian_albedos[material_idx]
    texture_id = lambertian_texture_ids[material_idx]
    if texture_id >= 0:
        albedo = texture_value(texture_id, hit_point)
    return albedo


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, hit_point: vec3, normal: vec3):
    """scatter_lambertian() with the albedo looked up in the registry."""
    return scatter_lambertian(get_lambertian_albedo(material_idx, hit_point), hit_point, normal)
