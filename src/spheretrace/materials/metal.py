"""Metal: fuzzy mirror reflection.

The incoming direction is normalized and mirrored about the normal, then
pushed by a random offset of radius ``fuzz``:

    scattered = reflect(normalize(incident), normal) + fuzz * sample_in_unit_sphere()

When the offset pushes the ray below the surface it is absorbed, so rough
metals darken toward grazing angles. Attenuation is the albedo.
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import normalize, reflect, sample_in_unit_sphere

vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, incident_direction: vec3, normal: vec3):
    """Scatter off a metal surface.

    Returns:
        (direction, attenuation, did_scatter); direction is not normalized and
        did_scatter is 0 when it points into the surface.
    """
    direction = reflect(normalize(incident_direction), normal) + fuzz * sample_in_unit_sphere()
    did_scatter = 0
    if tm.dot(direction, normal) > 0.0:
        did_scatter = 1
    return direction, albedo, did_scatter


# =============================================================================
# Registry
# =============================================================================

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Register a metal and return its registry index.

    Raises:
        ValueError: If an albedo component or fuzz lies outside [0, 1].
        RuntimeError: If MAX_METAL_MATERIALS metals are already registered.
    """
    bad = [c for c in albedo if not 0.0 <= c <= 1.0]
    if bad:
        raise ValueError(f"Metal albedo {tuple(albedo)} has components outside [0, 1]")
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"Fuzz must be in [0, 1] (0 is a perfect mirror), got {fuzz}")

    idx = int(num_metal_materials[None])
    if idx == MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(*albedo)
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, incident_direction: vec3, normal: vec3):
    """scatter_metal() with parameters read from the registry."""
    return scatter_metal(
        get_metal_albedo(material_idx), get_metal_fuzz(material_idx), incident_direction, normal
    )
