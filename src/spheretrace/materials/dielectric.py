"""Dielectric (glass/water) material implementation.

This module implements transparent materials that both reflect and refract.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when refraction is impossible

Whether the ray is entering or leaving the medium is decided by the sign of
dot(incident, normal): a positive value means the ray travels along the
outward normal, i.e. it is inside the sphere heading out. Hollow shells built
from negative-radius spheres rely on this, since their normals point inward.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     refractive_index, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import (
    reflect,
    refract,
    schlick_reflectance,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def dielectric_interface(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Work out which side of the interface the ray arrives from.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The unit surface normal as stored in the hit record.

    Returns:
        A tuple of (outward_normal, eta_from, eta_to, cosine) where:
        - outward_normal: The normal on the incident side of the surface.
        - eta_from: Refractive index of the medium the ray is leaving.
        - eta_to: Refractive index of the medium the ray is entering.
        - cosine: Cosine term for Schlick's approximation, clamped to <= 1.
    """
    incident_dot_normal = tm.dot(incident_direction, normal)
    incident_length = tm.length(incident_direction)

    outward_normal = normal
    eta_from = 1.0
    eta_to = refractive_index
    cosine = -incident_dot_normal / incident_length

    if incident_dot_normal > 0.0:
        # Leaving the medium
        outward_normal = -normal
        eta_from = refractive_index
        eta_to = 1.0
        cosine = refractive_index * incident_dot_normal / incident_length

    cosine = tm.min(cosine, 1.0)
    return outward_normal, eta_from, eta_to, cosine


@ti.func
def scatter_dielectric(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute scattered ray direction for dielectric material.

    Reflection is chosen with probability equal to the Schlick reflectance,
    or always when refraction is impossible (total internal reflection).

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any nonzero length).
        normal: The unit surface normal as stored in the hit record.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White; clear glass absorbs nothing.
        - did_scatter: Always 1 for dielectrics.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    outward_normal, eta_from, eta_to, cosine = dielectric_interface(
        refractive_index, incident_direction, normal
    )
    reflected = reflect(incident_direction, normal)
    refracted, did_refract = refract(incident_direction, outward_normal, eta_from, eta_to)

    reflect_probability = 1.0
    if did_refract == 1:
        reflect_probability = schlick_reflectance(cosine, refractive_index)

    scattered_direction = refracted
    if ti.random(ti.f32) < reflect_probability:
        scattered_direction = reflected

    did_scatter = 1

    return scattered_direction, attenuation, did_scatter


@ti.func
def will_reflect(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if refraction is impossible for this incidence, 0 otherwise.
    """
    outward_normal, eta_from, eta_to, _cosine = dielectric_interface(
        refractive_index, incident_direction, normal
    )
    _refracted, did_refract = refract(incident_direction, outward_normal, eta_from, eta_to)
    return 1 - did_refract


@ti.func
def fresnel_reflectance(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.f32:
    """Compute the probability of reflection for a given incidence.

    Returns:
        The Schlick reflectance, or 1.0 under total internal reflection.
    """
    outward_normal, eta_from, eta_to, cosine = dielectric_interface(
        refractive_index, incident_direction, normal
    )
    _refracted, did_refract = refract(incident_direction, outward_normal, eta_from, eta_to)
    probability = 1.0
    if did_refract == 1:
        probability = schlick_reflectance(cosine, refractive_index)
    return probability


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_refractive_indices = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refractive_index: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is less than 1.0.
    """
    if refractive_index < 1.0:
        raise ValueError(
            f"Refractive index = {refractive_index} is less than 1.0. "
            "The refractive index must be >= 1.0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_refractive_indices[idx] = refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_refractive_index(material_idx: ti.i32) -> ti.f32:
    """Get the refractive index for a dielectric material by index."""
    return dielectric_refractive_indices[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Sample a scattered ray direction for a dielectric material by index.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    refractive_index = get_dielectric_refractive_index(material_idx)
    return scatter_dielectric(refractive_index, incident_direction, normal)
