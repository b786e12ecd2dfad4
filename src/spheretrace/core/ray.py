"""Ray data structure and vector utilities for ray tracing.

This module provides the Ray dataclass and the vector helpers the tracer is
built from: Euclidean operations, mirror reflection, Snell refraction,
Schlick reflectance, gamma correction and random sampling inside the unit
sphere. All of them are Taichi functions, callable from any kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components smaller than this are treated as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; camera rays and diffuse bounces are left unnormalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector (no square root)."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must have nonzero length; callers that can produce a zero
    vector check near_zero() first.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. The normal should be unit length; the
    incident vector keeps its length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta_from: ti.f32, eta_to: ti.f32):
    """Refract an incident vector through an interface using Snell's law.

    With uv = normalize(incident), dt = dot(uv, normal) and
    ratio = eta_from / eta_to, the refraction exists only when

        discriminant = 1 - ratio^2 * (1 - dt^2) > 0

    Otherwise the ray is totally internally reflected.

    Args:
        incident: The incoming direction vector (any nonzero length).
        normal: Unit normal on the side the ray arrives from.
        eta_from: Refractive index of the medium the ray leaves.
        eta_to: Refractive index of the medium the ray enters.

    Returns:
        A tuple of (refracted_direction, did_refract) where:
        - refracted_direction: The refracted direction, or a zero vector on
          total internal reflection.
        - did_refract: 1 if refraction is possible, 0 otherwise.
    """
    uv = normalize(incident)
    dt = tm.dot(uv, normal)
    ratio = eta_from / eta_to
    discriminant = 1.0 - ratio * ratio * (1.0 - dt * dt)

    refracted = vec3(0.0, 0.0, 0.0)
    did_refract = 0
    if discriminant > 0.0:
        refracted = ratio * (uv - normal * dt) - normal * ti.sqrt(discriminant)
        did_refract = 1

    return refracted, did_refract


@ti.func
def schlick_reflectance(cosine: ti.f32, refractive_index: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - n) / (1 + n))^2
    reflectance = r0 + (1 - r0) * (1 - cosine)^5

    At normal incidence (cosine = 1) this is exactly r0.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        refractive_index: Refractive index of the dielectric.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = (1.0 - refractive_index) / (1.0 + refractive_index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def gamma_correct(color: vec3) -> vec3:
    """Apply gamma-2 correction (per-channel square root)."""
    return vec3(ti.sqrt(color.x), ti.sqrt(color.y), ti.sqrt(color.z))


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def sample_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Draws an independent uniform radius, azimuth and polar angle and converts
    them to Cartesian coordinates. This is not uniform in volume: points
    cluster toward the center and the poles. Diffuse and fuzzy-metal
    scattering are tuned against this distribution, so it is kept as is
    rather than swapped for rejection sampling.

    Returns:
        A random point with length < 1.
    """
    radius = ti.random(ti.f32)
    azimuth = 2.0 * tm.pi * ti.random(ti.f32)
    polar = tm.pi * ti.random(ti.f32)
    sin_polar = ti.sin(polar)
    return vec3(
        radius * sin_polar * ti.cos(azimuth),
        radius * sin_polar * ti.sin(azimuth),
        radius * ti.cos(polar),
    )
