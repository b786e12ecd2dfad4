"""Sphere primitive with closed-form ray-sphere intersection.

The ray-sphere intersection is found by solving

    |origin + t * direction - center|^2 = radius^2

which expands to the quadratic a*t^2 + 2*b*t + c = 0 with

    a = dot(direction, direction)
    b = dot(oc, direction)
    c = dot(oc, oc) - radius^2
    oc = origin - center

A negative radius is allowed: the geometry is the same sphere, but the normal
(point - center) / radius points inward. Nesting a negative-radius sphere
inside a glass sphere is how thin hollow glass shells are modelled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Quadratic coefficients below this magnitude mean a degenerate ray or sphere
DEGENERATE_EPSILON = 1e-12


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normal.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The 3D intersection point. Only valid if hit == 1.
        normal: (point - center) / radius. Unit length, outward for a
            positive radius and inward for a negative one.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def sphere_roots(ray_origin: vec3, ray_direction: vec3, sphere: Sphere):
    """Solve the ray-sphere quadratic.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (nonzero).
        sphere: The sphere to intersect.

    Returns:
        A tuple of (t_near, t_far, has_roots). has_roots is 0 when the
        discriminant is not positive or the inputs are degenerate, in which
        case both roots are 0.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - a * c

    t_near = 0.0
    t_far = 0.0
    has_roots = 0
    degenerate = a < DEGENERATE_EPSILON or ti.abs(sphere.radius) < DEGENERATE_EPSILON

    if (not degenerate) and discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t_near = (-b - sqrt_d) / a
        t_far = (-b + sqrt_d) / a
        has_roots = 1

    return t_near, t_far, has_roots


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection inside the open interval (t_min, t_max).

    The nearer root is preferred; the farther root is used only when the
    nearer one falls outside the interval (e.g. the ray starts inside the
    sphere).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Lower bound of valid t (excludes self-intersection).
        t_max: Upper bound of valid t (far plane / closest hit so far).

    Returns:
        A HitRecord. Check the hit field to determine if intersection occurred.
    """
    t_near, t_far, has_roots = sphere_roots(ray_origin, ray_direction, sphere)

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if has_roots == 1:
        t = t_near
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t_far
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )
