"""Sphere storage and the closest-hit query.

Spheres live in parallel Taichi fields (center, radius, material id) and are
searched by brute force: intersect_scene() tests every sphere and keeps the
nearest hit. Hits carry an integer material id that the path tracer resolves
through the scene manager's material table.
"""

import taichi as ti
import taichi.math as tm

from spheretrace.geometry.sphere import Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Closest intersection along a ray.

    ``point``, ``normal`` and ``t`` are meaningful only when ``hit`` is 1;
    ``material_id`` is -1 on a miss. ``normal`` is (point - center) / radius,
    so it points inward for spheres with a negative radius.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its index.

    A negative radius describes the same surface with the normal flipped
    (the inner wall of a hollow glass ball).

    Raises:
        ValueError: If the radius is zero.
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be nonzero")

    idx = int(num_spheres[None])
    if idx == MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest sphere hit with t strictly inside (t_min, t_max).

    Each hit shrinks the search interval to (t_min, t). Because the interval
    is open, a later sphere at the same t cannot displace an earlier one.
    """
    result = SceneHitRecord(hit=0, t=0.0, point=vec3(0.0), normal=vec3(0.0), material_id=-1)
    nearest = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(
            ray_origin,
            ray_direction,
            Sphere(center=sphere_centers[i], radius=sphere_radii[i]),
            t_min,
            nearest,
        )
        if rec.hit == 1:
            nearest = rec.t
            result.hit = 1
            result.t = rec.t
            result.point = rec.point
            result.normal = rec.normal
            result.material_id = sphere_material_ids[i]

    return result
