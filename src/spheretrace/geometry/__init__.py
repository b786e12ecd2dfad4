"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with closed-form ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) so they can be called
from the parallel render kernels. Scenes are scanned linearly; there is no
acceleration structure.

Ray-object intersection follows the pattern:
    record = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, sphere_roots

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "sphere_roots",
]
