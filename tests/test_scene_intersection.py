"""Unit tests for scene-level intersection.

Tests cover:
- Sphere storage (add, count, clear, validation, capacity)
- Closest-hit selection across several spheres
- Material IDs carried into the hit record
- Ties resolved by insertion order
- Empty scene misses
"""

import pytest
import taichi as ti


def _intersect(origin, direction, t_min=0.001, t_max=1e30):
    from spheretrace.scene.intersection import intersect_scene

    hit = ti.field(dtype=ti.i32, shape=())
    material = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(o: ti.math.vec3, d: ti.math.vec3, lo: ti.f32, hi: ti.f32):
        rec = intersect_scene(o, d, lo, hi)
        hit[None] = rec.hit
        material[None] = rec.material_id
        t[None] = rec.t
        normal[None] = rec.normal

    test_kernel(ti.math.vec3(*origin), ti.math.vec3(*direction), t_min, t_max)
    n = normal[None]
    return hit[None], material[None], t[None], (n[0], n[1], n[2])


class TestSphereStorage:
    def test_add_and_count(self):
        from spheretrace.scene.intersection import add_sphere, get_sphere_count, vec3

        assert add_sphere(vec3(0, 0, -1), 0.5, material_id=3) == 0
        assert add_sphere(vec3(0, -100.5, -1), 100.0) == 1
        assert get_sphere_count() == 2

    def test_clear(self):
        from spheretrace.scene.intersection import (
            add_sphere,
            clear_scene,
            get_sphere_count,
            vec3,
        )

        add_sphere(vec3(0, 0, -1), 0.5)
        clear_scene()
        assert get_sphere_count() == 0

    def test_zero_radius_is_rejected(self):
        from spheretrace.scene.intersection import add_sphere, vec3

        with pytest.raises(ValueError, match="nonzero"):
            add_sphere(vec3(0, 0, -1), 0.0)

    def test_negative_radius_is_accepted(self):
        from spheretrace.scene.intersection import add_sphere, sphere_radii, vec3

        idx = add_sphere(vec3(0, 0, -1), -0.45)
        assert sphere_radii[idx] == pytest.approx(-0.45)

    def test_capacity(self):
        from spheretrace.scene.intersection import MAX_SPHERES, add_sphere, vec3

        for i in range(MAX_SPHERES):
            add_sphere(vec3(float(i), 0, 0), 0.1)
        with pytest.raises(RuntimeError, match="Maximum"):
            add_sphere(vec3(0, 0, 0), 0.1)


class TestIntersectScene:
    def test_empty_scene_misses(self):
        hit, material, _t, _n = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 0
        assert material == -1

    def test_closest_sphere_wins(self):
        from spheretrace.scene.intersection import add_sphere, vec3

        # Far sphere inserted first
        add_sphere(vec3(0, 0, -5), 0.5, material_id=1)
        add_sphere(vec3(0, 0, -2), 0.5, material_id=2)

        hit, material, t, normal = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert material == 2
        assert t == pytest.approx(1.5, abs=1e-5)
        assert normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_ground_sphere_below_horizon(self):
        from spheretrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
        add_sphere(vec3(0, -100.5, -1), 100.0, material_id=1)

        hit, material, _t, normal = _intersect((0, 0, 0), (0, -1, -1))
        assert hit == 1
        assert material == 1
        assert normal[1] > 0.99

    def test_equal_t_goes_to_first_inserted(self):
        from spheretrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -2), 1.0, material_id=7)
        add_sphere(vec3(0, 0, -2), 1.0, material_id=8)

        hit, material, _t, _n = _intersect((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert material == 7

    def test_t_max_limits_search(self):
        from spheretrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -5), 0.5, material_id=0)
        hit, _m, _t, _n = _intersect((0, 0, 0), (0, 0, -1), t_max=4.0)
        assert hit == 0

    def test_t_min_skips_surface_at_origin(self):
        """A ray leaving a surface does not hit that surface again at t ~ 0."""
        from spheretrace.scene.intersection import add_sphere, vec3

        add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
        hit, _m, _t, _n = _intersect((0, 0, -0.5), (0, 1, 1))
        assert hit == 0
