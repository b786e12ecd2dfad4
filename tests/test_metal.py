"""Unit tests for the metal material.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzzy reflection bounds and absorption below the surface
- Registry validation and by-id dispatch
"""

import pytest
import taichi as ti


class TestScatterMetal:
    def test_mirror_reflection(self):
        from spheretrace.core.ray import vec3
        from spheretrace.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, a, s = scatter_metal(
                vec3(0.8, 0.6, 0.2), 0.0, vec3(2.0, -2.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            direction[None] = d
            albedo[None] = a
            scattered[None] = s

        test_kernel()
        d = direction[None]
        # The incoming direction is normalized before reflecting
        half = 0.5**0.5
        assert (d[0], d[1], d[2]) == pytest.approx((half, half, 0.0), abs=1e-6)
        a = albedo[None]
        assert (a[0], a[1], a[2]) == pytest.approx((0.8, 0.6, 0.2))
        assert scattered[None] == 1

    def test_fuzzy_reflection_stays_within_fuzz_ball(self):
        from spheretrace.core.ray import vec3
        from spheretrace.materials.metal import scatter_metal

        n = 5000
        distances = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            incident = vec3(0.0, -1.0, 0.0)
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(n):
                d, _a, _s = scatter_metal(vec3(1.0, 1.0, 1.0), 0.3, incident, normal)
                distances[i] = (d - vec3(0.0, 1.0, 0.0)).norm()

        test_kernel()
        assert distances.to_numpy().max() < 0.3 + 1e-5

    def test_grazing_fuzzy_reflection_is_sometimes_absorbed(self):
        """Near-tangent reflections pushed below the surface are absorbed."""
        from spheretrace.core.ray import vec3
        from spheretrace.materials.metal import scatter_metal

        n = 5000
        flags = ti.field(dtype=ti.i32, shape=n)
        along_normal = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            incident = vec3(1.0, -0.05, 0.0)
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(n):
                d, _a, s = scatter_metal(vec3(1.0, 1.0, 1.0), 1.0, incident, normal)
                flags[i] = s
                along_normal[i] = d.dot(normal)

        test_kernel()
        f = flags.to_numpy()
        dots = along_normal.to_numpy()
        assert 0 < f.sum() < n
        assert (dots[f == 1] > 0.0).all()
        assert (dots[f == 0] <= 0.0).all()


class TestMetalRegistry:
    def test_add_and_lookup(self):
        from spheretrace.materials.metal import (
            add_metal_material,
            get_metal_material_count,
            metal_albedos,
            metal_fuzzes,
        )

        idx = add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)
        assert idx == 0
        assert get_metal_material_count() == 1
        assert metal_fuzzes[idx] == pytest.approx(0.3)
        a = metal_albedos[idx]
        assert (a[0], a[1], a[2]) == pytest.approx((0.8, 0.6, 0.2))

    def test_default_fuzz_is_zero(self):
        from spheretrace.materials.metal import add_metal_material, metal_fuzzes

        idx = add_metal_material((0.5, 0.5, 0.5))
        assert metal_fuzzes[idx] == 0.0

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_rejects_out_of_range_fuzz(self, fuzz):
        from spheretrace.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="Fuzz"):
            add_metal_material((0.5, 0.5, 0.5), fuzz)

    def test_rejects_out_of_range_albedo(self):
        from spheretrace.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="albedo"):
            add_metal_material((0.5, 2.0, 0.5))

    def test_capacity(self):
        from spheretrace.materials.metal import MAX_METAL_MATERIALS, add_metal_material

        for _ in range(MAX_METAL_MATERIALS):
            add_metal_material((0.5, 0.5, 0.5))
        with pytest.raises(RuntimeError, match="Maximum"):
            add_metal_material((0.5, 0.5, 0.5))

    def test_scatter_by_id_uses_registry(self):
        from spheretrace.core.ray import vec3
        from spheretrace.materials.metal import add_metal_material, scatter_metal_by_id

        add_metal_material((0.1, 0.1, 0.1))
        idx = add_metal_material((0.9, 0.7, 0.5), fuzz=0.0)
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(material_idx: ti.i32):
            d, a, _s = scatter_metal_by_id(
                material_idx, vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0)
            )
            direction[None] = d
            albedo[None] = a

        test_kernel(idx)
        d = direction[None]
        assert (d[0], d[1], d[2]) == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert albedo[None][0] == pytest.approx(0.9)
