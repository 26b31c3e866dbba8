"""Unit tests for Metal (specular reflective) material.

Tests cover:
- Perfect mirror reflection when fuzz = 0
- Fuzzy reflection stays within the fuzz ball
- Scatter reported even when the fuzzed direction points into the surface
- Attenuation equals albedo
- Material registry operations and validation
"""

import math

import pytest
import taichi as ti


class TestPerfectReflection:
    """Tests for fuzz = 0 (perfect mirror)."""

    def test_perfect_reflection_normal_incidence(self):
        from pathtracer.materials.metal import scatter_metal

        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                albedo = ti.math.vec3(0.9, 0.9, 0.9)
                direction, attenuation, did_scatter = scatter_metal(
                    albedo, 0.0, ti.math.vec3(0.0, -1.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0)
                )
                result_dir[None] = direction

        test_kernel()
        d = result_dir[None]
        assert abs(d[0]) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6
        assert abs(d[2]) < 1e-6

    def test_perfect_reflection_45_degrees(self):
        from pathtracer.materials.metal import scatter_metal

        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                albedo = ti.math.vec3(0.9, 0.9, 0.9)
                # Unnormalized incident direction; the reflection is of its unit vector
                direction, attenuation, did_scatter = scatter_metal(
                    albedo, 0.0, ti.math.vec3(2.0, -2.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0)
                )
                result_dir[None] = direction

        test_kernel()
        d = result_dir[None]
        s = 1.0 / math.sqrt(2.0)
        assert abs(d[0] - s) < 1e-5
        assert abs(d[1] - s) < 1e-5
        assert abs(d[2]) < 1e-6


class TestFuzzyReflection:
    """Tests for fuzz > 0."""

    def test_fuzzy_reflection_direction_varies(self):
        from pathtracer.materials.metal import scatter_metal

        min_x = ti.field(dtype=ti.f32, shape=())
        max_x = ti.field(dtype=ti.f32, shape=())
        min_x[None] = 10.0
        max_x[None] = -10.0

        @ti.kernel
        def test_kernel():
            albedo = ti.math.vec3(0.9, 0.9, 0.9)
            for i in range(500):
                direction, attenuation, did_scatter = scatter_metal(
                    albedo, 0.5, ti.math.vec3(0.0, -1.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0)
                )
                ti.atomic_min(min_x[None], direction.x)
                ti.atomic_max(max_x[None], direction.x)

        test_kernel()
        assert max_x[None] - min_x[None] > 0.2

    def test_fuzzy_reflection_bounded_by_fuzz(self):
        """Fuzzed directions stay within ``fuzz`` of the mirror direction."""
        from pathtracer.materials.metal import scatter_metal

        max_offset = ti.field(dtype=ti.f32, shape=())
        max_offset[None] = 0.0

        @ti.kernel
        def test_kernel():
            albedo = ti.math.vec3(0.9, 0.9, 0.9)
            mirror = ti.math.vec3(0.0, 1.0, 0.0)
            for i in range(1000):
                direction, attenuation, did_scatter = scatter_metal(
                    albedo, 0.3, ti.math.vec3(0.0, -1.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0)
                )
                ti.atomic_max(max_offset[None], ti.math.length(direction - mirror))

        test_kernel()
        assert max_offset[None] < 0.3 + 1e-5

    def test_grazing_fuzz_still_scatters(self):
        """Directions pushed below the surface are still reported as scattered."""
        from pathtracer.materials.metal import scatter_metal

        below = ti.field(dtype=ti.i32, shape=())
        absorbed = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            albedo = ti.math.vec3(0.9, 0.9, 0.9)
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            incident = ti.math.vec3(1.0, -0.01, 0.0)
            for i in range(2000):
                direction, attenuation, did_scatter = scatter_metal(albedo, 1.0, incident, normal)
                if ti.math.dot(direction, normal) <= 0.0:
                    below[None] += 1
                if did_scatter == 0:
                    absorbed[None] += 1

        test_kernel()
        assert below[None] > 0
        assert absorbed[None] == 0


class TestAttenuation:
    def test_attenuation_equals_albedo(self):
        from pathtracer.materials.metal import scatter_metal

        result_attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                albedo = ti.math.vec3(0.8, 0.6, 0.2)
                direction, attenuation, did_scatter = scatter_metal(
                    albedo, 0.1, ti.math.vec3(0.0, -1.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0)
                )
                result_attenuation[None] = attenuation

        test_kernel()
        a = result_attenuation[None]
        assert abs(a[0] - 0.8) < 1e-6
        assert abs(a[1] - 0.6) < 1e-6
        assert abs(a[2] - 0.2) < 1e-6


class TestMaterialRegistry:
    """Tests for material field storage."""

    def test_add_and_get_material(self):
        from pathtracer.materials.metal import add_metal_material, get_metal_albedo, get_metal_fuzz

        idx = add_metal_material((0.7, 0.6, 0.5), fuzz=0.25)
        assert idx == 0

        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            albedo[None] = get_metal_albedo(mat_idx)
            fuzz[None] = get_metal_fuzz(mat_idx)

        test_kernel(idx)
        assert abs(albedo[None][0] - 0.7) < 1e-6
        assert abs(fuzz[None] - 0.25) < 1e-6

    def test_default_fuzz_is_zero(self):
        from pathtracer.materials.metal import add_metal_material, get_metal_fuzz

        idx = add_metal_material((0.5, 0.5, 0.5))
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            fuzz[None] = get_metal_fuzz(mat_idx)

        test_kernel(idx)
        assert fuzz[None] == 0.0

    def test_material_count(self):
        from pathtracer.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )

        assert get_metal_material_count() == 0
        add_metal_material((0.5, 0.5, 0.5))
        add_metal_material((0.5, 0.5, 0.5), fuzz=1.0)
        assert get_metal_material_count() == 2
        clear_metal_materials()
        assert get_metal_material_count() == 0

    def test_scatter_by_id(self):
        from pathtracer.materials.metal import add_metal_material, scatter_metal_by_id

        idx = add_metal_material((0.3, 0.4, 0.5), fuzz=0.0)

        result_dir = ti.Vector.field(3, dtype=ti.f32, shape=())
        result_attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            for _ in range(1):
                direction, attenuation, did_scatter = scatter_metal_by_id(
                    mat_idx, ti.math.vec3(1.0, -1.0, 0.0), ti.math.vec3(0.0, 1.0, 0.0)
                )
                result_dir[None] = direction
                result_attenuation[None] = attenuation

        test_kernel(idx)
        assert result_dir[None][1] > 0.0
        assert abs(result_attenuation[None][2] - 0.5) < 1e-6


class TestValidation:
    @pytest.mark.parametrize("albedo", [(-0.1, 0.5, 0.5), (0.5, 0.5, 1.5)])
    def test_albedo_validation(self, albedo):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="outside"):
            add_metal_material(albedo)

    @pytest.mark.parametrize("fuzz", [-0.1, 1.1])
    def test_fuzz_validation(self, fuzz):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="Fuzz"):
            add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)

    def test_fuzz_boundary_values_valid(self):
        from pathtracer.materials.metal import add_metal_material

        assert add_metal_material((0.5, 0.5, 0.5), fuzz=0.0) == 0
        assert add_metal_material((0.5, 0.5, 0.5), fuzz=1.0) == 1
