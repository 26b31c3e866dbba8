"""Unit tests for moving spheres.

Tests cover:
- Center interpolation at and between the keyframes
- Extrapolation outside the keyframe interval
- Intersection evaluated at the ray's time
"""

import pytest
import taichi as ti


class TestMovingSphereCenter:
    """Tests for moving_sphere_center."""

    @pytest.mark.parametrize(
        "time, expected_x",
        [(0.0, 0.0), (0.5, 1.0), (1.0, 2.0), (2.0, 4.0)],
    )
    def test_linear_center(self, time, expected_x):
        from pathtracer.geometry.moving_sphere import MovingSphere, moving_sphere_center, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(t: ti.f32):
            sphere = MovingSphere(
                center0=vec3(0.0, 1.0, 0.0),
                center1=vec3(2.0, 1.0, 0.0),
                time0=0.0,
                time1=1.0,
                radius=0.5,
            )
            result[None] = moving_sphere_center(sphere, t)

        test_kernel(time)
        c = result[None]
        assert abs(c[0] - expected_x) < 1e-5
        assert abs(c[1] - 1.0) < 1e-6
        assert abs(c[2]) < 1e-6

    def test_keyframes_not_starting_at_zero(self):
        from pathtracer.geometry.moving_sphere import MovingSphere, moving_sphere_center, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            sphere = MovingSphere(
                center0=vec3(0.0, 0.0, 0.0),
                center1=vec3(0.0, 0.0, -4.0),
                time0=2.0,
                time1=4.0,
                radius=1.0,
            )
            result[None] = moving_sphere_center(sphere, 3.0)

        test_kernel()
        assert abs(result[None][2] + 2.0) < 1e-5


class TestMovingSphereIntersection:
    """Tests for hit_moving_sphere."""

    def _hit_at_time(self, time):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.moving_sphere import MovingSphere, hit_moving_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(ray_time: ti.f32):
            # Sphere slides from x=0 to x=4 over the unit interval
            sphere = MovingSphere(
                center0=vec3(0.0, 0.0, -5.0),
                center1=vec3(4.0, 0.0, -5.0),
                time0=0.0,
                time1=1.0,
                radius=1.0,
            )
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), ray_time)
            record = hit_moving_sphere(ray, sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t

        test_kernel(time)
        return hit[None], t_val[None]

    def test_hit_when_sphere_is_in_path(self):
        hit, t = self._hit_at_time(0.0)
        assert hit == 1
        assert abs(t - 4.0) < 1e-5

    def test_miss_after_sphere_moves_away(self):
        hit, _ = self._hit_at_time(1.0)
        assert hit == 0

    def test_normal_uses_center_at_ray_time(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.moving_sphere import MovingSphere, hit_moving_sphere, vec3

        normal = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            sphere = MovingSphere(
                center0=vec3(0.0, 0.0, -5.0),
                center1=vec3(0.0, 10.0, -5.0),
                time0=0.0,
                time1=1.0,
                radius=1.0,
            )
            # At time 0.5 the center is (0, 5, -5); aim straight at it
            ray = make_ray(vec3(0.0, 5.0, 0.0), vec3(0.0, 0.0, -1.0), 0.5)
            normal[None] = hit_moving_sphere(ray, sphere, 0.001, 1000.0).normal

        test_kernel()
        n = normal[None]
        assert abs(n[0]) < 1e-5
        assert abs(n[1]) < 1e-5
        assert abs(n[2] - 1.0) < 1e-5
