"""Unit tests for scalar sampling and 8-bit quantization.

Tests cover:
- random_double and random_double_range bounds
- clamp and degrees_to_radians
- Gamma 2 correction and byte quantization, including negative input and
  saturation
"""

import math

import pytest
import taichi as ti


class TestRandomScalars:
    """Tests for scalar random numbers."""

    def test_random_double_in_unit_interval(self):
        from pathtracer.core.sampling import random_double

        min_val = ti.field(dtype=ti.f32, shape=())
        max_val = ti.field(dtype=ti.f32, shape=())
        min_val[None] = 10.0
        max_val[None] = -10.0

        @ti.kernel
        def test_kernel():
            for i in range(5000):
                x = random_double()
                ti.atomic_min(min_val[None], x)
                ti.atomic_max(max_val[None], x)

        test_kernel()
        assert min_val[None] >= 0.0
        assert max_val[None] < 1.0

    def test_random_double_range(self):
        from pathtracer.core.sampling import random_double_range

        min_val = ti.field(dtype=ti.f32, shape=())
        max_val = ti.field(dtype=ti.f32, shape=())
        min_val[None] = 10.0
        max_val[None] = -10.0

        @ti.kernel
        def test_kernel():
            for i in range(5000):
                x = random_double_range(-0.5, 0.25)
                ti.atomic_min(min_val[None], x)
                ti.atomic_max(max_val[None], x)

        test_kernel()
        assert min_val[None] >= -0.5
        assert max_val[None] < 0.25

    def test_random_double_range_degenerate_interval(self):
        """An empty interval always yields its endpoint."""
        from pathtracer.core.sampling import random_double_range

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = random_double_range(0.7, 0.7)

        test_kernel()
        assert abs(result[None] - 0.7) < 1e-6


class TestScalarHelpers:
    @pytest.mark.parametrize(
        "x, expected",
        [(-1.0, 0.0), (0.5, 0.5), (2.0, 1.0)],
    )
    def test_clamp(self, x, expected):
        from pathtracer.core.sampling import clamp

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(value: ti.f32):
            result[None] = clamp(value, 0.0, 1.0)

        test_kernel(x)
        assert abs(result[None] - expected) < 1e-6

    def test_degrees_to_radians(self):
        from pathtracer.core.sampling import degrees_to_radians

        assert degrees_to_radians(180.0) == pytest.approx(math.pi)
        assert degrees_to_radians(90.0) == pytest.approx(math.pi / 2.0)


class TestQuantization:
    """Tests for gamma correction and byte conversion."""

    @pytest.mark.parametrize(
        "channel_sum, samples, expected",
        [
            (0.0, 1, 0),
            # sqrt(0.25) = 0.5 -> 128
            (0.25, 1, 128),
            (1.0, 4, 128),
            # Saturated channels clamp to 0.999 -> 255
            (1.0, 1, 255),
            (50.0, 2, 255),
            # Negative noise maps to black
            (-0.5, 1, 0),
        ],
    )
    def test_quantize_channel(self, channel_sum, samples, expected):
        from pathtracer.core.sampling import quantize_channel

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(value: ti.f32, n: ti.i32):
            result[None] = quantize_channel(value, n)

        test_kernel(channel_sum, samples)
        assert result[None] == expected

    def test_gamma_correct_averages_then_takes_square_root(self):
        from pathtracer.core.sampling import gamma_correct

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = gamma_correct(3.6, 10)

        test_kernel()
        assert abs(result[None] - 0.6) < 1e-5

    def test_quantize_color_sky_at_horizon(self):
        """The horizon sky color (0.75, 0.85, 1.0) maps to (221, 236, 255)."""
        from pathtracer.core.sampling import quantize_color, vec3

        result = ti.Vector.field(3, dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = quantize_color(vec3(0.75, 0.85, 1.0), 1)

        test_kernel()
        assert tuple(int(c) for c in result[None]) == (221, 236, 255)
