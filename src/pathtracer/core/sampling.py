"""Scalar random numbers and display quantization.

Pixel values are accumulated as a sum of linear radiance samples. Before
output each channel is averaged, gamma corrected with gamma = 2 (a square
root), clamped just below 1.0 and mapped to an 8-bit integer:

    byte = int(256 * clamp(sqrt(sum / samples), 0.0, 0.999))

The 0.999 ceiling keeps a fully saturated channel at 255 instead of
overflowing to 256.
"""

import math

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Upper clamp applied to gamma-corrected channels before scaling to bytes
MAX_CHANNEL_INTENSITY = 0.999


@ti.func
def random_double() -> ti.f32:
    """Uniform random real in [0, 1) from the calling thread's generator."""
    return ti.random(ti.f32)


@ti.func
def random_double_range(lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Uniform random real in [lo, hi)."""
    return lo + (hi - lo) * ti.random(ti.f32)


@ti.func
def clamp(x: ti.f32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    result = x
    if x < lo:
        result = lo
    if x > hi:
        result = hi
    return result


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


@ti.func
def gamma_correct(channel_sum: ti.f32, samples_per_pixel: ti.i32) -> ti.f32:
    """Average a summed channel over its samples and apply gamma 2.

    Negative or NaN averages (numerical noise) map to 0.
    """
    average = channel_sum / ti.cast(samples_per_pixel, ti.f32)
    corrected = 0.0
    if average > 0.0:
        corrected = ti.sqrt(average)
    return corrected


@ti.func
def quantize_channel(channel_sum: ti.f32, samples_per_pixel: ti.i32) -> ti.i32:
    """Convert a summed linear channel to an integer byte value in [0, 255]."""
    corrected = gamma_correct(channel_sum, samples_per_pixel)
    return ti.cast(256.0 * clamp(corrected, 0.0, MAX_CHANNEL_INTENSITY), ti.i32)


@ti.func
def quantize_color(color_sum: vec3, samples_per_pixel: ti.i32):
    """Quantize all three channels of a summed pixel color.

    Returns:
        An integer 3-vector with each channel in [0, 255].
    """
    return ti.Vector(
        [
            quantize_channel(color_sum.x, samples_per_pixel),
            quantize_channel(color_sum.y, samples_per_pixel),
            quantize_channel(color_sum.z, samples_per_pixel),
        ],
        dt=ti.i32,
    )
