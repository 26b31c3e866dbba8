"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    vec3: Vector helpers and random direction sampling
    ray: Ray data structure
    sampling: Scalar random numbers and 8-bit quantization
    integrator: Radiance estimation and the image rendering kernel

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import Ray, make_ray, ray_at, vec3
from .sampling import (
    clamp,
    degrees_to_radians,
    gamma_correct,
    quantize_channel,
    quantize_color,
    random_double,
    random_double_range,
)
from .vec3 import (
    cross,
    dot,
    length,
    length_squared,
    lerp,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    random_vec3_range,
    reflect,
    refract,
    unit_vector,
)

# Note: integrator is NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "lerp",
    "reflect",
    "refract",
    "near_zero",
    "random_vec3",
    "random_vec3_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_double",
    "random_double_range",
    "clamp",
    "degrees_to_radians",
    "gamma_correct",
    "quantize_channel",
    "quantize_color",
]
