"""Sphere whose center moves linearly over the shutter interval.

The center is keyframed at ``center0`` (time ``time0``) and ``center1``
(time ``time1``) and interpolated, or extrapolated, linearly for any other
time. Intersection evaluates the center at the ray's emission time and then
runs the ordinary sphere test, which is what produces motion blur once many
camera rays with different times are averaged.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class MovingSphere:
    """A sphere translating from center0 to center1 between time0 and time1.

    Attributes:
        center0: Center at time0.
        center1: Center at time1.
        time0: First keyframe time.
        time1: Second keyframe time (must differ from time0).
        radius: The radius of the sphere (positive float).
    """

    center0: vec3
    center1: vec3
    time0: ti.f32
    time1: ti.f32
    radius: ti.f32


@ti.func
def moving_sphere_center(sphere: MovingSphere, time: ti.f32) -> vec3:
    """Center of the sphere at the given time."""
    fraction = (time - sphere.time0) / (sphere.time1 - sphere.time0)
    return sphere.center0 + fraction * (sphere.center1 - sphere.center0)


@ti.func
def hit_moving_sphere(
    ray: Ray,
    sphere: MovingSphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with a moving sphere at the ray's time."""
    snapshot = Sphere(center=moving_sphere_center(sphere, ray.time), radius=sphere.radius)
    return hit_sphere(ray, snapshot, t_min, t_max)
