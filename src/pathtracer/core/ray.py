"""Ray data structure.

A ray is the parametric line ``origin + t * direction`` tagged with the
moment it was emitted. The time coordinate drives motion blur: moving
spheres evaluate their center at ``ray.time``. Rays produced by scattering
inherit the time of the ray that spawned them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.ray import make_ray, ray_at, vec3
    >>> @ti.kernel
    ... def point() -> vec3:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0)
    ...     return ray_at(ray, 5.0)  # (0, 0, -5)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin, a direction and an emission time.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; consumers normalize where they need to.
        time: Emission time in the camera's shutter interval, 0 when motion
            blur is unused.
    """

    origin: vec3
    direction: vec3
    time: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, time: ti.f32) -> Ray:
    """Create a ray inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction, time=time)
