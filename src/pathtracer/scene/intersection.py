"""Scene-level primitive storage and closest-hit queries.

Spheres and moving spheres are stored in Taichi fields using a
structure-of-arrays layout. Each primitive carries the unified material ID of
the material it references; materials live in their own registries and may
be shared by any number of primitives.

``intersect_scene`` scans every primitive linearly. Each accepted hit
becomes the new upper bound of the search interval, so the closest hit
wins without any spatial acceleration structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray
from pathtracer.geometry.moving_sphere import MovingSphere, hit_moving_sphere
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any primitive, 0 otherwise.
        t: Ray parameter of the closest intersection.
        point: The closest intersection point.
        normal: Unit surface normal facing against the ray.
        front_face: 1 if the ray hit the outside of the surface.
        error_bound: Distance the point may lie from the true surface.
        material_id: Unified material ID of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    error_bound: ti.f32
    material_id: ti.i32


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_MOVING_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Moving sphere storage: two keyframed centers per sphere
moving_sphere_centers0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MOVING_SPHERES)
moving_sphere_centers1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MOVING_SPHERES)
moving_sphere_times0 = ti.field(dtype=ti.f32, shape=MAX_MOVING_SPHERES)
moving_sphere_times1 = ti.field(dtype=ti.f32, shape=MAX_MOVING_SPHERES)
moving_sphere_radii = ti.field(dtype=ti.f32, shape=MAX_MOVING_SPHERES)
moving_sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_MOVING_SPHERES)
num_moving_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all primitives from the scene.

    Only the counts are reset; stale field data is overwritten by later adds.
    """
    num_spheres[None] = 0
    num_moving_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Validation is the caller's job.
        material_id: The unified material ID of the sphere's material.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def add_moving_sphere(
    center0: vec3,
    center1: vec3,
    time0: float,
    time1: float,
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a moving sphere to the scene.

    Returns:
        The index of the added moving sphere.

    Raises:
        RuntimeError: If the maximum number of moving spheres is exceeded.
    """
    idx = num_moving_spheres[None]
    if idx >= MAX_MOVING_SPHERES:
        raise RuntimeError(f"Maximum number of moving spheres ({MAX_MOVING_SPHERES}) exceeded")
    moving_sphere_centers0[idx] = center0
    moving_sphere_centers1[idx] = center1
    moving_sphere_times0[idx] = time0
    moving_sphere_times1[idx] = time1
    moving_sphere_radii[idx] = radius
    moving_sphere_material_ids[idx] = material_id
    num_moving_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_moving_sphere_count() -> int:
    """Get the number of moving spheres in the scene."""
    return int(num_moving_spheres[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        error_bound=rec.error_bound,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        error_bound=0.0,
        material_id=-1,
    )


@ti.func
def _load_moving_sphere(i: ti.i32) -> MovingSphere:
    return MovingSphere(
        center0=moving_sphere_centers0[i],
        center1=moving_sphere_centers1[i],
        time0=moving_sphere_times0[i],
        time1=moving_sphere_times1[i],
        radius=moving_sphere_radii[i],
    )


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> SceneHitRecord:
    """Find the closest primitive hit by the ray within (t_min, t_max).

    Args:
        ray: The ray to trace.
        t_min: Lower bound of the accepted interval (excluded).
        t_max: Upper bound of the accepted interval (excluded).

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    for i in range(num_moving_spheres[None]):
        rec = hit_moving_sphere(ray, _load_moving_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, moving_sphere_material_ids[i])

    return result


@ti.func
def intersect_scene_any(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> ti.i32:
    """Return 1 if the ray hits any primitive within (t_min, t_max).

    Stops testing once a hit is found; useful for visibility queries.
    """
    hit_any = 0

    for i in range(num_spheres[None]):
        if hit_any == 0:
            sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
            rec = hit_sphere(ray, sphere, t_min, t_max)
            if rec.hit == 1:
                hit_any = 1

    for i in range(num_moving_spheres[None]):
        if hit_any == 0:
            rec = hit_moving_sphere(ray, _load_moving_sphere(i), t_min, t_max)
            if rec.hit == 1:
                hit_any = 1

    return hit_any


@ti.func
def spawn_ray(rec: SceneHitRecord, direction: vec3, time: ti.f32) -> Ray:
    """Start a ray at a hit point, pushed off the surface toward ``direction``.

    The origin moves ``rec.error_bound`` along the normal, to the side the
    new ray travels into, so the ray cannot hit the surface it leaves.
    """
    offset = rec.error_bound * rec.normal
    if tm.dot(direction, rec.normal) < 0.0:
        offset = -offset
    return make_ray(rec.point + offset, direction, time)
