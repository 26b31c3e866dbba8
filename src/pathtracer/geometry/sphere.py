"""Sphere primitive with robust ray-sphere intersection.

The ray-sphere test solves ``|O + tD - C|^2 = r^2`` in its half-b form. The
two roots are computed with the cancellation-free variant of the quadratic
formula so rays that graze the silhouette (discriminant close to zero) still
produce accurate hit distances.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Hit point error per unit of scene scale. Float32 rounding of |O - C|^2 - r^2
# grows with the radius, so large spheres need a proportionally larger offset.
SURFACE_ERROR_SCALE = 1e-6


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 otherwise.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, always facing against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived from outside the surface, 0 if from
            inside. Only valid if hit == 1.
        error_bound: Distance the computed point may lie from the true
            surface. Rays leaving the surface start this far off it.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    error_bound: ti.f32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        Tuple of (normal, front_face). Front face means the ray direction
        opposes the outward normal; for back-face hits the normal is negated.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return normal, front_face


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) with t0 <= t1, equal to
        (-h - sqrt_d) / a and (-h + sqrt_d) / a.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) never subtracts nearly equal terms
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # h and sqrt_d both ~0: tangent ray through the center plane
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Intersect a ray with a sphere.

    The quadratic coefficients use the half-b formulation:

        a = dot(D, D)
        half_b = dot(O - C, D)
        c = dot(O - C, O - C) - r^2
        discriminant = half_b^2 - a*c

    A negative discriminant is a miss. Otherwise the nearer root is accepted
    if it lies strictly inside (t_min, t_max), else the farther root, else
    the ray misses.

    Args:
        ray: The ray to test.
        sphere: The sphere to test intersection against.
        t_min: Lower bound of the accepted interval (excluded).
        t_max: Upper bound of the accepted interval (excluded).

    Returns:
        A HitRecord; check its hit field.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Taichi requires outer-scope declaration of branch results
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0
    hit_error = 0.0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(half_b, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray, t)
            outward_normal = (hit_point - sphere.center) / sphere.radius
            hit_normal, is_front_face = set_face_normal(ray.direction, outward_normal)
            hit_error = SURFACE_ERROR_SCALE * (sphere.radius + tm.length(hit_point))

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        error_bound=hit_error,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
