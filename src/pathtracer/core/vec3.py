"""Vector math and random direction sampling for the path tracer.

Points, directions and RGB colors all share the ``vec3`` type from
``taichi.math``. Arithmetic operators on ``vec3`` produce new values; the
integrator relies on ``+=`` / ``*=`` for in-place accumulation.

Every random helper draws from ``ti.random``, which keeps an independent
generator state per parallel thread. Pixel tasks can therefore sample
concurrently without sharing any mutable state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.vec3 import reflect, vec3
    >>> @ti.kernel
    ... def mirror() -> vec3:
    ...     return reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
    >>> mirror()  # (1, 1, 0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8

# Upper bound on rejection-sampling rounds; a miss has probability ~0.48 per
# round for the sphere and ~0.21 for the disk
MAX_REJECTION_ATTEMPTS = 64


# =============================================================================
# Basic Vector Operations
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared Euclidean length of ``v``."""
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Euclidean length of ``v``."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale ``v`` to unit length.

    The result is undefined (NaN components) for a zero-length input; callers
    must pass a non-degenerate vector.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component of ``v`` is within NEAR_ZERO_EPSILON of 0.

    Used to catch scatter directions that cancelled out.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def lerp(start: vec3, end: vec3, t: ti.f32) -> vec3:
    """Linear blend: ``start`` at t=0, ``end`` at t=1."""
    return (1.0 - t) * start + t * end


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror ``v`` about the unit normal ``n``: v - 2 (v . n) n."""
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Bend the unit direction ``uv`` through a surface using Snell's law.

    The refracted ray is split into a part perpendicular to ``n`` and a part
    parallel to it. The parallel part needs sqrt(1 - |perp|^2); that radicand
    is clamped at zero because rounding at grazing angles can push it
    slightly negative.

    Args:
        uv: Unit incident direction.
        n: Unit surface normal on the incident side (dot(uv, n) <= 0).
        etai_over_etat: Ratio of refractive indices, incident over transmitted.

    Returns:
        The refracted direction (unit length up to rounding).
    """
    cos_theta = ti.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    radicand = ti.max(0.0, 1.0 - length_squared(r_out_perp))
    r_out_parallel = -ti.sqrt(radicand) * n
    return r_out_perp + r_out_parallel


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3() -> vec3:
    """Vector with each component uniform in [0, 1)."""
    return vec3(ti.random(ti.f32), ti.random(ti.f32), ti.random(ti.f32))


@ti.func
def random_vec3_range(lo: ti.f32, hi: ti.f32) -> vec3:
    """Vector with each component uniform in [lo, hi)."""
    return lo + (hi - lo) * random_vec3()


@ti.func
def random_in_unit_sphere() -> vec3:
    """Uniform random point strictly inside the unit sphere.

    Candidates from the enclosing cube are rejected while their squared length
    is >= 1. Only accepted candidates are ever returned, so in the
    vanishingly unlikely case every round is rejected the origin comes back.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = random_vec3_range(-1.0, 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Random direction on the unit sphere (normalized in-sphere sample)."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Uniform random point strictly inside the unit disk in the xy-plane.

    Used to jitter ray origins across the camera lens for depth of field.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p
