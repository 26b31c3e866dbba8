"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection
    moving_sphere: Sphere whose center moves over the shutter interval

All intersection routines are implemented as Taichi functions (@ti.func)
and report hits inside the open interval (t_min, t_max) only.
"""

from .moving_sphere import MovingSphere, hit_moving_sphere, moving_sphere_center
from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "set_face_normal",
    "MovingSphere",
    "moving_sphere_center",
    "hit_moving_sphere",
]
