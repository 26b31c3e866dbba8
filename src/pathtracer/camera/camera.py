"""Thin-lens camera model for perspective ray generation with depth of field.

The camera supports:
- Look-at positioning (look_from, look_at, view_up)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Defocus blur through a circular aperture focused at ``focus_distance``
- A shutter interval [time0, time1] for motion blur

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane sits ``focus_distance`` in front of the camera, so points at
that distance stay sharp regardless of the aperture. With ``aperture = 0``
every ray leaves from the camera origin and the model reduces to a pinhole.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     look_from=(0.0, 0.0, 0.0),
    ...     look_at=(0.0, 0.0, -1.0),
    ...     view_up=(0.0, 1.0, 0.0),
    ...     vfov=90.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampling import degrees_to_radians, random_double_range
from pathtracer.core.vec3 import random_in_unit_disk

# Type alias for 3D vectors
vec3 = tm.vec3

# Minimum |cross(view_up, w)| before the basis is considered degenerate
_PARALLEL_EPSILON = 1e-8

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens perspective camera.

    Attributes:
        look_from: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        view_up: Up direction for camera orientation (typically (0, 1, 0)).
            Must not be parallel to the view direction.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_distance: Distance from the camera to the plane in focus.
        time0: Shutter open time.
        time1: Shutter close time (>= time0).
    """

    look_from: tuple[float, float, float]
    look_at: tuple[float, float, float]
    view_up: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_distance: float = 1.0
    time0: float = 0.0
    time1: float = 0.0

    def validate(self) -> None:
        """Check the camera parameters.

        Raises:
            ValueError: If any parameter is outside its valid range or the
                view basis is degenerate.
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if self.focus_distance <= 0.0:
            raise ValueError(f"focus_distance must be positive, got {self.focus_distance}")
        if self.time1 < self.time0:
            raise ValueError(
                f"Shutter interval is reversed: time0={self.time0}, time1={self.time1}"
            )

        view = np.asarray(self.look_from, dtype=np.float64) - np.asarray(
            self.look_at, dtype=np.float64
        )
        if np.linalg.norm(view) == 0.0:
            raise ValueError("look_from and look_at must be different points")
        side = np.cross(np.asarray(self.view_up, dtype=np.float64), view / np.linalg.norm(view))
        if np.linalg.norm(side) < _PARALLEL_EPSILON:
            raise ValueError("view_up must not be parallel to the view direction")


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Image plane vectors, scaled to the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_shutter_open = ti.field(dtype=ti.f32, shape=())
_shutter_close = ti.field(dtype=ti.f32, shape=())

_camera_initialized = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w), the image plane at
    the focus distance and the lens radius, and stores them in Taichi fields.
    This must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the camera parameters are invalid.
    """
    camera.validate()

    theta = degrees_to_radians(camera.vfov)
    h = math.tan(theta / 2.0)

    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    # Build orthonormal basis using NumPy (Python-side computation)
    look_from = np.array(camera.look_from, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    view_up = np.array(camera.view_up, dtype=np.float64)

    w = look_from - look_at
    w = w / np.linalg.norm(w)

    u = np.cross(view_up, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    focus = camera.focus_distance
    horizontal = focus * viewport_width * u
    vertical = focus * viewport_height * v
    lower_left = look_from - horizontal / 2.0 - vertical / 2.0 - focus * w

    _camera_origin[None] = look_from.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0
    _shutter_open[None] = camera.time0
    _shutter_close[None] = camera.time1
    _camera_initialized[None] = 1


def is_camera_initialized() -> bool:
    return bool(_camera_initialized[None])


def reset_camera() -> None:
    """Forget the current camera; rendering will refuse to run until set up."""
    _camera_initialized[None] = 0


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge of image, s = 1: right edge
    - t = 0: bottom edge of image, t = 1: top edge

    The ray starts at a random point on the lens disk and passes through the
    matching point on the focus plane. Its time is uniform over the shutter
    interval. The direction is not normalized.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray leaving the lens toward the specified point on the image plane.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - _camera_origin[None]
        - offset
    )
    time = random_double_range(_shutter_open[None], _shutter_close[None])

    return make_ray(origin, direction, time)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, object]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (3-tuples), lens_radius, time0 and time1.
    """

    def _triple(field) -> tuple[float, float, float]:
        vec = field[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _triple(_camera_origin),
        "u": _triple(_camera_u),
        "v": _triple(_camera_v),
        "w": _triple(_camera_w),
        "horizontal": _triple(_viewport_horizontal),
        "vertical": _triple(_viewport_vertical),
        "lower_left": _triple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
        "time0": float(_shutter_open[None]),
        "time1": float(_shutter_close[None]),
    }
