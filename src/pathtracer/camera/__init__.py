"""Camera module for view and ray generation.

Components:
    camera: Thin-lens camera with depth of field and a shutter interval

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Sample the lens disk for defocus blur
    - Stamp each ray with a time inside the shutter interval

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .camera import (
    Camera,
    get_camera_info,
    get_ray,
    is_camera_initialized,
    reset_camera,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
    "is_camera_initialized",
    "reset_camera",
]
