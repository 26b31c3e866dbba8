"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernel: it traces camera rays through
the scene, bounces them off surfaces according to their materials and
accumulates the sky light that eventually reaches each path.

The recursive radiance estimate

    color(ray, depth) = 0                                  if depth <= 0
                      = attenuation * color(scattered, depth - 1)  on a hit
                      = background(ray.direction)          on a miss

is evaluated iteratively by carrying the product of attenuations along the
path. Every path ends on a miss, an absorption or an exhausted depth budget.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Vertical white-to-blue sky gradient as the only light source
    - Jittered multi-sample anti-aliasing
    - Gamma 2 quantization to 8-bit RGB

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import render_image
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> pixels = render_image(camera, scene, 400, 225, samples_per_pixel=100)
    >>> pixels.shape
    (225, 400, 3)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import Camera, get_ray, is_camera_initialized, setup_camera
from pathtracer.core.ray import Ray, make_ray
from pathtracer.core.sampling import quantize_color, random_double
from pathtracer.core.vec3 import lerp, unit_vector
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import SceneHitRecord, intersect_scene, spawn_ray
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

if TYPE_CHECKING:
    from pathtracer.scene.manager import SceneManager

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default path length budget
MAX_DEPTH = 50

# Accepted intersection interval. Scattered rays also start off the surface
# (see spawn_ray), T_MIN covers what that offset misses on small spheres
T_MIN = 0.001
T_MAX = float("inf")

# Sky gradient endpoints: horizon/downward rays see white, upward rays blue
WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Quantized output, indexed [row, col] with row 0 at the top of the image
_pixel_buffer = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Mean linear radiance per pixel (before gamma), same layout
_radiance_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))


@dataclass
class RenderSettings:
    """Image size and sampling parameters for a render.

    Attributes:
        image_width: Output width in pixels.
        image_height: Output height in pixels.
        samples_per_pixel: Jittered camera rays averaged per pixel.
        max_depth: Maximum number of bounces per path.
    """

    image_width: int
    image_height: int
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH

    @classmethod
    def from_aspect_ratio(
        cls,
        image_width: int,
        aspect_ratio: float,
        samples_per_pixel: int = 100,
        max_depth: int = MAX_DEPTH,
    ) -> "RenderSettings":
        """Derive the image height from a width and an aspect ratio."""
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        image_height = max(1, int(image_width / aspect_ratio))
        return cls(image_width, image_height, samples_per_pixel, max_depth)

    def validate(self) -> None:
        """Check the settings against the render target limits.

        Raises:
            ValueError: If a dimension, the sample count or the depth is out
                of range.
        """
        if self.image_width < 1 or self.image_height < 1:
            raise ValueError(
                f"Image dimensions must be at least 1x1, got "
                f"{self.image_width}x{self.image_height}"
            )
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed maximum "
                f"supported ({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be >= 1, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter(material_id: ti.i32, ray_in: Ray, rec: SceneHitRecord):
    """Dispatch to the appropriate material scattering function.

    The scattered ray starts at ``rec.point`` and keeps ``ray_in.time``; only
    its direction depends on the material.

    Args:
        material_id: The unified material ID.
        ray_in: The incoming ray.
        rec: The hit record for the surface being shaded.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 if the ray was absorbed. Unknown material IDs absorb.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, rec.normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, ray_in.direction, rec.normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, ray_in.direction, rec.normal, rec.front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen by a ray that escapes the scene."""
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return lerp(WHITE, SKY_BLUE, t)


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Remaining bounce budget. A budget of 0 yields black
            without testing the scene.

    Returns:
        The estimated radiance (RGB).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray.origin
    direction = ray.direction
    time = ray.time

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            current = make_ray(origin, direction, time)
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter(
                    rec.material_id, current, rec
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    spawned = spawn_ray(rec, scattered_direction, time)
                    origin = spawned.origin
                    direction = spawned.direction

    # A path still active here ran out of depth and contributes nothing
    return color


@ti.func
def sample_pixel(
    row: ti.i32,
    col: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Sum the radiance of jittered camera rays through one pixel.

    Args:
        row: Pixel row, 0 at the top of the image.
        col: Pixel column, 0 at the left.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of rays to trace.
        max_depth: Bounce budget per ray.

    Returns:
        The sum (not the mean) of the sample radiances.
    """
    y = ti.cast(height - 1 - row, ti.f32)
    x = ti.cast(col, ti.f32)

    # Single-pixel axes collapse to the image center line
    s_scale = ti.cast(ti.max(width - 1, 1), ti.f32)
    t_scale = ti.cast(ti.max(height - 1, 1), ti.f32)

    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples_per_pixel):
        s = (x + random_double()) / s_scale
        t = (y + random_double()) / t_scale
        total += ray_color(get_ray(s, t), max_depth)

    return total


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32, samples_per_pixel: ti.i32, max_depth: ti.i32):
    """Render every pixel; each pixel is an independent parallel task."""
    for row, col in ti.ndrange(height, width):
        total = sample_pixel(row, col, width, height, samples_per_pixel, max_depth)
        _pixel_buffer[row, col] = quantize_color(total, samples_per_pixel)
        _radiance_buffer[row, col] = total / ti.cast(samples_per_pixel, ti.f32)


_trace_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32, time: ti.f32):
    # Single-iteration outer loop keeps the bounce loop serial
    for _ in range(1):
        _trace_result[None] = ray_color(make_ray(origin, direction, time), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def _prepare_render(
    camera: Camera | None,
    scene: "SceneManager | None",
    settings: RenderSettings,
) -> None:
    """Validate the request and make the camera and scene resident.

    A ``None`` camera or scene means "use whatever is already set up".

    Raises:
        ValueError: If the settings are invalid.
        RuntimeError: If no camera has been set up.
    """
    settings.validate()

    if camera is not None:
        setup_camera(camera)
    elif not is_camera_initialized():
        raise RuntimeError("Camera not set up. Pass a Camera or call setup_camera() first.")

    if scene is not None:
        scene.activate()


def _render(
    camera: Camera | None, scene: "SceneManager | None", settings: RenderSettings
) -> None:
    _prepare_render(camera, scene, settings)
    _render_kernel(
        settings.image_width,
        settings.image_height,
        settings.samples_per_pixel,
        settings.max_depth,
    )


def render_image(
    camera: Camera | None,
    scene: "SceneManager | None",
    width: int,
    height: int,
    samples_per_pixel: int = 100,
    max_depth: int = MAX_DEPTH,
) -> np.ndarray:
    """Render the scene to 8-bit RGB.

    Args:
        camera: The camera to render through, or None to reuse the camera
            already set up.
        scene: The scene to render, or None to use the resident scene data.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Maximum bounces per path.

    Returns:
        A uint8 array of shape (height, width, 3), top row first.

    Raises:
        ValueError: If the image size, sample count or depth is invalid.
        RuntimeError: If no camera is available.
    """
    _render(camera, scene, RenderSettings(width, height, samples_per_pixel, max_depth))
    return get_pixels_numpy(width, height)


def render_radiance(
    camera: Camera | None,
    scene: "SceneManager | None",
    width: int,
    height: int,
    samples_per_pixel: int = 100,
    max_depth: int = MAX_DEPTH,
) -> np.ndarray:
    """Render the scene and return mean linear radiance instead of bytes.

    Returns:
        A float32 array of shape (height, width, 3), top row first, before
        gamma correction.
    """
    _render(camera, scene, RenderSettings(width, height, samples_per_pixel, max_depth))
    return get_radiance_numpy(width, height)


def render(
    camera: Camera | None, scene: "SceneManager | None", settings: RenderSettings
) -> np.ndarray:
    """Render with a RenderSettings bundle. See ``render_image``."""
    _render(camera, scene, settings)
    return get_pixels_numpy(settings.image_width, settings.image_height)


def get_pixels_numpy(width: int, height: int) -> np.ndarray:
    """The quantized pixels of the most recent render, cropped to its size."""
    pixels = _pixel_buffer.to_numpy()[:height, :width, :]
    return pixels.astype(np.uint8)


def get_radiance_numpy(width: int, height: int) -> np.ndarray:
    """The mean radiance of the most recent render, cropped to its size."""
    radiance = _radiance_buffer.to_numpy()[:height, :width, :]
    return radiance.astype(np.float32)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    time: float = 0.0,
) -> tuple[float, float, float]:
    """Trace a single ray against the resident scene.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Returns:
        Tuple of (R, G, B) radiance values.

    Raises:
        ValueError: If max_depth is negative.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    _trace_ray_kernel(vec3(*origin), vec3(*direction), max_depth, time)
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))
