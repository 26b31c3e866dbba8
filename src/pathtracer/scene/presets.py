"""Preset scenes.

Each factory builds a fresh SceneManager and a matching Camera and returns
them as ``(scene, camera)``:

- ``create_three_spheres_scene``: a large ground sphere with a diffuse
  sphere in the middle, a glass sphere on the left and a metal sphere on the
  right, seen from the origin.
- ``create_random_scene``: the classic cover scene. A grid of small
  randomized spheres (80% diffuse, 15% metal, 5% glass) around three large
  feature spheres, seen through a lens with a shallow depth of field.
  With ``motion_blur`` the diffuse spheres bounce upward during the shutter
  interval.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import create_random_scene
    >>>
    >>> scene, camera = create_random_scene(seed=7)
    >>> scene.get_primitive_count() > 4
    True
"""

import numpy as np

from pathtracer.camera.camera import Camera
from pathtracer.scene.manager import (
    DielectricParams,
    LambertianParams,
    MetalParams,
    MovingSphereShape,
    SceneManager,
    SphereShape,
)

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

# Random scene layout
GRID_EXTENT = 11
SMALL_RADIUS = 0.2
# Small spheres closer than this to the glass/metal clearing are skipped
CLEARING_CENTER = np.array([4.0, 0.2, 0.0])
CLEARING_RADIUS = 0.9

DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15

GLASS = DielectricParams(ior=1.5)


def create_three_spheres_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Create the three-sphere test scene.

    Args:
        aspect_ratio: Width / height of the image the camera will render.

    Returns:
        Tuple of (SceneManager, Camera).
    """
    objects = [
        (SphereShape(center=(0.0, -100.5, -1.0), radius=100.0), LambertianParams((0.8, 0.8, 0.0))),
        (SphereShape(center=(0.0, 0.0, -1.0), radius=0.5), LambertianParams((0.1, 0.2, 0.5))),
        (SphereShape(center=(-1.0, 0.0, -1.0), radius=0.5), GLASS),
        (SphereShape(center=(1.0, 0.0, -1.0), radius=0.5), MetalParams((0.8, 0.6, 0.2), fuzz=0.0)),
    ]
    scene = SceneManager.from_objects(objects)

    camera = Camera(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        view_up=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def _random_objects(rng: np.random.Generator, motion_blur: bool) -> list:
    objects = [
        (SphereShape(center=(0.0, -1000.0, 0.0), radius=1000.0), LambertianParams((0.5, 0.5, 0.5)))
    ]

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_material = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARING_CENTER) <= CLEARING_RADIUS:
                continue

            center_point = tuple(float(x) for x in center)
            if choose_material < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                material = LambertianParams(tuple(float(x) for x in albedo))
                if motion_blur:
                    center1 = center + np.array([0.0, rng.uniform(0.0, 0.5), 0.0])
                    shape = MovingSphereShape(
                        center0=center_point,
                        center1=tuple(float(x) for x in center1),
                        time0=0.0,
                        time1=1.0,
                        radius=SMALL_RADIUS,
                    )
                else:
                    shape = SphereShape(center=center_point, radius=SMALL_RADIUS)
            elif choose_material < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                material = MetalParams(tuple(float(x) for x in albedo), fuzz=fuzz)
                shape = SphereShape(center=center_point, radius=SMALL_RADIUS)
            else:
                material = GLASS
                shape = SphereShape(center=center_point, radius=SMALL_RADIUS)

            objects.append((shape, material))

    objects.extend(
        [
            (SphereShape(center=(0.0, 1.0, 0.0), radius=1.0), GLASS),
            (SphereShape(center=(-4.0, 1.0, 0.0), radius=1.0), LambertianParams((0.4, 0.2, 0.1))),
            (SphereShape(center=(4.0, 1.0, 0.0), radius=1.0), MetalParams((0.7, 0.6, 0.5), fuzz=0.0)),
        ]
    )
    return objects


def create_random_scene(
    seed: int | None = None,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    motion_blur: bool = False,
) -> tuple[SceneManager, Camera]:
    """Create the randomized cover scene.

    Args:
        seed: Seed for the layout. Equal seeds give identical scenes.
        aspect_ratio: Width / height of the image the camera will render.
        motion_blur: Make the diffuse spheres move over a [0, 1] shutter.

    Returns:
        Tuple of (SceneManager, Camera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager.from_objects(_random_objects(rng, motion_blur))

    camera = Camera(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        view_up=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_distance=10.0,
        time0=0.0,
        time1=1.0 if motion_blur else 0.0,
    )
    return scene, camera
