"""Scene module for scene management and hit records.

Components:
    intersection: Primitive storage and closest-hit scene queries
    manager: Unified scene manager coordinating primitives and materials
    presets: Ready-made scenes paired with cameras

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_MOVING_SPHERES,
    MAX_SPHERES,
    SceneHitRecord,
    add_moving_sphere,
    add_sphere,
    clear_scene,
    get_moving_sphere_count,
    get_sphere_count,
    intersect_scene,
    intersect_scene_any,
    spawn_ray,
)
from .manager import (
    MAX_MATERIALS,
    DielectricParams,
    LambertianParams,
    MaterialInfo,
    MaterialType,
    MetalParams,
    MovingSphereInfo,
    MovingSphereShape,
    SceneConfig,
    SceneManager,
    SphereInfo,
    SphereShape,
    get_material_type,
    get_material_type_index,
)
from .presets import create_random_scene, create_three_spheres_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "add_moving_sphere",
    "clear_scene",
    "get_sphere_count",
    "get_moving_sphere_count",
    "intersect_scene",
    "intersect_scene_any",
    "spawn_ray",
    "MAX_SPHERES",
    "MAX_MOVING_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "MovingSphereInfo",
    "SceneConfig",
    "LambertianParams",
    "MetalParams",
    "DielectricParams",
    "SphereShape",
    "MovingSphereShape",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "create_three_spheres_scene",
    "create_random_scene",
]
