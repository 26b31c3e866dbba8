"""Unified scene manager for coordinating primitives and materials.

This module provides the high-level scene building API. It tracks which
material type (Lambertian, Metal, Dielectric) each material ID refers to so
the path tracer can dispatch to the right scattering function, and it keeps
a host-side record of everything it has added.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- Methods for adding materials, spheres and moving spheres
- Scene construction from a list of (shape, material) pairs
- Scene serialization to and from plain dictionaries

Scene data lives in module-level Taichi fields, so only one scene can be
resident at a time. Each manager re-uploads its own record whenever another
manager has since taken the fields over (see ``SceneManager.activate``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Union

import taichi as ti
import taichi.math as tm

from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_MOVING_SPHERES,
    MAX_SPHERES,
    add_moving_sphere,
    add_sphere,
    clear_scene,
    get_moving_sphere_count,
    get_sphere_count,
)

# Type alias for 3D vectors
vec3 = tm.vec3

Point = tuple[float, float, float]


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1536  # 512 per type * 3 types

# Taichi fields for kernel-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())

# The manager whose record currently occupies the scene fields
_resident_manager: "SceneManager | None" = None


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    global _resident_manager
    num_materials[None] = 0
    _resident_manager = None


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum), or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the index of a material inside its type-specific registry.

    Returns:
        The type-local index, or -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


# =============================================================================
# Scene Description Types
# =============================================================================


@dataclass(frozen=True)
class LambertianParams:
    """Diffuse material description.

    Attributes:
        albedo: Diffuse reflectance (R, G, B), each in [0, 1].
    """

    albedo: Point


@dataclass(frozen=True)
class MetalParams:
    """Metal material description.

    Attributes:
        albedo: Reflective color (R, G, B), each in [0, 1].
        fuzz: Reflection blur in [0, 1].
    """

    albedo: Point
    fuzz: float = 0.0


@dataclass(frozen=True)
class DielectricParams:
    """Dielectric material description.

    Attributes:
        ior: Index of refraction (> 0).
    """

    ior: float = 1.5


MaterialParams = Union[LambertianParams, MetalParams, DielectricParams]


@dataclass(frozen=True)
class SphereShape:
    center: Point
    radius: float


@dataclass(frozen=True)
class MovingSphereShape:
    center0: Point
    center1: Point
    time0: float
    time1: float
    radius: float


Shape = Union[SphereShape, MovingSphereShape]


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: MaterialParams


@dataclass
class SphereInfo:
    """Information about a sphere in the scene."""

    sphere_index: int
    center: Point
    radius: float
    material_id: int


@dataclass
class MovingSphereInfo:
    """Information about a moving sphere in the scene."""

    sphere_index: int
    center0: Point
    center1: Point
    time0: float
    time1: float
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        spheres: List of sphere configurations.
        moving_spheres: List of moving sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    moving_spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_point(values: Iterable[float]) -> Point:
    x, y, z = values
    return (float(x), float(y), float(z))


class SceneManager:
    """Unified scene manager coordinating primitives and materials.

    Attributes:
        materials: MaterialInfo for every registered material, by material ID.
        spheres: SphereInfo for every sphere in the scene.
        moving_spheres: MovingSphereInfo for every moving sphere.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Initialize an empty scene and make it the resident one."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.moving_spheres: list[MovingSphereInfo] = []
        self._material_ids: dict[MaterialParams, int] = {}
        self._clear_all()

    @classmethod
    def from_objects(
        cls, objects: Iterable[tuple[Shape, MaterialParams]]
    ) -> "SceneManager":
        """Build a scene from an ordered list of (shape, material) pairs.

        Equal material descriptions are registered once and shared.
        """
        scene = cls()
        for shape, material in objects:
            scene.add_object(shape, material)
        return scene

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        global _resident_manager
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()
        self.moving_spheres.clear()
        self._material_ids.clear()
        _resident_manager = self

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()

    @property
    def is_resident(self) -> bool:
        """Whether this scene's data currently occupies the scene fields."""
        return _resident_manager is self

    def activate(self) -> None:
        """Make this scene the one the kernels see.

        A no-op if it already is. Otherwise the fields are cleared and this
        manager's materials and primitives are written again, in their
        original order, so all material IDs and indices are preserved.
        """
        global _resident_manager
        if _resident_manager is self:
            return

        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()

        for info in self.materials:
            self._write_material(info.material_type, info.params)
        for sphere in self.spheres:
            add_sphere(vec3(*sphere.center), sphere.radius, sphere.material_id)
        for moving in self.moving_spheres:
            add_moving_sphere(
                vec3(*moving.center0),
                vec3(*moving.center1),
                moving.time0,
                moving.time1,
                moving.radius,
                moving.material_id,
            )
        _resident_manager = self

    # =========================================================================
    # Material Management
    # =========================================================================

    @staticmethod
    def _write_material(material_type: MaterialType, params: MaterialParams) -> tuple[int, int]:
        """Store a material in its registry and assign the next unified ID.

        Returns:
            Tuple of (material_id, type_index).
        """
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        if material_type == MaterialType.LAMBERTIAN:
            type_index = add_lambertian_material(params.albedo)
        elif material_type == MaterialType.METAL:
            type_index = add_metal_material(params.albedo, params.fuzz)
        else:
            type_index = add_dielectric_material(params.ior)

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1
        return material_id, type_index

    def _register_material(self, material_type: MaterialType, params: MaterialParams) -> int:
        self.activate()
        material_id, type_index = self._write_material(material_type, params)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        # The first of several equal materials is the one add_material shares
        self._material_ids.setdefault(params, material_id)
        return material_id

    def add_lambertian_material(self, albedo: Point) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        params = LambertianParams(albedo=_as_point(albedo))
        return self._register_material(MaterialType.LAMBERTIAN, params)

    def add_metal_material(self, albedo: Point, fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The reflection blur in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        params = MetalParams(albedo=_as_point(albedo), fuzz=float(fuzz))
        return self._register_material(MaterialType.METAL, params)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is not positive.
        """
        params = DielectricParams(ior=float(ior))
        return self._register_material(MaterialType.DIELECTRIC, params)

    def add_material(self, params: MaterialParams) -> int:
        """Add a material from its description, reusing an equal one.

        Descriptions are compared after normalization, so an albedo given as
        a list matches the same albedo given as a tuple.

        Returns:
            The unified material ID shared by every equal description.

        Raises:
            TypeError: If ``params`` is not a known material description.
        """
        if isinstance(params, LambertianParams):
            key = LambertianParams(albedo=_as_point(params.albedo))
        elif isinstance(params, MetalParams):
            key = MetalParams(albedo=_as_point(params.albedo), fuzz=float(params.fuzz))
        elif isinstance(params, DielectricParams):
            key = DielectricParams(ior=float(params.ior))
        else:
            raise TypeError(f"Unknown material description: {params!r}")

        if key in self._material_ids:
            return self._material_ids[key]

        if isinstance(key, LambertianParams):
            return self.add_lambertian_material(key.albedo)
        if isinstance(key, MetalParams):
            return self.add_metal_material(key.albedo, key.fuzz)
        return self.add_dielectric_material(key.ior)

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(self, center: Point, radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere; must be positive.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If the radius is not positive or material_id is invalid.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self._check_material_id(material_id)
        self.activate()

        center = _as_point(center)
        sphere_index = add_sphere(vec3(*center), radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_moving_sphere(
        self,
        center0: Point,
        center1: Point,
        time0: float,
        time1: float,
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere moving linearly from center0 (time0) to center1 (time1).

        Returns:
            The index of the added moving sphere.

        Raises:
            RuntimeError: If the maximum number of moving spheres is exceeded.
            ValueError: If the radius is not positive, the keyframe times are
                equal, or material_id is invalid.
        """
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        if time1 == time0:
            raise ValueError(f"Moving sphere keyframe times must differ, got {time0} twice")
        self._check_material_id(material_id)
        self.activate()

        center0 = _as_point(center0)
        center1 = _as_point(center1)
        sphere_index = add_moving_sphere(
            vec3(*center0), vec3(*center1), time0, time1, radius, material_id
        )
        self.moving_spheres.append(
            MovingSphereInfo(
                sphere_index=sphere_index,
                center0=center0,
                center1=center1,
                time0=float(time0),
                time1=float(time1),
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_object(self, shape: Shape, material: MaterialParams) -> int:
        """Add a shape together with its material.

        Returns:
            The index of the added primitive within its kind.

        Raises:
            TypeError: If ``shape`` is not a known shape description.
        """
        material_id = self.add_material(material)
        if isinstance(shape, SphereShape):
            return self.add_sphere(shape.center, shape.radius, material_id)
        if isinstance(shape, MovingSphereShape):
            return self.add_moving_sphere(
                shape.center0,
                shape.center1,
                shape.time0,
                shape.time1,
                shape.radius,
                material_id,
            )
        raise TypeError(f"Unknown shape description: {shape!r}")

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        return len(self.spheres)

    def get_moving_sphere_count(self) -> int:
        return len(self.moving_spheres)

    def get_primitive_count(self) -> int:
        """Get the total number of primitives in the scene."""
        return self.get_sphere_count() + self.get_moving_sphere_count()

    def get_resident_counts(self) -> tuple[int, int]:
        """Primitive counts as currently stored in the Taichi fields.

        Returns:
            Tuple of (spheres, moving_spheres).
        """
        return get_sphere_count(), get_moving_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            if isinstance(mat.params, DielectricParams):
                mat_config["ior"] = mat.params.ior
            else:
                mat_config["albedo"] = list(mat.params.albedo)
            if isinstance(mat.params, MetalParams):
                mat_config["fuzz"] = mat.params.fuzz
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        for moving in self.moving_spheres:
            config.moving_spheres.append(
                {
                    "center0": list(moving.center0),
                    "center1": list(moving.center1),
                    "time0": moving.time0,
                    "time1": moving.time1,
                    "radius": moving.radius,
                    "material_id": moving.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene with the contents of a configuration object.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(_as_point(mat_config.get("albedo", [0.5, 0.5, 0.5])))
            elif mat_type == "metal":
                self.add_metal_material(
                    _as_point(mat_config.get("albedo", [0.8, 0.8, 0.8])),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            self.add_sphere(
                _as_point(sphere_config.get("center", [0, 0, 0])),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        for moving_config in config.moving_spheres:
            self.add_moving_sphere(
                _as_point(moving_config.get("center0", [0, 0, 0])),
                _as_point(moving_config.get("center1", [0, 0, 0])),
                moving_config.get("time0", 0.0),
                moving_config.get("time1", 1.0),
                moving_config.get("radius", 1.0),
                moving_config.get("material_id", 0),
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "moving_spheres": config.moving_spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary produced by ``to_dict``."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            moving_spheres=data.get("moving_spheres", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_moving_spheres() -> int:
        return MAX_MOVING_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
