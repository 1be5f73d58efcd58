"""Scene construction API: materials, spheres and serialization.

The SceneManager is the host-side description of a scene. Materials and
spheres are validated and recorded in Python as they are added; ``upload()``
copies the whole scene into the Taichi fields the render kernels read, so
several SceneManager instances can coexist and the one handed to
``render()`` is the one that gets drawn.

Materials form a closed tagged union. On the device each material id maps
to a ``MaterialType`` tag plus albedo / fuzz / ior columns; the integrator
switches on the tag. Adding an equal material value twice returns the same
id, so spheres share immutable materials.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.materials import Dielectric, Lambertian
    >>> from glint.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
    0
    >>> scene.add_primitive((1, 0, -1), 0.5, Dielectric(1.5))
    (1, 1)
    >>> scene.upload()
"""

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti
import taichi.math as tm

from glint.geometry.sphere import validate_sphere
from glint.materials import Dielectric, Lambertian, Material, Metal
from glint.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Tag of the material union, used for dispatch in the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# Device-side material table, indexed by material id
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the device-side material table."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the MaterialType tag for a material id, -1 if the id is invalid."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_albedo(material_id: ti.i32) -> vec3:
    return material_albedos[material_id]


@ti.func
def get_material_fuzz(material_id: ti.i32) -> ti.f32:
    return material_fuzz[material_id]


@ti.func
def get_material_ior(material_id: ti.i32) -> ti.f32:
    return material_iors[material_id]


def material_type_of(material: Material) -> MaterialType:
    """Map a material value to its tag.

    Raises:
        TypeError: If the value is not one of the supported materials.
    """
    if isinstance(material, Lambertian):
        return MaterialType.LAMBERTIAN
    if isinstance(material, Metal):
        return MaterialType.METAL
    if isinstance(material, Dielectric):
        return MaterialType.DIELECTRIC
    raise TypeError(f"Unsupported material: {material!r}")


def material_to_dict(material: Material) -> dict[str, Any]:
    """Serialize a material value to a plain dictionary."""
    mat_type = material_type_of(material)
    if mat_type == MaterialType.LAMBERTIAN:
        return {"type": "lambertian", "albedo": list(material.albedo)}
    if mat_type == MaterialType.METAL:
        return {"type": "metal", "albedo": list(material.albedo), "fuzz": material.fuzz}
    return {"type": "dielectric", "ior": material.ior}


def material_from_dict(data: dict[str, Any]) -> Material:
    """Build a material value from a dictionary.

    Args:
        data: Dictionary with a "type" key ("lambertian", "metal" or
            "dielectric") and the parameters of that type.

    Raises:
        ValueError: If the type is unknown or a parameter is out of range.
    """
    mat_type = str(data.get("type", "")).lower()
    if mat_type == "lambertian":
        return Lambertian(albedo=tuple(data.get("albedo", [0.5, 0.5, 0.5])))
    if mat_type == "metal":
        return Metal(
            albedo=tuple(data.get("albedo", [0.8, 0.8, 0.8])),
            fuzz=data.get("fuzz", 0.0),
        )
    if mat_type == "dielectric":
        return Dielectric(ior=data.get("ior", 1.5))
    raise ValueError(f"Unknown material type: {mat_type}")


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The tag of the material.
        material: The validated material value.
    """

    material_id: int
    material_type: MaterialType
    material: Material


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: Position of the sphere in the scene list.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Serializable scene description.

    Attributes:
        materials: List of material dictionaries; list position is the id.
        spheres: List of sphere dictionaries referencing material ids.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Host-side scene builder.

    Attributes:
        materials: MaterialInfo for every registered material, by id.
        spheres: SphereInfo for every sphere, in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        0
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        1
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []

    def clear(self) -> None:
        """Remove all materials and spheres from this scene."""
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material value and return its id.

        An equal material that is already registered is reused.

        Raises:
            TypeError: If the value is not a supported material.
            RuntimeError: If the maximum number of materials is exceeded.
        """
        material_type = material_type_of(material)

        for info in self.materials:
            if info.material == material:
                return info.material_id

        material_id = len(self.materials)
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                material=material,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material.

        Raises:
            ValueError: If any albedo component is outside [0, 1].
        """
        return self.add_material(Lambertian(albedo=albedo))

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal material. Default fuzz 0 is a perfect mirror.

        Raises:
            ValueError: If any albedo component or the fuzz is outside [0, 1].
        """
        return self.add_material(Metal(albedo=albedo, fuzz=fuzz))

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material.

        Raises:
            ValueError: If ior is not a finite positive number.
        """
        return self.add_material(Dielectric(ior=ior))

    def get_material_count(self) -> int:
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material tag on the host, None for invalid ids."""
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere that uses an already registered material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (strictly positive).
            material_id: A material ID returned by one of the add_*_material
                methods.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the geometry is invalid or material_id is unknown.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        validate_sphere(center, radius)
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = len(self.spheres)
        if sphere_index >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=(float(center[0]), float(center[1]), float(center[2])),
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_primitive(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Material,
    ) -> tuple[int, int]:
        """Add a sphere together with its material value.

        Returns:
            Tuple of (sphere_index, material_id).

        Raises:
            ValueError: If the geometry is invalid.
            RuntimeError: If the maximum number of spheres is exceeded. The
                material is not registered in that case.
        """
        validate_sphere(center, radius)
        if len(self.spheres) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
        material_id = self.add_material(material)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        return self.add_primitive(center, radius, Lambertian(albedo=albedo))

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        return self.add_primitive(center, radius, Metal(albedo=albedo, fuzz=fuzz))

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        return self.add_primitive(center, radius, Dielectric(ior=ior))

    def get_sphere_count(self) -> int:
        return len(self.spheres)

    def get_primitive_count(self) -> int:
        return self.get_sphere_count()

    # =========================================================================
    # Device Upload
    # =========================================================================

    def upload(self) -> None:
        """Copy this scene into the Taichi fields read by the kernels.

        Replaces whatever scene was uploaded before.
        """
        clear_scene()
        _clear_material_tracking()

        for info in self.materials:
            mat = info.material
            idx = info.material_id
            material_types[idx] = int(info.material_type)
            material_albedos[idx] = [0.0, 0.0, 0.0]
            material_fuzz[idx] = 0.0
            material_iors[idx] = 1.0
            if info.material_type == MaterialType.DIELECTRIC:
                material_iors[idx] = mat.ior
            else:
                material_albedos[idx] = list(mat.albedo)
                if info.material_type == MaterialType.METAL:
                    material_fuzz[idx] = mat.fuzz
        num_materials[None] = len(self.materials)

        for sphere in self.spheres:
            add_sphere(sphere.center, sphere.radius, sphere.material_id)

        logger.debug(
            "Uploaded scene: %d materials, %d spheres",
            len(self.materials),
            get_sphere_count(),
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            config.materials.append(material_to_dict(mat.material))

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace this scene with the contents of a configuration object.

        Sphere material ids refer to positions in ``config.materials``. The
        scene is left untouched if the configuration is rejected.

        Raises:
            ValueError: If the configuration contains invalid data.
            RuntimeError: If the configuration exceeds scene capacity.
        """
        staged = SceneManager()

        # Equal materials collapse to one id, so keep a position -> id map
        id_map = [staged.add_material(material_from_dict(m)) for m in config.materials]

        for sphere_config in config.spheres:
            center = sphere_config.get("center", [0.0, 0.0, 0.0])
            radius = sphere_config.get("radius", 1.0)
            config_id = sphere_config.get("material_id", 0)
            if not 0 <= config_id < len(id_map):
                raise ValueError(f"Invalid material_id: {config_id}")
            staged.add_sphere(tuple(center), radius, id_map[config_id])

        self.materials = staged.materials
        self.spheres = staged.spheres

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

    def save_json(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2))

    def load_json(self, path: str | Path) -> None:
        """Load a scene from a JSON file written by save_json."""
        self.from_dict(json.loads(Path(path).read_text()))

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
