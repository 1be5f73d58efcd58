"""Scene module: sphere storage, closest-hit queries and scene construction.

Components:
    intersection: Sphere fields and the closest-hit / any-hit queries
    manager: Host-side scene description, material table and serialization
    presets: Ready-made scenes with matching cameras

Scene data is organized for GPU access:
    - Structure-of-Arrays layout for sphere centers, radii and material ids
    - Material tags plus albedo / fuzz / ior columns indexed by material id
"""

from .intersection import (
    MAX_SPHERES,
    T_MAX,
    T_MIN,
    SceneHit,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    query_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    material_from_dict,
    material_to_dict,
    material_type_of,
)
from .presets import PRESETS, ground_and_sphere, random_spheres, three_spheres

__all__ = [
    # Intersection module
    "SceneHit",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "query_scene",
    "MAX_SPHERES",
    "T_MIN",
    "T_MAX",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "material_type_of",
    "material_to_dict",
    "material_from_dict",
    # Presets
    "PRESETS",
    "ground_and_sphere",
    "three_spheres",
    "random_spheres",
]
