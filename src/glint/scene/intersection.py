"""Scene-level ray intersection over a flat list of spheres.

Spheres live in structure-of-arrays Taichi fields, each with the material id
of the surface. ``intersect_scene`` walks all of them with a shrinking
interval so the reported hit is the closest one, whatever the insertion
order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.scene.intersection import add_sphere, clear_scene, query_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    0
    >>> query_scene((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)).t
    0.5
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Default ray interval. T_MIN keeps scattered rays from re-hitting the
# surface they leave ("shadow acne").
T_MIN = 0.001
T_MAX = 1e10

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Result slots for Python-side queries
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Only the count is reset; stale field data is overwritten by later adds.
    """
    num_spheres[None] = 0


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the scene storage.

    No validation happens here; SceneManager checks parameters before
    calling it.

    Args:
        center: The center point as a vec3 or (x, y, z).
        radius: The radius of the sphere.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _make_miss_record() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Find the closest hit across all spheres in (t_min, t_max).

    Each accepted hit shrinks the upper bound to its own t, so a farther
    sphere can never replace a nearer one.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest HitRecord with its material_id filled in, or a miss
        record (hit == 0) if the scene is empty or nothing qualifies.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = HitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                material_id=sphere_material_ids[i],
            )

    return result


# =============================================================================
# Python-side queries
# =============================================================================


@dataclass
class SceneHit:
    """Host copy of a scene hit.

    Attributes:
        t: Ray parameter of the hit.
        point: Intersection point.
        normal: Unit normal facing the incoming ray.
        front_face: True if the ray arrived from outside.
        material_id: Material of the hit sphere.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int


@ti.kernel
def _query_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    rec = intersect_scene(vec3(ox, oy, oz), vec3(dx, dy, dz), t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_front_face[None] = rec.front_face
    _query_material_id[None] = rec.material_id


def query_scene(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float = T_MIN,
    t_max: float = T_MAX,
) -> SceneHit | None:
    """Intersect a single ray with the current scene from Python.

    Intended for tests and tools; rendering does this inside kernels.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z).
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest SceneHit, or None on a miss.
    """
    _query_kernel(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        t_min,
        t_max,
    )
    if _query_hit[None] == 0:
        return None
    p = _query_point[None]
    n = _query_normal[None]
    return SceneHit(
        t=float(_query_t[None]),
        point=(float(p[0]), float(p[1]), float(p[2])),
        normal=(float(n[0]), float(n[1]), float(n[2])),
        front_face=bool(_query_front_face[None]),
        material_id=int(_query_material_id[None]),
    )
