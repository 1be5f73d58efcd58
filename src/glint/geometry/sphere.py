"""Sphere primitive with robust ray-sphere intersection.

The intersection solves ``|O + tD - C|^2 = r^2`` for t with the half-b
quadratic and the cancellation-free root formulation from Ray Tracing Gems
(chapter 7), so tangent and distant hits stay stable in single precision.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.geometry.sphere import Sphere, hit_sphere, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     s = Sphere(center=vec3(0.0, 0.0, -1.0), radius=0.5)
    ...     rec = hit_sphere(vec3(0.0), vec3(0.0, 0.0, -1.0), s, 0.001, 1e10)
    ...     return rec.t
    >>> probe()
    0.5
"""

import math

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (strictly positive).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 on a miss. All other
            fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit surface normal, flipped so that it always opposes the
            incoming ray direction.
        front_face: 1 if the ray arrived from outside the surface, 0 if it
            hit the inside.
        material_id: The material of the surface, -1 when not yet assigned
            (primitive-level tests leave it to the scene query).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


def validate_sphere(center: tuple[float, float, float], radius: float) -> None:
    """Reject sphere parameters the intersection code cannot handle.

    Args:
        center: The center point as (x, y, z).
        radius: The sphere radius.

    Raises:
        ValueError: If the center is not three finite numbers or the radius
            is not a finite positive number.
    """
    if len(center) != 3:
        raise ValueError(f"Sphere center must have 3 components, got {len(center)}")
    if not all(math.isfinite(float(c)) for c in center):
        raise ValueError(f"Sphere center {tuple(center)} must be finite")
    if not math.isfinite(float(radius)) or radius <= 0.0:
        raise ValueError(f"Sphere radius = {radius} must be a finite positive number")


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Degenerate tangent case: fall back to the textbook formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Find the nearest intersection of a ray with a sphere in (t_min, t_max).

    With ``oc = origin - center`` the quadratic coefficients are::

        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2

    A negative discriminant ``h^2 - a*c`` is a miss. Otherwise the smaller
    root inside the interval wins, falling back to the larger one (the far
    side, for rays starting inside the sphere).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction; need not be normalized.
        sphere: The sphere to test against.
        t_min: Lower bound of the open interval. Keep it above zero to stop
            scattered rays from re-hitting their own surface.
        t_max: Upper bound of the open interval.

    Returns:
        A HitRecord; check ``hit`` before reading the other fields.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Taichi requires outer-scope declaration
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            outward_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(ray_direction, outward_normal) > 0.0:
                # Ray is inside the sphere, hitting back face
                is_front_face = 0
                hit_normal = -outward_normal
            else:
                is_front_face = 1
                hit_normal = outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        material_id=-1,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
