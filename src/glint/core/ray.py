"""Ray data structure, vector math and Monte Carlo sampling helpers.

Everything in this module is a pure Taichi function over value types and
is safe to call from any kernel thread. Random helpers draw from Taichi's
per-thread generator, which is seeded once by ``ti.init(random_seed=...)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> ti.f32:
    ...     ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0).z
    >>> probe()
    -5.0
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray ``P(t) = origin + t * direction``.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray. Rays built by the camera and by
            scattering are normalized; intersection code does not rely on it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Precondition: ``v`` is not zero length. Callers that can produce a
    degenerate vector check ``near_zero`` first.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    ``R = I - 2 (I . N) N``. The reflected vector makes the same angle with
    the normal as the incident one and has the same length.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def can_refract(incident: vec3, normal: vec3, eta: ti.f32) -> ti.i32:
    """Check whether Snell's law has a solution for this configuration.

    Args:
        incident: The incoming unit direction.
        normal: The unit normal facing the incoming ray.
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        1 if the refraction discriminant ``1 - eta^2 (1 - cos^2)`` is
        non-negative, 0 on total internal reflection.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    return sin2_t <= 1.0


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction (normalized).
        normal: The surface normal (normalized, facing the incoming ray).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction, or the zero vector on total internal
        reflection. Use ``can_refract`` to tell the two apart.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_reflectance(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Estimate Fresnel reflectance with Schlick's approximation.

    An index-matched interface (``ratio == 1``) has no optical boundary and
    reflects nothing.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        ratio: Ratio of refractive indices across the interface.

    Returns:
        The reflectance probability in [0, 1].
    """
    r0 = ((1.0 - ratio) / (1.0 + ratio)) ** 2
    reflectance = 0.0
    if r0 > 0.0:
        reflectance = r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
    return reflectance


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_unit_vector() -> vec3:
    """Generate a unit vector uniformly distributed on the sphere.

    Uses the cylindrical projection (uniform z, uniform azimuth), so the
    result is never zero length.
    """
    z = ti.random(ti.f32) * 2.0 - 1.0
    phi = 2.0 * tm.pi * ti.random(ti.f32)
    r = ti.sqrt(tm.max(0.0, 1.0 - z * z))
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z)


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point (x, y, 0) inside the unit disk.

    Used to sample the camera lens for depth of field.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p


@ti.func
def random_cosine_direction() -> vec3:
    """Generate a cosine-weighted direction in the local z-up frame.

    The distribution has PDF = cos(theta) / pi.
    """
    r1 = ti.random(ti.f32)
    r2 = ti.random(ti.f32)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(1.0 - r2)
    return vec3(x, y, z)


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis with the normal as the z-axis.

    Returns:
        A tuple (tangent, bitangent, normal).
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3) -> vec3:
    """Cosine-weighted hemisphere sampling around a normal.

    The distribution is symmetric about the normal, which is what the
    Lambertian scatter needs.

    Args:
        normal: The surface normal defining the hemisphere orientation.

    Returns:
        A world-space direction with pdf cos(theta) / pi.
    """
    local_dir = random_cosine_direction()
    tangent, bitangent, n = build_onb_from_normal(normal)
    return local_to_world(local_dir, tangent, bitangent, n)
