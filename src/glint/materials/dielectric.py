"""Dielectric (glass/water) material.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

Each scattering event picks reflection or refraction: reflection is forced
under total internal reflection and otherwise chosen with the Schlick
reflectance as probability. A clear dielectric absorbs nothing, so the
attenuation is always white.

Example:
    >>> from glint.materials.dielectric import Dielectric
    >>> glass = Dielectric(ior=1.5)
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import (
    can_refract,
    normalize,
    reflect,
    refract,
    schlick_reflectance,
)

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_ior(ior: float) -> float:
    """Check an index of refraction and return it as a float.

    Values below 1.0 are allowed; they describe a medium that is optically
    thinner than its surroundings (an air bubble in water, for instance).

    Raises:
        ValueError: If ior is not a finite positive number.
    """
    if not math.isfinite(ior) or ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} must be a finite positive number."
        )
    return float(ior)


@dataclass(frozen=True)
class Dielectric:
    """Transparent material value.

    Attributes:
        ior: Index of refraction. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ior: float = 1.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "ior", validate_ior(self.ior))


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for the side the ray arrives on.

    Entering the medium (front face) the ratio is 1/ior; leaving it is ior.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit normal, facing the incoming ray.
        front_face: 1 if the ray arrives from outside the surface,
            0 if it arrives from inside the material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where the
        direction is normalized, attenuation is white and did_scatter is
        always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    unit_direction = normalize(incident_direction)
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if not can_refract(unit_direction, normal, ratio):
        scattered_direction = reflect(unit_direction, normal)
    elif ti.random(ti.f32) < schlick_reflectance(cos_theta, ratio):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    scattered_direction = normalize(scattered_direction)

    did_scatter = 1

    return scattered_direction, attenuation, did_scatter

