"""Lambertian (ideal diffuse) material.

A Lambertian surface scatters incoming light in every direction of the
hemisphere around its normal, weighted by the cosine of the angle to the
normal. Sampling that cosine distribution directly makes the Monte Carlo
weight ``BRDF * cos / pdf`` collapse to the albedo:

    (albedo / pi) * cos_theta / (cos_theta / pi) = albedo

Example:
    >>> from glint.materials.lambertian import Lambertian
    >>> grey = Lambertian(albedo=(0.5, 0.5, 0.5))
    >>> # Inside a kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import (
    near_zero,
    normalize,
    sample_cosine_hemisphere,
)

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_albedo(albedo) -> tuple[float, float, float]:
    """Check an RGB albedo and return it as a tuple of floats.

    Args:
        albedo: Three reflectance components, each in [0, 1].

    Returns:
        The albedo as a (R, G, B) tuple of floats.

    Raises:
        ValueError: If the albedo does not have 3 components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))


@dataclass(frozen=True)
class Lambertian:
    """Diffuse material value.

    Attributes:
        albedo: Fraction of light reflected per color channel, each in [0, 1].
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))


@ti.func
def scatter_lambertian(
    albedo: vec3,
    normal: vec3,
):
    """Sample a diffuse bounce.

    Lambertian surfaces always scatter.

    Args:
        albedo: The diffuse reflectance color (RGB, each in [0, 1]).
        normal: The unit normal at the hit point, facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation) where the direction
        is normalized and attenuation equals the albedo.
    """
    scattered_direction = sample_cosine_hemisphere(normal)

    # Degenerate samples fall back to the normal
    if near_zero(scattered_direction):
        scattered_direction = normal

    attenuation = albedo

    return normalize(scattered_direction), attenuation
