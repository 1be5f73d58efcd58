"""Metal (specular reflective) material with fuzz.

Metals mirror the incoming ray about the surface normal:

    R = I - 2(I . N)N

Rough metals add ``fuzz * random_unit_vector()`` to the unit mirror
direction, spreading reflections over a cone whose size grows with fuzz.
If the perturbed direction ends up at or below the surface (or collapses to
zero) the ray is absorbed.

Example:
    >>> from glint.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    >>> # Inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import (
    near_zero,
    normalize,
    random_unit_vector,
    reflect,
)
from glint.materials.lambertian import validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_fuzz(fuzz: float) -> float:
    """Check a metal fuzz value and return it as a float.

    Raises:
        ValueError: If fuzz is outside [0, 1].
    """
    if not math.isfinite(fuzz) or fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )
    return float(fuzz)


@dataclass(frozen=True)
class Metal:
    """Reflective material value.

    Attributes:
        albedo: Tint of the reflected light, each component in [0, 1].
        fuzz: Roughness in [0, 1]. 0 is a perfect mirror.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        object.__setattr__(self, "fuzz", validate_fuzz(self.fuzz))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Reflect an incoming ray off a metal surface.

    Args:
        albedo: The reflective color (RGB, each in [0, 1]).
        fuzz: The surface roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The unit normal, facing the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected direction (normalized), or the
          zero vector when absorbed.
        - attenuation: The albedo.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    reflected = reflect(normalize(incident_direction), normal)

    scattered = reflected
    if fuzz > 0.0:
        scattered = reflected + fuzz * random_unit_vector()

    scattered_direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    if not near_zero(scattered):
        scattered_direction = normalize(scattered)
        if tm.dot(scattered_direction, normal) > 0.0:
            did_scatter = 1
        else:
            scattered_direction = vec3(0.0, 0.0, 0.0)

    attenuation = albedo

    return scattered_direction, attenuation, did_scatter
