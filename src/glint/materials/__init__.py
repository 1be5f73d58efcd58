"""Materials module: the closed set of surface scattering models.

Components:
    lambertian: Ideal diffuse reflection (cosine-weighted sampling)
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance

Each module provides a frozen host-side value type that validates its
parameters on construction, and a Taichi scatter function returning the
scattered direction and attenuation (metal and dielectric add a
``did_scatter`` flag) for use in kernels. The
integrator dispatches on the material type tag stored by the scene.
"""

from typing import Union

from .dielectric import (
    Dielectric,
    refraction_ratio,
    scatter_dielectric,
    validate_ior,
)
from .lambertian import (
    Lambertian,
    scatter_lambertian,
    validate_albedo,
)
from .metal import Metal, scatter_metal, validate_fuzz

# Any material value accepted by the scene
Material = Union[Lambertian, Metal, Dielectric]

__all__ = [
    "Material",
    # Lambertian
    "Lambertian",
    "scatter_lambertian",
    "validate_albedo",
    # Metal
    "Metal",
    "scatter_metal",
    "validate_fuzz",
    # Dielectric
    "Dielectric",
    "scatter_dielectric",
    "refraction_ratio",
    "validate_ior",
]
