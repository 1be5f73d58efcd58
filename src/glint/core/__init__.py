"""Core rendering module.

Components:
    ray: Ray data structure, vector math and sampling helpers
    integrator: Depth-bounded path tracing and the render() entry point
    progressive: Progressive accumulation with progress callbacks

Only the ray module is re-exported here; integrator and progressive pull in
the scene and camera fields and are imported directly when needed:

    from glint.core.integrator import render
    from glint.core.progressive import ProgressiveRenderer
"""

from .ray import (
    Ray,
    build_onb_from_normal,
    can_refract,
    cross,
    dot,
    length,
    length_squared,
    local_to_world,
    make_ray,
    near_zero,
    normalize,
    random_cosine_direction,
    random_in_unit_disk,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    sample_cosine_hemisphere,
    schlick_reflectance,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "can_refract",
    "schlick_reflectance",
    "near_zero",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
]
