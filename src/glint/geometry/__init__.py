"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit record and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) called from the scene
query inside render kernels:
    record = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, validate_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "validate_sphere",
]
