"""glint: a Taichi-based Monte Carlo ray tracer for sphere scenes.

Rays are cast per pixel sample, intersected against a flat list of spheres
and scattered by Lambertian, metal and dielectric materials until they
escape to the sky, get absorbed, or run out of bounces.

Subpackages:
    core: Vector math, rays, the path integrator and progressive rendering
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene construction, primitive storage and preset scenes
    camera: Thin-lens camera with optional depth of field
    preview: Gamma helpers, image export and a static preview window

Taichi must be initialized (``ti.init``) before importing the subpackages
that declare fields (everything except ``glint.core.ray``).
"""

__version__ = "0.1.0"
