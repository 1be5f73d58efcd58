"""Camera module for view setup and primary ray generation.

Components:
    thin_lens: Perspective camera with optional depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

``setup_camera`` runs once on the host; ``get_ray`` and
``get_ray_for_pixel`` are called per sample inside render kernels.
"""

from .thin_lens import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_for_pixel,
    sample_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_for_pixel",
    "sample_ray",
    "get_camera_info",
]
