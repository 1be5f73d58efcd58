"""Thin-lens camera for perspective ray generation with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focus plane, ``focus_dist`` in front of the
camera. With a zero aperture every ray starts at the camera position (a
pinhole); otherwise ray origins are spread over a lens disk of radius
``aperture / 2`` and all rays through one viewport point converge on the
focus plane, so only objects at that distance are sharp.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.camera.thin_lens import Camera, setup_camera
    >>> camera = Camera(
    ...     lookfrom=(3.0, 3.0, 2.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=2.0,
    ...     focus_dist=5.2,
    ... )
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from glint.core.ray import Ray, make_ray, normalize, random_in_unit_disk, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera with no blur.
        focus_dist: Distance from the camera to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    def validate(self) -> None:
        """Check the configuration before any basis is derived.

        Raises:
            ValueError: If a parameter is out of range or the view is
                degenerate (lookfrom == lookat, or vup parallel to the view
                direction).
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if not self.aperture >= 0.0:
            raise ValueError(f"aperture = {self.aperture} must be non-negative")
        if not self.focus_dist > 0.0:
            raise ValueError(f"focus_dist = {self.focus_dist} must be positive")
        for name in ("aspect_ratio", "aperture", "focus_dist"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} = {getattr(self, name)} must be finite")

        points = {}
        for name in ("lookfrom", "lookat", "vup"):
            value = np.asarray(getattr(self, name), dtype=np.float64)
            if value.shape != (3,) or not np.isfinite(value).all():
                raise ValueError(f"{name} = {getattr(self, name)} must be 3 finite numbers")
            points[name] = value

        view = points["lookfrom"] - points["lookat"]
        if np.linalg.norm(view) < 1e-8:
            raise ValueError("lookfrom and lookat must be different points")
        side = np.cross(points["vup"], view)
        if np.linalg.norm(side) < 1e-8:
            raise ValueError("vup must not be parallel to the view direction")


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport on the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Derive the camera basis and viewport and store them for the kernels.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the configuration is invalid (see Camera.validate).
    """
    camera.validate()

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    s runs left to right and t bottom to top, both in [0, 1]. With a
    positive lens radius the origin is jittered across the lens disk.

    Returns:
        A Ray with a normalized direction.
    """
    origin = _camera_origin[None]
    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        rd = lens_radius * random_in_unit_disk()
        origin = origin + _camera_u[None] * rd.x + _camera_v[None] * rd.y

    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]

    return make_ray(origin, normalize(target - origin))


@ti.func
def get_ray_for_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter: ti.i32,
) -> Ray:
    """Generate a camera ray for a pixel sample.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        jitter: 1 to place the sample uniformly at random inside the pixel
            (stochastic anti-aliasing), 0 to use the pixel center.
    """
    offset_u = 0.5
    offset_v = 0.5
    if jitter != 0:
        offset_u = ti.random(ti.f32)
        offset_v = ti.random(ti.f32)

    s = (ti.cast(pixel_i, ti.f32) + offset_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + offset_v) / ti.cast(height, ti.f32)

    return get_ray(s, t)


# =============================================================================
# Python-side helpers
# =============================================================================


_sample_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_sample_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _sample_ray_kernel(s: ti.f32, t: ti.f32):
    ray = get_ray(s, t)
    _sample_origin[None] = ray.origin
    _sample_direction[None] = ray.direction


def sample_ray(s: float, t: float) -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Generate one camera ray from Python.

    Returns:
        Tuple of (origin, direction), each as an (x, y, z) tuple.
    """
    _sample_ray_kernel(s, t)
    o = _sample_origin[None]
    d = _sample_direction[None]
    return (
        (float(o[0]), float(o[1]), float(o[2])),
        (float(d[0]), float(d[1]), float(d[2])),
    )


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _vec(f) -> tuple[float, float, float]:
        value = f[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _vec(_camera_origin),
        "u": _vec(_camera_u),
        "v": _vec(_camera_v),
        "w": _vec(_camera_w),
        "horizontal": _vec(_viewport_horizontal),
        "vertical": _vec(_viewport_vertical),
        "lower_left": _vec(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
