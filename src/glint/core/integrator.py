"""Depth-bounded Monte Carlo path tracing and the render entry point.

Each sample follows one path from the camera: intersect the scene, let the
hit material scatter, multiply the throughput by the attenuation and repeat.
The path ends in one of three ways:

    - it escapes the scene and picks up the background (sky) color,
    - the material absorbs it (no scatter), contributing black,
    - it exhausts ``max_depth`` bounces, contributing black.

This is the recursion ``color(ray, depth) = attenuation * color(scattered,
depth - 1)`` unrolled into a loop with an explicit depth counter, so the
kernel stack stays constant. Cutting paths at a fixed depth loses a little
energy in exchange for bounded work per sample.

Pixels are independent: every kernel launch processes all pixels in
parallel, each thread writing only its own accumulation slot, while the
scene and camera fields are read-only.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.camera.thin_lens import Camera
    >>> from glint.core.integrator import render
    >>> from glint.scene.presets import three_spheres
    >>> scene, camera = three_spheres(aspect_ratio=16.0 / 9.0)
    >>> image = render(scene, camera, 400, 225, samples_per_pixel=100, max_depth=50)
    >>> image.shape
    (225, 400, 3)
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from glint.camera.thin_lens import get_ray_for_pixel, setup_camera
from glint.materials.dielectric import scatter_dielectric
from glint.materials.lambertian import scatter_lambertian
from glint.materials.metal import scatter_metal
from glint.preview.display import apply_gamma
from glint.scene.intersection import T_MAX, T_MIN, intersect_scene
from glint.scene.manager import (
    MaterialType,
    get_material_albedo,
    get_material_fuzz,
    get_material_ior,
    get_material_type,
)

if TYPE_CHECKING:
    from glint.camera.thin_lens import Camera
    from glint.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce limit per path
DEFAULT_MAX_DEPTH = 50

# Default gamma: 2.0 means the square root of each linear channel
DEFAULT_GAMMA = 2.0

DEFAULT_SKY_BOTTOM = (1.0, 1.0, 1.0)
DEFAULT_SKY_TOP = (0.5, 0.7, 1.0)

# =============================================================================
# Background
# =============================================================================

_sky_bottom = ti.Vector.field(3, dtype=ti.f32, shape=())
_sky_top = ti.Vector.field(3, dtype=ti.f32, shape=())


def set_background(
    bottom: tuple[float, float, float],
    top: tuple[float, float, float],
) -> None:
    """Set the vertical sky gradient seen by rays that miss every object.

    Args:
        bottom: Color for rays pointing straight down.
        top: Color for rays pointing straight up.
    """
    _sky_bottom[None] = [bottom[0], bottom[1], bottom[2]]
    _sky_top[None] = [top[0], top[1], top[2]]


def set_solid_background(color: tuple[float, float, float]) -> None:
    """Use a single background color regardless of ray direction."""
    set_background(color, color)


def reset_background() -> None:
    """Restore the default white-to-blue sky."""
    set_background(DEFAULT_SKY_BOTTOM, DEFAULT_SKY_TOP)


def get_background() -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Return the current (bottom, top) background colors."""
    b = _sky_bottom[None]
    t = _sky_top[None]
    return (
        (float(b[0]), float(b[1]), float(b[2])),
        (float(t[0]), float(t[1]), float(t[2])),
    )


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color for a ray direction.

    ``a = 0.5 * (unit(direction).y + 1)`` blends linearly from the bottom
    color (a = 0) to the top color (a = 1).
    """
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * _sky_bottom[None] + a * _sky_top[None]


reset_background()

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running mean of the linear color, indexed (x, y) with y = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the buffers.

    Args:
        width: Image width in pixels, in [1, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [1, MAX_IMAGE_HEIGHT].

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> ti.MatrixField:
    """Get the raw accumulation buffer (full preallocated size).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> ti.ScalarField:
    """Get the per-pixel sample count field (full preallocated size).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scatter function of the hit material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material id absorbs the ray.
    """
    mat_type = get_material_type(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_material_albedo(material_id)
        scattered_direction, attenuation = scatter_lambertian(albedo, normal)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        albedo = get_material_albedo(material_id)
        fuzz = get_material_fuzz(material_id)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_material_ior(material_id)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(origin: vec3, direction: vec3, max_depth: ti.i32):
    """Follow one light path through the scene.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        max_depth: Maximum number of scene intersections along the path.
            0 or less returns black immediately.

    Returns:
        A tuple of (color, bounces) where color is the linear radiance
        estimate and bounces is the number of scattering events, never more
        than max_depth.
    """
    ray_origin = origin
    ray_direction = direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    bounces = 0

    # Taichi funcs cannot break out of runtime loops early
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    bounces += 1
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    # Paths still active here ran out of depth and contribute black
    return color, bounces


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Linear color carried back along a ray (see trace_path)."""
    color, _ = trace_path(origin, direction, max_depth)
    return color


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Clamp negatives and zero out NaN/Inf components."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, jitter: ti.i32):
    """Trace one sample through every pixel and fold it into the running mean."""
    for i, j in ti.ndrange(width, height):
        ray = get_ray_for_pixel(i, j, width, height, jitter)
        color = _sanitize(ray_color(ray.origin, ray.direction, max_depth))

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
) -> vec3:
    ray = get_ray_for_pixel(pixel_i, pixel_j, width, height, jitter)
    return _sanitize(ray_color(ray.origin, ray.direction, max_depth))


_trace_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_trace_bounces = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_ray_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
):
    color, bounces = trace_path(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth)
    _trace_color[None] = color
    _trace_bounces[None] = bounces


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[tuple[float, float, float], int]:
    """Trace a single path against the uploaded scene from Python.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z).
        max_depth: Maximum number of bounces.

    Returns:
        Tuple of (linear RGB color, number of scattering events).
    """
    _trace_ray_kernel(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        max_depth,
    )
    c = _trace_color[None]
    return (float(c[0]), float(c[1]), float(c[2])), int(_trace_bounces[None])


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    jitter: bool = True,
) -> tuple[float, float, float]:
    """Render one linear sample for a pixel of the current render target.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of bounces.
        jitter: Randomize the sample position inside the pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, int(jitter))

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    jitter: bool = True,
) -> None:
    """Accumulate samples for every pixel of the current render target.

    Can be called repeatedly; each call adds to the running mean.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, int(jitter))


def get_total_samples() -> int:
    """Samples accumulated so far (read from pixel (0, 0)).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the accumulated linear image, shape (height, width, 3), row 0 at top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Taichi uses bottom-left origin, images use top-left
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def get_normalized_image_numpy(gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.float32]:
    """Get the image gamma corrected and clamped to [0, 1].

    Args:
        gamma: Gamma exponent; each channel becomes ``clamp(x) ** (1/gamma)``.
            1.0 returns the clamped linear image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    image = np.clip(get_linear_image_numpy(), 0.0, 1.0)
    image = apply_gamma(image, gamma)
    return np.clip(image, 0.0, 1.0).astype(np.float32)


@dataclass
class RenderSettings:
    """Image and sampling parameters for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Independent samples averaged per pixel.
        max_depth: Maximum bounces per path.
        gamma: Output gamma exponent (2.0 = square root).
        jitter: Randomize sample positions inside each pixel (anti-aliasing).
    """

    width: int
    height: int
    samples_per_pixel: int = 100
    max_depth: int = DEFAULT_MAX_DEPTH
    gamma: float = DEFAULT_GAMMA
    jitter: bool = True

    def validate(self) -> None:
        """Check the settings before any rendering work starts.

        Raises:
            ValueError: If a count is not a positive integer, the image is
                larger than the render target, or gamma is not positive.
        """
        for name in ("width", "height", "samples_per_pixel", "max_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise ValueError(f"{name} = {value!r} must be a positive integer")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if not self.gamma > 0.0:
            raise ValueError(f"gamma = {self.gamma} must be positive")


def render_with_settings(
    scene: "SceneManager",
    camera: "Camera",
    settings: RenderSettings,
) -> npt.NDArray[np.float32]:
    """Render a scene with validated settings.

    All configuration is checked before the first kernel launch.

    Returns:
        Gamma corrected image of shape (height, width, 3), values in [0, 1],
        row 0 at the top.

    Raises:
        ValueError: If the settings or camera are invalid.
    """
    settings.validate()
    camera.validate()

    setup_render_target(settings.width, settings.height)
    scene.upload()
    setup_camera(camera)

    logger.debug(
        "Rendering %dx%d, %d spp, max depth %d",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
    )
    start = time.perf_counter()
    render_image(settings.samples_per_pixel, settings.max_depth, settings.jitter)
    ti.sync()
    logger.debug("Render finished in %.3fs", time.perf_counter() - start)

    return get_normalized_image_numpy(settings.gamma)


def render(
    scene: "SceneManager",
    camera: "Camera",
    image_width: int,
    image_height: int,
    samples_per_pixel: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    gamma: float = DEFAULT_GAMMA,
    jitter: bool = True,
) -> npt.NDArray[np.float32]:
    """Render a scene through a camera into a pixel buffer.

    Args:
        scene: The scene to draw; uploaded to the device by this call.
        camera: The camera configuration.
        image_width: Image width in pixels.
        image_height: Image height in pixels.
        samples_per_pixel: Independent samples averaged per pixel.
        max_depth: Maximum bounces per path.
        gamma: Output gamma exponent (2.0 = square root per channel).
        jitter: Randomize sample positions inside each pixel.

    Returns:
        Gamma corrected image of shape (height, width, 3), dtype float32,
        values in [0, 1], row 0 at the top. Quantize with
        ``glint.preview.export.image_to_uint8`` for 8-bit output.

    Raises:
        ValueError: If any setting or the camera is invalid.
    """
    settings = RenderSettings(
        width=image_width,
        height=image_height,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        gamma=gamma,
        jitter=jitter,
    )
    return render_with_settings(scene, camera, settings)
