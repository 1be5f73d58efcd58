"""Progressive renderer for iterative sample accumulation.

Wraps the integrator's running-mean buffer so an image can be refined a
batch at a time, with a callback or generator reporting progress in
between. Because each sample is folded into a per-pixel mean, stopping
after any batch leaves a valid (just noisier) image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from glint.core.progressive import ProgressiveRenderer
    >>> from glint.scene.presets import three_spheres
    >>> from glint.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = three_spheres(aspect_ratio=1.0)
    >>> scene.upload()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(256, 256, max_depth=50)
    >>> renderer.render(100, batch_size=10)
    >>> image = renderer.get_image_numpy()
"""

from collections.abc import Callable, Generator
from typing import Any

import numpy as np
import numpy.typing as npt

from glint.core.integrator import (
    DEFAULT_GAMMA,
    DEFAULT_MAX_DEPTH,
    clear_render_target,
    get_image,
    get_normalized_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from glint.preview.export import image_to_uint8, save_png_from_array

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A renderer that accumulates samples over repeated calls.

    The scene and camera must already be uploaded (``SceneManager.upload``
    and ``setup_camera``); this class only drives the shared render target.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce limit used for every sample.
        jitter: Whether samples are jittered inside each pixel.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = DEFAULT_MAX_DEPTH,
        jitter: bool = True,
    ) -> None:
        """Initialize the renderer and clear the render target.

        Raises:
            ValueError: If the dimensions are out of range or max_depth is
                not positive.
        """
        if max_depth <= 0:
            raise ValueError(f"max_depth = {max_depth} must be positive")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.jitter = jitter
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def sample_count(self) -> int:
        """Number of samples accumulated per pixel so far."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples, keeping the image size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the image size and discard accumulated samples.

        Raises:
            ValueError: If the dimensions are out of range.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add samples to the image, optionally reporting after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Samples rendered between callbacks.
            callback: Called with (current_total_samples, target_total_samples)
                after each batch.
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Add samples, yielding (current, target) after each batch.

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if num_samples <= 0:
            return

        batch_size = max(1, batch_size)
        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.max_depth, self.jitter)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer (full preallocated size)."""
        return get_image()

    def get_image_numpy(self, gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.float32]:
        """Get the image as (height, width, 3) float32, gamma corrected and clamped.

        Args:
            gamma: Gamma exponent. 1.0 returns the clamped linear image.
        """
        return get_normalized_image_numpy(gamma)

    def get_image_uint8(self, gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.uint8]:
        return image_to_uint8(self.get_image_numpy(gamma=gamma))

    def save_image(self, filepath: str, gamma: float = DEFAULT_GAMMA) -> None:
        """Save the current image as an 8-bit PNG."""
        save_png_from_array(self.get_image_numpy(gamma=gamma), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
