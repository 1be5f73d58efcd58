"""Gamma encoding and a Matplotlib preview of rendered images.

The renderer accumulates linear radiance. Monitors expect gamma-encoded
values, so each channel is clamped to [0, 1] and raised to ``1 / gamma``
before display or export; the default gamma of 2 is a square root.

Example:
    >>> from glint.preview.display import show_image
    >>> from glint.core.integrator import render
    >>>
    >>> image = render(scene, camera, 400, 225, samples_per_pixel=50, max_depth=50)
    >>> show_image(image, title="three spheres")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from glint.core.progressive import ProgressiveRenderer


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Apply gamma encoding: ``clamp(x, 0, 1) ** (1 / gamma)``.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value; 1.0 only clamps.

    Returns:
        Gamma encoded image in [0, 1].

    Raises:
        ValueError: If gamma is not positive.
    """
    if not gamma > 0.0:
        raise ValueError(f"gamma = {gamma} must be positive")

    # Clamp first so negative values cannot produce NaN
    image = np.clip(image, 0.0, 1.0)

    if gamma == 1.0:
        return image.astype(np.float32)

    return np.power(image, 1.0 / gamma).astype(np.float32)


def show_image(
    image: npt.NDArray[np.float32],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display an already gamma-encoded image in a Matplotlib window.

    Matplotlib is imported lazily; it is only needed for previews.

    Args:
        image: Image array of shape (H, W, 3) in [0, 1], row 0 at the top.
        title: Optional figure title.
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)

    ax.imshow(np.clip(image, 0.0, 1.0))
    ax.axis("off")
    if title is not None:
        ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    gamma: float = 2.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display the current state of a progressive render.

    The sample count is shown in the title unless one is given.
    """
    if title is None:
        title = f"Render Preview - {renderer.sample_count} SPP"

    show_image(
        renderer.get_image_numpy(gamma=gamma),
        title=title,
        figsize=figsize,
        block=block,
    )
