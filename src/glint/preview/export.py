"""Image export utilities for rendered images.

``render`` returns gamma-encoded float images in [0, 1]. These helpers
quantize them to 8 bits and write PNG files through Pillow.

Example:
    >>> from glint.preview.export import save_png_from_array
    >>> image = render(scene, camera, 400, 225, samples_per_pixel=100, max_depth=50)
    >>> save_png_from_array(image, "spheres.png")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Quantize a [0, 1] float image to 8 bits.

    Each channel maps to ``int(256 * clamp(x, 0, 0.999))``, so 1.0 becomes
    255 and the 256 output levels cover equal input intervals.

    Args:
        image: Image array of shape (H, W, 3), already gamma encoded.

    Returns:
        Array of the same shape with dtype uint8.
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 0.999)
    return (256.0 * clamped).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
) -> None:
    """Save a gamma-encoded float image as an 8-bit RGB PNG.

    Args:
        image: Image array of shape (H, W, 3) in [0, 1], row 0 at the top.
        filepath: Output file path.

    Raises:
        ValueError: If the array is not (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    PILImage.fromarray(image_to_uint8(image), mode="RGB").save(filepath)
    logger.debug("Wrote %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def load_png(filepath: str | Path) -> npt.NDArray[np.float32]:
    """Read an 8-bit PNG back as a float image in [0, 1]."""
    with PILImage.open(filepath) as img:
        data = np.asarray(img.convert("RGB"), dtype=np.float32)
    return data / 255.0


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
