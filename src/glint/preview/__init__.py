"""Preview module for output and visualization.

Components:
    display: Gamma encoding and Matplotlib preview windows
    export: 8-bit quantization and PNG export via Pillow

Example:
    >>> from glint.preview import save_png_from_array, show_image
    >>> image = render(scene, camera, 400, 225, samples_per_pixel=100, max_depth=50)
    >>> save_png_from_array(image, "output.png")
    >>> show_image(image)
"""

from glint.preview.display import apply_gamma, show_image, show_preview
from glint.preview.export import (
    compute_rmse,
    image_to_uint8,
    load_png,
    save_png_from_array,
)

__all__ = [
    # Display functions
    "apply_gamma",
    "show_image",
    "show_preview",
    # Export functions
    "image_to_uint8",
    "save_png_from_array",
    "load_png",
    "compute_rmse",
]
