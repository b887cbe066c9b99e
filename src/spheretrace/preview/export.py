"""Color conversion and image export.

Rendered colors are linear and unbounded. For output each channel is
clamped to [0, 1], scaled by 255 and truncated toward zero:

    (1.5, -0.2, 0.5) -> (255, 0, 127)

No tone mapping or gamma is applied. Images are (height, width, 3) arrays
with row 0 at the top, which is the order Pillow expects, so no flipping
happens here.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from src.spheretrace.preview.export import image_to_uint8, save_png
    >>> grid = image_to_uint8(renderer.get_image_numpy())
    >>> save_png(grid, "output.png")
"""

from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def to_color(color: tuple[float, float, float]) -> tuple[int, int, int]:
    """Convert one linear color to 8-bit channels.

    Args:
        color: Linear RGB, any range.

    Returns:
        Tuple of (R, G, B) integers in [0, 255].
    """
    r, g, b = (int(min(max(float(c), 0.0), 1.0) * 255.0) for c in color)
    return (r, g, b)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display/export.

    Applies the same clamp, scale and truncate as to_color() to every pixel.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the array is not (H, W, 3).
    """
    _check_rgb_shape(image)
    clamped = np.clip(np.nan_to_num(image.astype(np.float64), nan=0.0), 0.0, 1.0)
    return (clamped * 255.0).astype(np.uint8)


def save_png(image: npt.NDArray[np.generic], filepath: str) -> None:
    """Save an image grid as a PNG file.

    Args:
        image: Array of shape (H, W, 3). uint8 arrays are written as they
            are; float arrays are converted with image_to_uint8() first.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the array is not (H, W, 3).
        OSError: If Pillow cannot write the file.
    """
    _check_rgb_shape(image)
    if image.dtype != np.uint8:
        image = image_to_uint8(image)

    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    pil_image.save(filepath)

    logger.info(f"Saved {image.shape[1]}x{image.shape[0]} image to {filepath}")


def _check_rgb_shape(image: npt.NDArray[np.generic]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
