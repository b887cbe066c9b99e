"""Preview module for rendered output.

Components:
    export: Color conversion and PNG export via Pillow

Rendered images are linear float arrays. They are clamped and quantized to
8 bits per channel on the way out; there is no tone mapping.

Example:
    >>> from src.spheretrace.preview import image_to_uint8, save_png
    >>> save_png(image_to_uint8(image), "output.png")
"""

from src.spheretrace.preview.export import (
    image_to_uint8,
    save_png,
    to_color,
)

__all__ = [
    "to_color",
    "image_to_uint8",
    "save_png",
]
