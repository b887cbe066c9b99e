"""Camera module for view and ray generation.

This module provides the pinhole camera used to generate primary rays:

Components:
    pinhole: Pinhole (perspective) camera with look-at positioning

Camera responsibilities:
    - Build an exactly orthonormal basis from eye, look-at and up
    - Fold the vertical field of view and aspect ratio into the basis
    - Map integer pixel coordinates to world-space rays

Pixel coordinates follow image order: (0, 0) is the top-left pixel, x grows
to the right and y grows downward.
"""

from .pinhole import (
    Camera,
    clear_camera,
    get_camera_info,
    get_camera_size,
    get_ray,
    get_ray_direction,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "clear_camera",
    "get_camera_size",
    "get_ray",
    "get_ray_direction",
    "get_camera_info",
]
