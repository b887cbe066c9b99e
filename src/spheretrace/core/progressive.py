"""Progressive renderer for iterative sample accumulation.

This module provides a wrapper around the core integrator that supports:
- Rendering that refines over time
- Batch rendering (several samples per pixel per pass)
- Progress callbacks and a generator interface for UI updates

Every batch is merged into the per-pixel running mean, so rendering 25
samples in batches of 5 estimates the same quantity as one pass of 25.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.camera.pinhole import setup_camera
    >>> from src.spheretrace.core.progressive import ProgressiveRenderer
    >>> from src.spheretrace.scene.default_scene import create_default_scene
    >>> from src.spheretrace.scene.manager import setup_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_scene(scene)
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(camera.width, camera.height)
    >>> renderer.render(25, batch_size=5)
    >>> image = renderer.get_image_uint8()
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from src.spheretrace.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.spheretrace.preview.export import image_to_uint8, save_png

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer owns the global render target (a set of Taichi fields), so
    only one instance should be active at a time. Scene and camera must be
    uploaded before rendering; the camera size must match the renderer.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget of every path.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.
            max_depth: Bounce budget of every path.

        Raises:
            ValueError: If a dimension is not positive or max_depth is negative.
            RuntimeError: If dimensions exceed maximum supported size.
        """
        if max_depth < 0:
            raise ValueError(f"Depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self._max_depth = max_depth
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count without changing the image
        dimensions.
        """
        clear_render_target()

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples per pixel in each pass.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add. Nothing is rendered
                when it is not positive.
            batch_size: Number of samples per pixel in each pass.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        start_time = time.perf_counter()

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self._max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Rendered {num_samples} spp at {self._width}x{self._height} "
            f"in {elapsed:.2f}s (total {self.sample_count} spp)"
        )

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the linear image as a (height, width, 3) float64 array."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the image converted to displayable 8-bit color.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str) -> None:
        """Save the rendered image as a PNG file.

        Raises:
            OSError: If the file cannot be written.
        """
        save_png(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
