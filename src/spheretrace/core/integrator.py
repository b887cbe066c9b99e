"""Path-transport estimator and per-pixel sampling loop.

This module estimates the radiance arriving along camera rays by following
diffuse bounces through the uploaded scene:

    - A path that reaches a light returns throughput * LIGHT_EMISSION.
    - A path that escapes the scene returns throughput * background.
    - A path that hits an ordinary sphere scatters diffusely and its
      throughput is multiplied by the albedo.
    - A path that runs out of bounces returns throughput * background.

trace() is the depth-bounded estimator for one path and multitrace() averages
independent traces of the same ray. render_image() runs multitrace once per
pixel of the render target and merges the result into a running mean, so it
can be called repeatedly to refine an image.

Random numbers come from ti.random, whose state is per thread and seeded by
ti.init(random_seed=...).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=0)
    >>> from src.spheretrace.camera.pinhole import setup_camera
    >>> from src.spheretrace.core.integrator import (
    ...     get_image_numpy, render_image, setup_render_target
    ... )
    >>> from src.spheretrace.scene.default_scene import create_default_scene
    >>> from src.spheretrace.scene.manager import setup_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_scene(scene)
    >>> setup_camera(camera)
    >>> setup_render_target(camera.width, camera.height)
    >>> render_image(num_samples=25, max_depth=5)
    >>> image = get_image_numpy()  # (200, 200, 3) float64
"""

import logging
import math

import numpy as np
import taichi as ti

from src.spheretrace.camera.pinhole import get_camera_size, get_ray
from src.spheretrace.core.ray import vec3
from src.spheretrace.geometry.sphere import hit_point
from src.spheretrace.materials.emitter import get_emission
from src.spheretrace.materials.lambertian import ScatterModel, scatter_diffuse
from src.spheretrace.scene.intersection import get_background_color, intersect_scene

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum number of bounces of a path
MAX_DEPTH = 5

# Paths traced per pixel for a full render
SAMPLES_PER_PIXEL = 25

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running mean of all samples per pixel, indexed [x, y]
_color_buffer = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result slot for the single-ray kernels
_single_result = ti.Vector.field(3, dtype=ti.f64, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive.
        RuntimeError: If the dimensions exceed the preallocated buffers.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise RuntimeError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug(f"Render target set up: {width}x{height}")


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def release_render_target() -> None:
    """Mark the render target as not set up."""
    _render_target_initialized[None] = 0
    _image_width[None] = 0
    _image_height[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_matches_target() -> None:
    camera_size = get_camera_size()
    if camera_size == (0, 0):
        raise RuntimeError("Camera not set up. Call setup_camera() first.")
    if camera_size != get_image_dimensions():
        width, height = get_image_dimensions()
        raise RuntimeError(
            f"Camera size {camera_size[0]}x{camera_size[1]} does not match "
            f"render target {width}x{height}"
        )


def _check_sampling_args(num_samples: int, max_depth: int) -> None:
    if num_samples <= 0:
        raise ValueError(f"Sample count must be positive, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"Depth must be non-negative, got {max_depth}")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(model: ti.i32, point: vec3, normal: vec3):
    """Dispatch to the scatter function of a scatter model.

    Draws the two uniform variates the scatter needs.

    Returns:
        A tuple of (origin, direction, attenuation) for the continued path.
    """
    u1 = ti.random(ti.f64)
    u2 = ti.random(ti.f64)

    origin = point
    direction = normal
    attenuation = vec3(0.0, 0.0, 0.0)

    if model == int(ScatterModel.DIFFUSE):
        origin, direction, attenuation = scatter_diffuse(point, normal, u1, u2)

    return origin, direction, attenuation


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace(origin: vec3, direction: vec3, depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Iterative form of the recursive estimator: the product of the albedos
    met so far is carried as a throughput and applied to whatever ends the
    path.

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        depth: Number of bounces left. At depth 0 the background is returned
            without consuming random numbers.

    Returns:
        The radiance estimate for this path.
    """
    background = get_background_color()
    color = background
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Taichi has no break in ti.func loops
    active = 1

    for _bounce in range(depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction)

            if rec.hit == 0:
                color = throughput * background
                active = 0
            elif rec.is_light == 1:
                color = throughput * get_emission()
                active = 0
            else:
                new_origin, new_direction, attenuation = _scatter_material(
                    int(ScatterModel.DIFFUSE),
                    hit_point(ray_origin, ray_direction, rec.t),
                    rec.normal,
                )
                throughput *= attenuation
                ray_origin = new_origin
                ray_direction = new_direction

    # Bounce budget exhausted after the last scatter
    if active == 1:
        color = throughput * background

    return color


@ti.func
def multitrace(origin: vec3, direction: vec3, depth: ti.i32, sample_count: ti.i32) -> vec3:
    """Average sample_count independent traces of the same ray.

    sample_count must be positive.
    """
    total = vec3(0.0, 0.0, 0.0)
    for _sample in range(sample_count):
        total += trace(origin, direction, depth)
    return total / ti.cast(sample_count, ti.f64)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pass(width: ti.i32, height: ti.i32, depth: ti.i32, samples: ti.i32):
    """Trace samples paths per pixel and merge them into the running mean.

    Each pixel is owned by one thread; the mean is weighted by the number
    of samples already accumulated.
    """
    for i, j in ti.ndrange(width, height):
        ray = get_ray(i, j)
        color = multitrace(ray.origin, ray.direction, depth, samples)

        n_old = ti.cast(_sample_count[i, j], ti.f64)
        n_new = n_old + ti.cast(samples, ti.f64)
        _color_buffer[i, j] = (
            _color_buffer[i, j] * n_old + color * ti.cast(samples, ti.f64)
        ) / n_new
        _sample_count[i, j] += samples


@ti.kernel
def _render_single_pixel(pixel_x: ti.i32, pixel_y: ti.i32, depth: ti.i32, samples: ti.i32):
    # Single-iteration outer loop keeps the bounce loop serial
    for _ in range(1):
        ray = get_ray(pixel_x, pixel_y)
        _single_result[None] = multitrace(ray.origin, ray.direction, depth, samples)


@ti.kernel
def _multitrace_single(
    ox: ti.f64,
    oy: ti.f64,
    oz: ti.f64,
    dx: ti.f64,
    dy: ti.f64,
    dz: ti.f64,
    depth: ti.i32,
    samples: ti.i32,
):
    for _ in range(1):
        _single_result[None] = multitrace(vec3(ox, oy, oz), vec3(dx, dy, dz), depth, samples)


@ti.kernel
def _trace_single(
    ox: ti.f64, oy: ti.f64, oz: ti.f64, dx: ti.f64, dy: ti.f64, dz: ti.f64, depth: ti.i32
):
    for _ in range(1):
        _single_result[None] = trace(vec3(ox, oy, oz), vec3(dx, dy, dz), depth)


def _read_single_result() -> tuple[float, float, float]:
    c = _single_result[None]
    return (float(c[0]), float(c[1]), float(c[2]))


def _unit_direction(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    d = np.asarray(direction, dtype=np.float64)
    n = float(np.linalg.norm(d))
    if not math.isfinite(n) or n < 1e-12:
        raise ValueError(f"Ray direction must be a finite non-zero vector, got {direction}")
    d = d / n
    return (float(d[0]), float(d[1]), float(d[2]))


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Run trace() for a single ray in the uploaded scene.

    This is a Python-callable function for testing and inspection. For
    rendering, use render_image() which processes all pixels in parallel.

    Args:
        origin: Ray origin.
        direction: Ray direction (normalized before tracing).
        depth: Number of bounces allowed.

    Returns:
        Tuple of (R, G, B) radiance.

    Raises:
        ValueError: If the direction has zero length or depth is negative.
    """
    if depth < 0:
        raise ValueError(f"Depth must be non-negative, got {depth}")
    d = _unit_direction(direction)
    _trace_single(float(origin[0]), float(origin[1]), float(origin[2]), d[0], d[1], d[2], depth)
    return _read_single_result()


def multitrace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
    sample_count: int = SAMPLES_PER_PIXEL,
) -> tuple[float, float, float]:
    """Run multitrace() for a single ray in the uploaded scene.

    Raises:
        ValueError: If sample_count is not positive, depth is negative, or
            the direction has zero length.
    """
    _check_sampling_args(sample_count, depth)
    d = _unit_direction(direction)
    _multitrace_single(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        d[0],
        d[1],
        d[2],
        depth,
        sample_count,
    )
    return _read_single_result()


def render_pixel(
    pixel_x: int,
    pixel_y: int,
    num_samples: int = SAMPLES_PER_PIXEL,
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the color of one pixel of the uploaded camera.

    The render target is not touched.

    Args:
        pixel_x: Column index (0 = left).
        pixel_y: Row index (0 = top).
        num_samples: Number of paths to average.
        max_depth: Bounce budget of each path.

    Returns:
        Tuple of (R, G, B) linear color.

    Raises:
        ValueError: If num_samples is not positive or max_depth is negative.
        RuntimeError: If no camera has been set up.
    """
    _check_sampling_args(num_samples, max_depth)
    if get_camera_size() == (0, 0):
        raise RuntimeError("Camera not set up. Call setup_camera() first.")
    _render_single_pixel(pixel_x, pixel_y, max_depth, num_samples)
    return _read_single_result()


def render_image(num_samples: int = SAMPLES_PER_PIXEL, max_depth: int = MAX_DEPTH) -> None:
    """Render num_samples more paths for every pixel of the render target.

    Progressively accumulates into the color buffer. Can be called multiple
    times to add more samples for convergence.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Bounce budget of each path.

    Raises:
        ValueError: If num_samples is not positive or max_depth is negative.
        RuntimeError: If the render target or camera has not been set up, or
            their sizes differ.
    """
    _check_render_target_initialized()
    _check_camera_matches_target()
    _check_sampling_args(num_samples, max_depth)

    width, height = get_image_dimensions()
    _render_pass(width, height, max_depth, num_samples)

    logger.debug(f"Render pass: {width}x{height}, {num_samples} spp, depth {max_depth}")


def get_total_samples() -> int:
    """Get the total number of samples rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    Values are the linear per-pixel means, not clamped. Row 0 is the top
    row of the image, matching the camera's pixel convention.

    Returns:
        float64 array of shape (height, width, 3).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2)), dtype=np.float64)
