"""Pinhole camera model for perspective projection ray generation.

The camera builds an orthonormal basis (view, up, right) from an eye point,
a look-at point and an approximate up vector:

    view  = normalize(look_at - eye)
    right = normalize(view x up)
    up'   = right x view

so the basis is exactly orthonormal even when the supplied up vector is not
perpendicular to the view direction.

Field of view convention: ``fovy`` is the full vertical field of view in
radians. The up vector is scaled by tan(fovy / 2) and the right vector by
tan(fovy / 2) * width / height before they are uploaded, so a ray through
the top or bottom edge of the image makes an angle of fovy / 2 with the view
axis.

Pixel convention: pixel (0, 0) is the top-left corner of the image. Column
indices increase to the right and row indices increase downward:

    x_n = 2 * pixel_x / width - 1
    y_n = 1 - 2 * pixel_y / height

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.camera.pinhole import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     eye=(0.0, -10.0, 0.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     up=(0.0, 0.0, 1.0),
    ...     width=200,
    ...     height=200,
    ...     fovy=1.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(100, 100)  # Ray through the image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.spheretrace.core.ray import Ray, make_ray, vec3

logger = logging.getLogger(__name__)

# Basis vectors shorter than this are treated as degenerate
_DEGENERATE_EPSILON = 1e-12

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        eye: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        up: Approximate up direction. Must not be parallel to the view
            direction; it is re-orthogonalized against it.
        width: Image width in pixels.
        height: Image height in pixels.
        fovy: Full vertical field of view in radians, in (0, pi).

    Raises:
        ValueError: If the parameters describe a degenerate camera.
    """

    eye: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float]
    width: int
    height: int
    fovy: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Camera dimensions must be positive, got {self.width}x{self.height}"
            )
        if not 0.0 < self.fovy < math.pi:
            raise ValueError(f"Camera fovy must be in (0, pi) radians, got {self.fovy}")
        for name in ("eye", "look_at", "up"):
            vector = getattr(self, name)
            if len(vector) != 3 or not all(math.isfinite(c) for c in vector):
                raise ValueError(f"Camera {name} must be 3 finite components, got {vector}")

        view =np.subtract(self.look_at, self.eye).astype(np.float64)
        if np.linalg.norm(view) < _DEGENERATE_EPSILON:
            raise ValueError(f"Camera look_at must differ from eye, got {self.eye}")
        if np.linalg.norm(np.asarray(self.up, dtype=np.float64)) < _DEGENERATE_EPSILON:
            raise ValueError("Camera up vector must not be zero-length")

        right = np.cross(view / np.linalg.norm(view), self.up)
        if np.linalg.norm(right) < _DEGENERATE_EPSILON:
            raise ValueError(
                f"Camera up vector {self.up} is parallel to the view direction"
            )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Compute the orthonormal camera basis.

        Returns:
            A tuple (view, up, right) of unit float64 vectors.
        """
        view = np.subtract(self.look_at, self.eye).astype(np.float64)
        view = view / np.linalg.norm(view)

        right = np.cross(view, np.asarray(self.up, dtype=np.float64))
        right = right / np.linalg.norm(right)

        up = np.cross(right, view)
        return view, up, right

    def scaled_basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Compute the basis with the field of view folded in.

        Returns:
            A tuple (view, scaled_up, scaled_right).
        """
        view, up, right = self.basis()
        half_height = math.tan(self.fovy / 2.0)
        return view, up * half_height, right * half_height * self.aspect_ratio

    def ray_direction(self, pixel_x: float, pixel_y: float) -> np.ndarray:
        """Compute the primary ray direction for a pixel on the host.

        Mirrors get_ray() so camera framing can be inspected without
        launching a kernel. Coordinates outside the image are extrapolated.

        Args:
            pixel_x: Column index (0 = left).
            pixel_y: Row index (0 = top).

        Returns:
            The unit direction as a float64 array of shape (3,).
        """
        view, scaled_up, scaled_right = self.scaled_basis()
        x_n = 2.0 * pixel_x / self.width - 1.0
        y_n = 1.0 - 2.0 * pixel_y / self.height
        d = view + x_n * scaled_right + y_n * scaled_up
        return d / np.linalg.norm(d)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_eye = ti.Vector.field(3, dtype=ti.f64, shape=())

# Orthonormal basis vectors
_camera_view = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f64, shape=())

# Basis vectors scaled by the field of view
_camera_scaled_up = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_scaled_right = ti.Vector.field(3, dtype=ti.f64, shape=())

_camera_width = ti.field(dtype=ti.i32, shape=())
_camera_height = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload a camera to the GPU-side camera state.

    Must be called before rendering. The uploaded state is read-only while
    kernels run.

    Args:
        camera: Camera configuration with position, orientation and FOV.
    """
    view, up, right = camera.basis()
    _, scaled_up, scaled_right = camera.scaled_basis()

    _camera_eye[None] = [float(c) for c in camera.eye]
    _camera_view[None] = view.tolist()
    _camera_up[None] = up.tolist()
    _camera_right[None] = right.tolist()
    _camera_scaled_up[None] = scaled_up.tolist()
    _camera_scaled_right[None] = scaled_right.tolist()
    _camera_width[None] = camera.width
    _camera_height[None] = camera.height

    logger.debug(
        f"Camera set up: eye={camera.eye} {camera.width}x{camera.height} fovy={camera.fovy:.4f}"
    )


def clear_camera() -> None:
    """Forget the uploaded camera.

    Rendering after this raises until setup_camera() is called again.
    """
    _camera_width[None] = 0
    _camera_height[None] = 0


def get_camera_size() -> tuple[int, int]:
    """Get the (width, height) of the uploaded camera, (0, 0) if none."""
    return int(_camera_width[None]), int(_camera_height[None])


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(pixel_x: ti.i32, pixel_y: ti.i32) -> Ray:
    """Generate the primary ray through a pixel.

    This function is designed to be called from within Taichi kernels.

    Args:
        pixel_x: Column index (0 = left).
        pixel_y: Row index (0 = top).

    Returns:
        A Ray starting at the eye with a unit direction.
    """
    x_n = 2.0 * ti.cast(pixel_x, ti.f64) / ti.cast(_camera_width[None], ti.f64) - 1.0
    y_n = 1.0 - 2.0 * ti.cast(pixel_y, ti.f64) / ti.cast(_camera_height[None], ti.f64)
    d = _camera_view[None] + x_n * _camera_scaled_right[None] + y_n * _camera_scaled_up[None]
    return make_ray(_camera_eye[None], d)


@ti.kernel
def _ray_direction_kernel(pixel_x: ti.i32, pixel_y: ti.i32) -> vec3:
    ray = get_ray(pixel_x, pixel_y)
    return ray.direction


def get_ray_direction(pixel_x: int, pixel_y: int) -> tuple[float, float, float]:
    """Python-callable wrapper around get_ray() for the uploaded camera.

    Args:
        pixel_x: Column index (0 = left).
        pixel_y: Row index (0 = top).

    Returns:
        The unit ray direction as a tuple.
    """
    d = _ray_direction_kernel(pixel_x, pixel_y)
    return (float(d[0]), float(d[1]), float(d[2]))


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, ...]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with eye, view, up, right, scaled_up, scaled_right and
        size (width, height).
    """

    def _vec(field: "ti.MatrixField") -> tuple[float, float, float]:
        v = field[None]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "eye": _vec(_camera_eye),
        "view": _vec(_camera_view),
        "up": _vec(_camera_up),
        "right": _vec(_camera_right),
        "scaled_up": _vec(_camera_scaled_up),
        "scaled_right": _vec(_camera_scaled_right),
        "size": (int(_camera_width[None]), int(_camera_height[None])),
    }
