"""The demo scene: a lit sphere next to a distant wall.

The scene holds three spheres under a grey sky:

    - a small light sphere hovering above the center,
    - a unit diffuse sphere at the origin,
    - a huge diffuse sphere whose near surface acts as a flat wall at
      x = WALL_DISTANCE.

The camera sits on the -Y axis looking at the origin with +Z up.

Example:
    >>> from src.spheretrace.scene.default_scene import create_default_scene
    >>> scene, camera = create_default_scene()
    >>> len(scene), scene.light_count
    (3, 1)
"""

from src.spheretrace.camera.pinhole import Camera
from src.spheretrace.scene.manager import Scene

# =============================================================================
# Default Scene Constants
# =============================================================================

BACKGROUND = (0.3, 0.3, 0.3)

LIGHT_CENTER = (0.0, 0.0, 2.0)
LIGHT_RADIUS = 0.5

SPHERE_CENTER = (0.0, 0.0, 0.0)
SPHERE_RADIUS = 1.0

# A sphere this large is locally indistinguishable from a plane
WALL_RADIUS = 100_000.0
WALL_DISTANCE = 2000.0

CAMERA_EYE = (0.0, -10.0, 0.0)
CAMERA_LOOK_AT = (0.0, 0.0, 0.0)
CAMERA_UP = (0.0, 0.0, 1.0)
# Full vertical field of view in radians
CAMERA_FOVY = 1.0

DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 200


def create_default_scene(
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
) -> tuple[Scene, Camera]:
    """Create the demo scene and its camera.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A tuple of (Scene, Camera).

    Raises:
        ValueError: If width or height is not positive.
    """
    scene = (
        Scene.empty(background=BACKGROUND)
        .with_light(LIGHT_CENTER, LIGHT_RADIUS)
        .with_sphere(SPHERE_CENTER, SPHERE_RADIUS)
        .with_sphere((WALL_RADIUS + WALL_DISTANCE, 0.0, 0.0), WALL_RADIUS)
    )

    camera = create_default_camera(width, height)
    return scene, camera


def create_default_camera(width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> Camera:
    """Create the demo camera at the given resolution."""
    return Camera(
        eye=CAMERA_EYE,
        look_at=CAMERA_LOOK_AT,
        up=CAMERA_UP,
        width=width,
        height=height,
        fovy=CAMERA_FOVY,
    )
