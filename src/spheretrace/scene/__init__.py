"""Scene module for scene description and ray-scene queries.

Components:
    manager: Immutable Geometry/Scene values, validation and upload
    intersection: GPU-side geometry storage and nearest-hit queries
    default_scene: The demo scene and camera

Scene data is organized for GPU access:
    - Structure-of-Arrays layout for sphere centers, radii and light flags
    - A single background color returned for rays that hit nothing
"""

from .default_scene import create_default_camera, create_default_scene
from .intersection import (
    MAX_GEOMETRIES,
    SceneHitRecord,
    add_geometry,
    clear_scene,
    get_background,
    get_background_color,
    get_geometry_count,
    intersect_scene,
    query_nearest_hit,
    set_background,
)
from .manager import Geometry, Scene, setup_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "MAX_GEOMETRIES",
    "add_geometry",
    "clear_scene",
    "set_background",
    "get_background",
    "get_background_color",
    "get_geometry_count",
    "intersect_scene",
    "query_nearest_hit",
    # Manager module
    "Geometry",
    "Scene",
    "setup_scene",
    # Default scene
    "create_default_scene",
    "create_default_camera",
]
