"""Scene-level ray intersection testing.

The scene stores its spheres in Taichi fields (Structure of Arrays layout)
together with a per-sphere light flag and the background color. A query
tests every sphere in turn and keeps the nearest hit; there is no
acceleration structure.

Ties are resolved by iteration order: a later sphere replaces the current
nearest hit only when its distance is strictly smaller.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.scene.intersection import (
    ...     add_geometry, clear_scene, intersect_scene, set_background
    ... )
    >>> clear_scene()
    >>> set_background((0.3, 0.3, 0.3))
    >>> add_geometry((0.0, 0.0, 2.0), 0.5, is_light=True)
    >>> add_geometry((0.0, 0.0, 0.0), 1.0, is_light=False)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti

from src.spheretrace.core.ray import normalize, vec3
from src.spheretrace.geometry.sphere import Sphere, intersect_sphere


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if any geometry was hit, 0 otherwise.
        t: Distance to the nearest hit. Only valid if hit == 1.
        normal: Outward unit normal at the hit. Only valid if hit == 1.
        geometry_index: Index of the hit geometry, -1 on a miss.
        is_light: 1 if the hit geometry is a light source.
    """

    hit: ti.i32
    t: ti.f64
    normal: vec3
    geometry_index: ti.i32
    is_light: ti.i32


# Maximum number of geometries supported in the scene
MAX_GEOMETRIES = 1024

# Initial "nearest" distance; every real hit is closer
T_MAX = 1e30

# Geometry storage: Structure of Arrays layout
geometry_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_GEOMETRIES)
geometry_radii = ti.field(dtype=ti.f64, shape=MAX_GEOMETRIES)
geometry_is_light = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
num_geometries = ti.field(dtype=ti.i32, shape=())

# Color returned for rays that hit nothing
background_color = ti.Vector.field(3, dtype=ti.f64, shape=())


def clear_scene() -> None:
    """Remove all geometry and reset the background to black.

    The field data is not cleared but will be overwritten when new
    geometries are added.
    """
    num_geometries[None] = 0
    background_color[None] = [0.0, 0.0, 0.0]


def set_background(color: tuple[float, float, float]) -> None:
    """Set the color returned for rays that escape the scene."""
    background_color[None] = [float(color[0]), float(color[1]), float(color[2])]


def get_background() -> tuple[float, float, float]:
    """Get the current background color."""
    c = background_color[None]
    return (float(c[0]), float(c[1]), float(c[2]))


def add_geometry(
    center: tuple[float, float, float],
    radius: float,
    is_light: bool = False,
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (validated by the caller).
        is_light: Whether the sphere is a light source.

    Returns:
        The index of the added geometry.

    Raises:
        RuntimeError: If the maximum number of geometries is exceeded.
    """
    idx = num_geometries[None]
    if idx >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")
    geometry_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    geometry_radii[idx] = float(radius)
    geometry_is_light[idx] = 1 if is_light else 0
    num_geometries[None] = idx + 1
    return idx


def get_geometry_count() -> int:
    """Get the number of geometries in the scene."""
    return int(num_geometries[None])


@ti.func
def get_background_color() -> vec3:
    """Get the background color inside a kernel."""
    return background_color[None]


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        normal=vec3(0.0, 0.0, 0.0),
        geometry_index=-1,
        is_light=0,
    )


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHitRecord:
    """Find the nearest geometry hit by a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record when the ray
        hits nothing (always the case for an empty scene).
    """
    closest_t = T_MAX
    result = _make_miss_record()

    for i in range(num_geometries[None]):
        sphere = Sphere(center=geometry_centers[i], radius=geometry_radii[i])
        isect = intersect_sphere(ray_origin, ray_direction, sphere)
        if isect.hit == 1 and isect.t < closest_t:
            closest_t = isect.t
            result = SceneHitRecord(
                hit=1,
                t=isect.t,
                normal=isect.normal,
                geometry_index=i,
                is_light=geometry_is_light[i],
            )

    return result


# =============================================================================
# Host-side Queries
# =============================================================================

_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f64, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f64, shape=())
_query_index = ti.field(dtype=ti.i32, shape=())
_query_is_light = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_kernel(ox: ti.f64, oy: ti.f64, oz: ti.f64, dx: ti.f64, dy: ti.f64, dz: ti.f64):
    # Single-iteration outer loop keeps the scan inside serial
    for _ in range(1):
        rec = intersect_scene(vec3(ox, oy, oz), normalize(vec3(dx, dy, dz)))
        _query_hit[None] = rec.hit
        _query_t[None] = rec.t
        _query_normal[None] = rec.normal
        _query_index[None] = rec.geometry_index
        _query_is_light[None] = rec.is_light


def query_nearest_hit(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> dict | None:
    """Run intersect_scene for a single ray from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction (normalized before the query).

    Returns:
        None on a miss, otherwise a dict with keys "t", "normal",
        "geometry_index" and "is_light".
    """
    _query_kernel(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
    )
    if _query_hit[None] == 0:
        return None
    n = _query_normal[None]
    return {
        "t": float(_query_t[None]),
        "normal": (float(n[0]), float(n[1]), float(n[2])),
        "geometry_index": int(_query_index[None]),
        "is_light": bool(_query_is_light[None]),
    }
