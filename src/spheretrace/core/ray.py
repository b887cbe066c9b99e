"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the small set of vector helpers
the rest of the renderer is built on. Everything here runs inside Taichi
kernels and works in double precision, so the renderer must be initialized
with ``default_fp=ti.f64`` (see ``src.spheretrace.config.init_taichi``).

Random numbers are never drawn here: the sampling helpers take their uniform
variates as arguments, which keeps them deterministic and testable.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.core.ray import make_ray, vec3
    >>> @ti.kernel
    ... def direction() -> vec3:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(3.0, 0.0, 4.0))
    ...     return ray.direction
"""

import taichi as ti
import taichi.math as tm

# Double precision 3-vector used for points, directions and colors
vec3 = ti.types.vector(3, ti.f64)

# Vectors shorter than this are treated as zero-length by normalize()
NORMALIZE_EPSILON = 1e-12


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Callers normalize it
            before constructing the ray.
    """

    origin: vec3
    direction: vec3


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from an origin and an unnormalized direction.

    The direction is normalized here so the unit-length invariant holds at
    every call site that builds rays from vector arithmetic.
    """
    return Ray(origin=origin, direction=normalize(direction))


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f64:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v. Vectors shorter than
        NORMALIZE_EPSILON are returned unchanged instead of being divided
        by (nearly) zero.
    """
    n = length(v)
    result = v
    if n > NORMALIZE_EPSILON:
        result = v / n
    return result


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are within 1e-8 of zero, else 0."""
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Cosine-weighted Hemisphere Sampling
# =============================================================================


@ti.func
def cosine_direction(u1: ti.f64, u2: ti.f64) -> vec3:
    """Map two uniform variates to a cosine-weighted direction (z-up).

    With r = sqrt(u1) and theta = 2*pi*u2, the point (r cos theta,
    r sin theta) is uniform on the unit disk; projecting it up onto the
    hemisphere gives a direction with PDF cos(theta) / pi.

    Args:
        u1: Uniform variate in [0, 1), controls the polar angle.
        u2: Uniform variate in [0, 1), controls the azimuth.

    Returns:
        A unit direction in the local frame whose z axis is the normal.
    """
    r = ti.sqrt(u1)
    theta = 2.0 * tm.pi * u2
    x = r * ti.cos(theta)
    y = r * ti.sin(theta)
    z = ti.sqrt(ti.max(0.0, 1.0 - u1))
    return vec3(x, y, z)


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis (tangent, binormal, normal).

    The tangent is normal x +X, or normal x +Y when the normal is nearly
    parallel to the X axis, so the cross product never degenerates.

    Args:
        normal: The surface normal (unit length).

    Returns:
        A tuple (tangent, binormal, normal) forming a right-handed basis.
    """
    axis = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        axis = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(normal, axis))
    binormal = cross(normal, tangent)
    return tangent, binormal, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, binormal: vec3, normal: vec3) -> vec3:
    """Transform a direction from the local (z-up) frame to world space."""
    return local_dir.x * tangent + local_dir.y * binormal + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3, u1: ti.f64, u2: ti.f64) -> vec3:
    """Cosine-weighted hemisphere sample around a normal.

    Args:
        normal: The surface normal defining the hemisphere (unit length).
        u1: First uniform variate in [0, 1).
        u2: Second uniform variate in [0, 1).

    Returns:
        The sampled world-space direction, normalized.
    """
    local_dir = cosine_direction(u1, u2)
    tangent, binormal, n = build_onb_from_normal(normal)
    return normalize(local_to_world(local_dir, tangent, binormal, n))
