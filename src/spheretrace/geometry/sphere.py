"""Sphere primitive and ray-sphere intersection.

The intersection solves |origin + t * direction - center|^2 = radius^2 for
a unit-length direction, which lets the leading coefficient of the quadratic
drop out:

    oc   = origin - center
    b    = dot(direction, oc)
    c    = dot(oc, oc) - radius^2
    disc = b^2 - c
    t    = -b -/+ sqrt(disc)

The nearest positive root wins. A ray starting inside the sphere has a
negative near root and therefore reports the exit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.geometry.sphere import Sphere, intersect_sphere
    >>> # Use intersect_sphere within a Taichi kernel
"""

import math

import taichi as ti

from src.spheretrace.core.ray import dot, length_squared, normalize, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (strictly positive).
    """

    center: vec3
    radius: ti.f64


@ti.dataclass
class Intersection:
    """Result of a ray-sphere query.

    The hit point is not stored; recompute it with hit_point() from the ray
    that produced the intersection.

    Attributes:
        hit: 1 if the ray hit the sphere, 0 otherwise.
        t: Distance along the ray to the hit (> 0). Only valid if hit == 1.
        normal: Unit surface normal at the hit, always pointing away from
            the sphere center. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f64
    normal: vec3


@ti.func
def hit_point(origin: vec3, direction: vec3, t: ti.f64) -> vec3:
    """Recover the hit point origin + t * direction."""
    return origin + t * direction


@ti.func
def intersect_sphere(origin: vec3, direction: vec3, sphere: Sphere) -> Intersection:
    """Test a ray against a sphere.

    Args:
        origin: The starting point of the ray.
        direction: The ray direction. Must be unit length.
        sphere: The sphere to test against.

    Returns:
        An Intersection; check its hit field. Tangent rays (disc == 0) and
        origins exactly on the surface are reported as ordinary hits.
    """
    oc = origin - sphere.center
    b = dot(direction, oc)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = b * b - c

    did_hit = 0
    hit_t = 0.0
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t1 = -b - sqrt_d
        t2 = -b + sqrt_d

        # t2 < 0 means both roots are behind the origin
        if t2 >= 0.0:
            t = t2
            if t1 > 0.0:
                t = t1
            if t > 0.0:
                did_hit = 1
                hit_t = t
                hit_normal = normalize(hit_point(origin, direction, t) - sphere.center)

    return Intersection(hit=did_hit, t=hit_t, normal=hit_normal)


def validate_sphere(center: tuple[float, float, float], radius: float) -> None:
    """Check host-side sphere parameters before they reach the GPU.

    Raises:
        ValueError: If the radius is not strictly positive or any value is
            not finite.
    """
    if len(center) != 3:
        raise ValueError(f"Sphere center must have 3 components, got {len(center)}")
    if not all(math.isfinite(c) for c in center):
        raise ValueError(f"Sphere center must be finite, got {center}")
    if not math.isfinite(radius) or radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
