"""Core rendering module.

This module contains the fundamental building blocks of the path tracer:

Components:
    ray: Ray data structure, vector algebra and cosine-weighted sampling
    integrator: Path-transport estimator (trace, multitrace) and render target
    progressive: Batched sample accumulation with progress reporting

The core estimates the radiance along each camera ray by following diffuse
bounces through a scene of spheres until the path reaches a light, escapes
to the background, or runs out of its bounce budget.

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    build_onb_from_normal,
    cosine_direction,
    cross,
    dot,
    length,
    length_squared,
    local_to_world,
    make_ray,
    near_zero,
    normalize,
    sample_cosine_hemisphere,
    vec3,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.spheretrace.core.integrator or src.spheretrace.core.progressive.

__all__ = [
    "Ray",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "near_zero",
    "cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
]
