"""Lambertian (ideal diffuse) material.

Every non-emissive sphere in the scene uses the same diffuse surface with a
fixed albedo. Scatter directions are drawn with cosine-weighted hemisphere
sampling around the outward normal.

The Lambertian BRDF is:
    f_r(wi, wo) = albedo / pi

and cosine-weighted sampling has PDF:
    pdf(wi) = cos(theta) / pi

so the Monte Carlo weight of one bounce collapses to the albedo:
    weight = f_r * cos(theta) / pdf = albedo

No cosine factor is applied anywhere else in the estimator; doing so would
count it twice and darken the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.materials.lambertian import scatter_diffuse
    >>> # Use within a Taichi kernel:
    >>> # origin, direction, attenuation = scatter_diffuse(point, normal, u1, u2)
"""

from enum import IntEnum

import taichi as ti

from src.spheretrace.core.ray import near_zero, sample_cosine_hemisphere, vec3

# Fraction of incoming light re-emitted by the diffuse surface, per channel
MATERIAL_ALBEDO = vec3(0.95, 0.95, 0.95)

# Distance a scattered ray is pushed along its direction before tracing
RAY_EPSILON = 1e-4


class ScatterModel(IntEnum):
    """Scattering models known to the path tracer.

    Used for dispatch in the integrator. Only diffuse scattering exists
    today; new models are added here and handled in the integrator's
    scatter dispatch.
    """

    DIFFUSE = 0


@ti.func
def get_albedo() -> vec3:
    """Get the diffuse albedo inside a kernel."""
    return MATERIAL_ALBEDO


@ti.func
def scatter_diffuse(hit_point: vec3, normal: vec3, u1: ti.f64, u2: ti.f64):
    """Scatter a path diffusely off a surface.

    Args:
        hit_point: The point where the incoming ray hit the surface.
        normal: The outward unit normal at the hit point.
        u1: First uniform variate in [0, 1).
        u2: Second uniform variate in [0, 1).

    Returns:
        A tuple of (origin, direction, attenuation) where:
        - origin: Start of the scattered ray, offset by RAY_EPSILON along
          the scattered direction so it does not re-hit the same surface.
        - direction: The sampled unit direction.
        - attenuation: The per-channel weight of the bounce (the albedo).
    """
    direction = sample_cosine_hemisphere(normal, u1, u2)

    # Floating point can in principle collapse the sample; fall back to the normal
    if near_zero(direction):
        direction = normal

    origin = hit_point + RAY_EPSILON * direction
    return origin, direction, get_albedo()
