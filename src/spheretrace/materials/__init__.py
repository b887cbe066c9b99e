"""Materials module for surface response.

The renderer has exactly two surface behaviors:

Components:
    lambertian: Ideal diffuse reflection with a fixed albedo
    emitter: Fixed-radiance light sources

Diffuse surfaces are importance sampled with a cosine-weighted hemisphere
distribution, which makes the per-bounce weight equal to the albedo.
"""

from .emitter import LIGHT_EMISSION, get_emission
from .lambertian import (
    MATERIAL_ALBEDO,
    RAY_EPSILON,
    ScatterModel,
    get_albedo,
    scatter_diffuse,
)

__all__ = [
    # Lambertian
    "MATERIAL_ALBEDO",
    "RAY_EPSILON",
    "ScatterModel",
    "get_albedo",
    "scatter_diffuse",
    # Emitter
    "LIGHT_EMISSION",
    "get_emission",
]
