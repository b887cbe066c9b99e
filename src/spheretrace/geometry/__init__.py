"""Geometry module for shape primitives.

This module provides the sphere primitive and its intersection routine:

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) so they can be called
from the rendering kernels. Scenes are small and unstructured, so there is
no acceleration structure; the scene module tests every sphere in turn.

Ray-object intersection follows the pattern:
    isect = intersect_sphere(ray_origin, ray_direction, sphere)
    if isect.hit == 1: ... isect.t, isect.normal ...
"""

from .sphere import Intersection, Sphere, hit_point, intersect_sphere, validate_sphere

__all__ = [
    "Sphere",
    "Intersection",
    "hit_point",
    "intersect_sphere",
    "validate_sphere",
]
