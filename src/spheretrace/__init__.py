"""A small stochastic path tracer for scenes of spheres, built on Taichi.

Each pixel's color is estimated by averaging random diffuse light paths
that end at a light, escape to the background, or run out of bounces.

Subpackages:
    core: Vector utilities, the path-transport estimator and render loop
    geometry: Sphere primitive and ray-sphere intersection
    materials: Fixed diffuse albedo and light emission
    scene: Scene description, upload and nearest-hit queries
    camera: Pinhole camera with ray generation
    preview: Color conversion and PNG export

Taichi must be initialized (see config.init_taichi) before importing any
module that declares Taichi fields.
"""

__version__ = "0.1.0"
