"""Light source emission.

Spheres tagged as lights end a path with a fixed radiance. Lights do not
scatter, so a path that reaches one contributes throughput * emission and
stops there.
"""

import taichi as ti

from src.spheretrace.core.ray import vec3

# Radiance emitted by every light-tagged sphere (exceeds 1.0 on purpose)
LIGHT_EMISSION = vec3(2.0, 2.0, 2.0)


@ti.func
def get_emission() -> vec3:
    """Get the light emission inside a kernel."""
    return LIGHT_EMISSION
