"""Render settings and Taichi runtime initialization.

Modules that declare Taichi fields allocate them at import time, so Taichi
must be initialized before they are imported:

    >>> from src.spheretrace.config import RenderSettings, init_taichi
    >>> settings = RenderSettings(width=320, height=240, seed=7, arch="cpu")
    >>> init_taichi(settings)
    'cpu'
    >>> from src.spheretrace.core.progressive import ProgressiveRenderer

All kernels run in double precision (default_fp=ti.f64).
"""

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

# Backends accepted by RenderSettings.arch
ARCHES = ("gpu", "cpu")


@dataclass(frozen=True)
class RenderSettings:
    """Parameters of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of paths averaged per pixel.
        max_depth: Bounce budget of every path.
        seed: Seed of Taichi's random number generator.
        arch: "gpu" (falls back to CPU when unavailable) or "cpu".

    Raises:
        ValueError: If any value is out of range.
    """

    width: int = 200
    height: int = 200
    samples_per_pixel: int = 25
    max_depth: int = 5
    seed: int = 0
    arch: str = "gpu"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.arch not in ARCHES:
            raise ValueError(f"arch must be one of {ARCHES}, got {self.arch!r}")


def init_taichi(settings: RenderSettings) -> str:
    """Initialize the Taichi runtime for rendering.

    Requesting "gpu" falls back to the CPU backend when no GPU backend can
    be initialized.

    Args:
        settings: Render settings providing the backend and seed.

    Returns:
        The backend actually used, "gpu" or "cpu".
    """
    if settings.arch == "gpu":
        try:
            ti.init(arch=ti.gpu, default_fp=ti.f64, random_seed=settings.seed)
            logger.debug("Taichi initialized on GPU")
            return "gpu"
        except Exception as e:
            logger.warning(f"GPU backend unavailable ({e}), falling back to CPU")

    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=settings.seed)
    logger.debug("Taichi initialized on CPU")
    return "cpu"
