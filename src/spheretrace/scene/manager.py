"""Scene description and upload.

A Scene is an immutable value: an ordered tuple of Geometry (spheres tagged
as light or not) plus a background color. Scenes are built on the host,
validated at construction, and uploaded once per render with setup_scene().
After the upload the GPU-side fields are only read.

Scenes can be converted to and from plain dictionaries, which is the format
the example CLI reads from JSON files:

    {
        "background": [0.3, 0.3, 0.3],
        "geometries": [
            {"center": [0, 0, 2], "radius": 0.5, "is_light": true},
            {"center": [0, 0, 0], "radius": 1.0}
        ]
    }

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.spheretrace.scene.manager import Scene, setup_scene
    >>> scene = (
    ...     Scene.empty(background=(0.3, 0.3, 0.3))
    ...     .with_light((0.0, 0.0, 2.0), 0.5)
    ...     .with_sphere((0.0, 0.0, 0.0), 1.0)
    ... )
    >>> setup_scene(scene)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from src.spheretrace.geometry.sphere import validate_sphere
from src.spheretrace.scene.intersection import (
    MAX_GEOMETRIES,
    add_geometry,
    clear_scene,
    get_geometry_count,
    set_background,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Geometry:
    """A sphere tagged with whether it emits light.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (> 0).
        is_light: True for light sources, which end paths with the fixed
            emission instead of scattering.

    Raises:
        ValueError: If the radius is not positive or a value is not finite.
    """

    center: tuple[float, float, float]
    radius: float
    is_light: bool = False

    def __post_init__(self) -> None:
        validate_sphere(self.center, self.radius)
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))
        object.__setattr__(self, "radius", float(self.radius))

    def to_dict(self) -> dict[str, Any]:
        """Export the geometry to a dictionary."""
        return {
            "center": list(self.center),
            "radius": self.radius,
            "is_light": self.is_light,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Geometry":
        """Load a geometry from a dictionary.

        Raises:
            ValueError: If the center or radius is missing or invalid.
        """
        if "center" not in data or "radius" not in data:
            raise ValueError(f"Geometry needs 'center' and 'radius', got {sorted(data)}")
        center_list = data["center"]
        if len(center_list) != 3:
            raise ValueError(f"Geometry center must have 3 components, got {center_list}")
        center: tuple[float, float, float] = (
            float(center_list[0]),
            float(center_list[1]),
            float(center_list[2]),
        )
        return cls(
            center=center,
            radius=float(data["radius"]),
            is_light=bool(data.get("is_light", False)),
        )


@dataclass(frozen=True)
class Scene:
    """An ordered collection of geometries and a background color.

    Order only matters when two geometries are hit at exactly the same
    distance; the first one wins.

    Attributes:
        background: Color returned for rays that hit nothing.
        geometries: The spheres in the scene.

    Raises:
        ValueError: If the background is not a finite RGB triple.
        RuntimeError: If the scene holds more geometries than the GPU-side
            storage supports.
    """

    background: tuple[float, float, float] = (0.0, 0.0, 0.0)
    geometries: tuple[Geometry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.background) != 3 or not all(math.isfinite(c) for c in self.background):
            raise ValueError(f"Background must be a finite RGB triple, got {self.background}")
        if len(self.geometries) > MAX_GEOMETRIES:
            raise RuntimeError(
                f"Scene has {len(self.geometries)} geometries, "
                f"maximum is {MAX_GEOMETRIES}"
            )
        object.__setattr__(self, "background", tuple(float(c) for c in self.background))
        object.__setattr__(self, "geometries", tuple(self.geometries))

    @classmethod
    def empty(cls, background: tuple[float, float, float] = (0.0, 0.0, 0.0)) -> "Scene":
        """Create a scene with no geometry."""
        return cls(background=background)

    def with_sphere(self, center: tuple[float, float, float], radius: float) -> "Scene":
        """Return a new scene with a diffuse sphere appended."""
        return self._with(Geometry(center=center, radius=radius, is_light=False))

    def with_light(self, center: tuple[float, float, float], radius: float) -> "Scene":
        """Return a new scene with a light sphere appended."""
        return self._with(Geometry(center=center, radius=radius, is_light=True))

    def _with(self, geometry: Geometry) -> "Scene":
        return Scene(background=self.background, geometries=self.geometries + (geometry,))

    @property
    def light_count(self) -> int:
        """Number of light-tagged geometries."""
        return sum(1 for g in self.geometries if g.is_light)

    def __len__(self) -> int:
        return len(self.geometries)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {
            "background": list(self.background),
            "geometries": [g.to_dict() for g in self.geometries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with optional 'background' and 'geometries' keys.

        Raises:
            ValueError: If any entry is invalid.
        """
        background_list = data.get("background", [0.0, 0.0, 0.0])
        if len(background_list) != 3:
            raise ValueError(f"Background must have 3 components, got {background_list}")
        background: tuple[float, float, float] = (
            float(background_list[0]),
            float(background_list[1]),
            float(background_list[2]),
        )
        geometries = tuple(Geometry.from_dict(g) for g in data.get("geometries", []))
        return cls(background=background, geometries=geometries)


def setup_scene(scene: Scene) -> None:
    """Upload a scene to the GPU-side scene storage.

    Replaces whatever scene was uploaded before. Must be called before
    rendering.

    Args:
        scene: The scene to upload.
    """
    clear_scene()
    set_background(scene.background)
    for geometry in scene.geometries:
        add_geometry(geometry.center, geometry.radius, geometry.is_light)

    logger.debug(
        f"Scene set up: {get_geometry_count()} geometries "
        f"({scene.light_count} lights), background={scene.background}"
    )
