"""Immutable scene description.

A Scene is an ordered tuple of SceneObjects (sphere + material) and a
background colour. It is built once, before rendering, and never changes
afterwards; every worker reads the same snapshot.

Object order matters: when two objects are hit at exactly the same
distance, the one added first wins.

Example:
    >>> from pathtracer.scene.scene import SceneBuilder
    >>> from pathtracer.materials.base import Material
    >>> builder = SceneBuilder(background=(0.68, 0.87, 0.96))
    >>> builder.add_sphere((0.0, -100.5, 5.0), 100.0, Material.lambert((0.5, 0.5, 0.5)))
    0
    >>> builder.add_light((0.0, 3.0, 5.0), 0.5, emission=(4.0, 4.0, 4.0))
    1
    >>> scene = builder.build()
    >>> scene.lights
    (1,)
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from pathtracer.core.errors import SceneValidationError
from pathtracer.geometry.sphere import SphereShape
from pathtracer.materials.base import Color, Material

# Maximum number of objects the device-side storage holds
MAX_OBJECTS = 1024


def _as_color(name: str, value: Any) -> Color:
    try:
        color = tuple(float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise SceneValidationError(f"{name} must be an RGB triple, got {value!r}") from exc
    if len(color) != 3:
        raise SceneValidationError(f"{name} must have 3 components, got {value!r}")
    if not all(math.isfinite(c) and c >= 0.0 for c in color):
        raise SceneValidationError(f"{name} must be finite and non-negative, got {value!r}")
    return color


@dataclass(frozen=True)
class SceneObject:
    """A sphere with its material.

    Attributes:
        shape: The sphere geometry.
        material: The surface material.
    """

    shape: SphereShape
    material: Material

    def __post_init__(self) -> None:
        if not isinstance(self.shape, SphereShape):
            raise SceneValidationError(f"Object shape must be a SphereShape, got {self.shape!r}")
        if not isinstance(self.material, Material):
            raise SceneValidationError(f"Object material must be a Material, got {self.material!r}")


@dataclass(frozen=True)
class Scene:
    """Ordered collection of objects plus the background colour.

    Attributes:
        objects: Scene objects in insertion order.
        background: Radiance returned by rays that escape the scene.
        lights: Indices of emissive objects (derived).

    Raises:
        SceneValidationError: If an entry is not a SceneObject, the object
            count exceeds MAX_OBJECTS, or the background is invalid.
    """

    objects: tuple[SceneObject, ...] = ()
    background: Color = (0.0, 0.0, 0.0)
    lights: tuple[int, ...] = field(init=False)

    def __post_init__(self) -> None:
        objects = tuple(self.objects)
        for obj in objects:
            if not isinstance(obj, SceneObject):
                raise SceneValidationError(f"Scene entries must be SceneObjects, got {obj!r}")
        if len(objects) > MAX_OBJECTS:
            raise SceneValidationError(
                f"Maximum number of objects ({MAX_OBJECTS}) exceeded: {len(objects)}"
            )
        object.__setattr__(self, "objects", objects)
        object.__setattr__(self, "background", _as_color("Background", self.background))
        object.__setattr__(
            self,
            "lights",
            tuple(i for i, obj in enumerate(objects) if obj.material.is_emissive),
        )

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(self.objects)

    @property
    def is_empty(self) -> bool:
        return len(self.objects) == 0


class SceneBuilder:
    """Mutable helper that accumulates objects and produces a Scene.

    The builder validates each object as it is added; ``build`` freezes the
    current contents into a new Scene and leaves the builder reusable.
    """

    def __init__(self, background: Color = (0.0, 0.0, 0.0)) -> None:
        self._objects: list[SceneObject] = []
        self._background = _as_color("Background", background)

    def set_background(self, color: Color) -> "SceneBuilder":
        self._background = _as_color("Background", color)
        return self

    def add(self, obj: SceneObject) -> int:
        """Append an object and return its index."""
        if not isinstance(obj, SceneObject):
            raise SceneValidationError(f"Expected a SceneObject, got {obj!r}")
        if len(self._objects) >= MAX_OBJECTS:
            raise SceneValidationError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
        self._objects.append(obj)
        return len(self._objects) - 1

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Material,
    ) -> int:
        """Add a sphere with the given material.

        Returns:
            The index of the added object.
        """
        return self.add(SceneObject(SphereShape(center=center, radius=radius), material))

    def add_light(
        self,
        center: tuple[float, float, float],
        radius: float,
        emission: Color,
    ) -> int:
        """Add a spherical light as an emissive Lambert sphere."""
        return self.add_sphere(center, radius, Material.emitter(emission))

    def build(self) -> Scene:
        return Scene(objects=tuple(self._objects), background=self._background)

    def __len__(self) -> int:
        return len(self._objects)
