"""Look-at camera description.

The camera is described by a position, a look-at target, a vertical field
of view and an up hint. Its orthonormal basis is derived once, on
construction:

    forward = normalize(target - position)
    right   = normalize(cross(forward, up_hint))
    up      = cross(right, forward)

This module holds no device state; ``pathtracer.camera.pinhole`` copies a
Camera into Taichi fields for ray generation.

Example:
    >>> from pathtracer.camera.camera import Camera
    >>> camera = Camera(position=(0.0, 1.25, 0.0), target=(0.0, 1.25, 5.0), vfov=60.0)
    >>> camera.forward
    (0.0, 0.0, 1.0)
"""

import math
from dataclasses import dataclass, field

import numpy as np

from pathtracer.core.errors import SceneValidationError

Vec3Tuple = tuple[float, float, float]


@dataclass(frozen=True)
class Camera:
    """Immutable look-at pinhole camera.

    Attributes:
        position: Camera position in world space.
        target: Point the camera looks at.
        vfov: Vertical field of view in degrees, in (0, 180).
        up: Up hint; must not be parallel to the view direction.
        forward, right, true_up: Derived orthonormal basis.

    Raises:
        SceneValidationError: If position equals target, the field of view
            is out of range, or the up hint is parallel to the view.
    """

    position: Vec3Tuple
    target: Vec3Tuple
    vfov: float = 60.0
    up: Vec3Tuple = (0.0, 1.0, 0.0)
    forward: Vec3Tuple = field(init=False)
    right: Vec3Tuple = field(init=False)
    true_up: Vec3Tuple = field(init=False)

    def __post_init__(self) -> None:
        position = np.asarray(self.position, dtype=np.float64)
        target = np.asarray(self.target, dtype=np.float64)
        up_hint = np.asarray(self.up, dtype=np.float64)

        for name, vec in (("position", position), ("target", target), ("up", up_hint)):
            if vec.shape != (3,) or not np.all(np.isfinite(vec)):
                raise SceneValidationError(f"Camera {name} must be a finite 3-vector")

        if not (0.0 < self.vfov < 180.0):
            raise SceneValidationError(f"Camera vfov must be in (0, 180) degrees, got {self.vfov}")

        view = target - position
        view_len = np.linalg.norm(view)
        if view_len < 1e-12:
            raise SceneValidationError("Camera position and target must differ")
        forward = view / view_len

        right = np.cross(forward, up_hint)
        right_len = np.linalg.norm(right)
        if right_len < 1e-8:
            raise SceneValidationError("Camera up vector must not be parallel to the view direction")
        right = right / right_len

        true_up = np.cross(right, forward)

        object.__setattr__(self, "position", tuple(float(c) for c in position))
        object.__setattr__(self, "target", tuple(float(c) for c in target))
        object.__setattr__(self, "up", tuple(float(c) for c in up_hint))
        object.__setattr__(self, "vfov", float(self.vfov))
        object.__setattr__(self, "forward", tuple(float(c) for c in forward))
        object.__setattr__(self, "right", tuple(float(c) for c in right))
        object.__setattr__(self, "true_up", tuple(float(c) for c in true_up))

    @property
    def half_height(self) -> float:
        """tan(vfov / 2): half extent of the image plane at unit distance."""
        return math.tan(math.radians(self.vfov) / 2.0)

    def to_dict(self) -> dict:
        return {
            "position": list(self.position),
            "target": list(self.target),
            "fov": self.vfov,
            "up": list(self.up),
        }

