"""Camera module for primary ray generation.

Components:
    camera: Immutable look-at Camera description (no device state)
    pinhole: Device-side camera state and jittered ray generation

pinhole allocates Taichi fields; import it after
pathtracer.core.backend.init_backend().
"""

from .camera import Camera

__all__ = ["Camera"]
