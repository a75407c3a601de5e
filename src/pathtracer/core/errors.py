"""Exception types raised at the Python boundary of the renderer.

Taichi functions never raise. Numerical degeneracies inside a path (zero
length directions, non-finite throughput) are handled as local absorption.
Only scene construction and runtime setup report errors, and both are fatal.
"""


class SceneValidationError(ValueError):
    """A scene, object, material, shape or camera description is invalid."""


class RenderError(RuntimeError):
    """The render backend or render state cannot support the request."""
