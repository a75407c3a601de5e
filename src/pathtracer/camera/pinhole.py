"""Pinhole camera ray generation.

setup_camera copies a Camera basis and the image plane extents into Taichi
fields; get_ray_jittered then builds primary rays inside kernels.

Image coordinates have their origin in the TOP-LEFT corner: row 0 is the top
of the image and rows grow downward.

For pixel (col, row) and jitter (jx, jy) in [0, 1):

    u = (col + jx) / W,  v = (row + jy) / H
    ndc_x = 2u - 1,      ndc_y = 1 - 2v
    dir = normalize(forward + ndc_x * aspect * tan(fov/2) * right
                            + ndc_y * tan(fov/2) * up)

Example:
    >>> from pathtracer.camera.camera import Camera
    >>> from pathtracer.camera.pinhole import setup_camera
    >>> camera = Camera(position=(0.0, 1.25, 0.0), target=(0.0, 1.25, 5.0), vfov=60.0)
    >>> setup_camera(camera, aspect_ratio=1.0)
"""

from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import Camera
from pathtracer.core.errors import SceneValidationError
from pathtracer.core.ray import T_MAX, T_MIN, Ray, make_ray
from pathtracer.core.sampler import DIM_CAMERA_X, DIM_CAMERA_Y, Sampler, sample_1d

vec3 = tm.vec3

# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())

# Half extents of the image plane at unit distance
_half_width = ti.field(dtype=ti.f32, shape=())
_half_height = ti.field(dtype=ti.f32, shape=())

_camera_ready = ti.field(dtype=ti.i32, shape=())


def setup_camera(camera: Camera, aspect_ratio: float) -> None:
    """Write the camera basis and image plane extents into the device fields.

    Args:
        camera: The camera to use.
        aspect_ratio: Image width divided by height.
    """
    if aspect_ratio <= 0.0:
        raise SceneValidationError(f"Aspect ratio must be positive, got {aspect_ratio}")

    half_h = camera.half_height
    _camera_origin[None] = list(camera.position)
    _camera_forward[None] = list(camera.forward)
    _camera_right[None] = list(camera.right)
    _camera_up[None] = list(camera.true_up)
    _half_height[None] = half_h
    _half_width[None] = aspect_ratio * half_h
    _camera_ready[None] = 1


def clear_camera() -> None:
    _camera_ready[None] = 0


def is_camera_ready() -> bool:
    return bool(_camera_ready[None])


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    Args:
        u: Horizontal coordinate in [0, 1], left to right.
        v: Vertical coordinate in [0, 1], top to bottom.

    Returns:
        A ray from the camera position through the image plane point.
    """
    ndc_x = 2.0 * u - 1.0
    ndc_y = 1.0 - 2.0 * v
    direction = tm.normalize(
        _camera_forward[None]
        + ndc_x * _half_width[None] * _camera_right[None]
        + ndc_y * _half_height[None] * _camera_up[None]
    )
    return make_ray(_camera_origin[None], direction, T_MIN, T_MAX)


@ti.func
def get_ray_jittered(
    col: ti.i32, row: ti.i32, width: ti.i32, height: ti.i32, sampler: Sampler
) -> Ray:
    """Generate a ray through a random point of pixel (col, row).

    The jitter comes from the first two dimensions of the sample's stream.
    """
    jitter_u = sample_1d(sampler, DIM_CAMERA_X)
    jitter_v = sample_1d(sampler, DIM_CAMERA_Y)

    u = (ti.cast(col, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    v = (ti.cast(row, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    return get_ray(u, v)


def get_camera_info() -> dict[str, Any]:
    """Current device-side camera state, for debugging."""
    return {
        "origin": tuple(float(c) for c in _camera_origin[None]),
        "forward": tuple(float(c) for c in _camera_forward[None]),
        "right": tuple(float(c) for c in _camera_right[None]),
        "up": tuple(float(c) for c in _camera_up[None]),
        "half_width": float(_half_width[None]),
        "half_height": float(_half_height[None]),
    }
