"""Counter-based random sampling for Monte Carlo integration.

Every random number the renderer draws is a pure hash of
``(seed, pixel, sample, dimension)``. Nothing is shared between threads and
nothing depends on execution order, so a pixel's value is independent of
which worker rendered it or how the image was partitioned.

Dimensions are laid out per path:

    0, 1                         camera jitter (x, y)
    2 + depth * 8 + 0 .. 2       BSDF direction / roughness fuzz
    2 + depth * 8 + 3            Fresnel reflect-or-refract choice
    2 + depth * 8 + 4            Russian roulette
    2 + depth * 8 + 5 .. 7       light selection and light direction

Example:
    >>> @ti.kernel
    ... def k() -> ti.f32:
    ...     sampler = make_sampler(pixel=0, sample=0, seed=ti.u32(7))
    ...     return sample_1d(sampler, DIM_CAMERA_X)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import build_onb_from_normal, local_to_world

vec3 = tm.vec3

DIM_CAMERA_X = 0
DIM_CAMERA_Y = 1
DIM_BOUNCE_BASE = 2
DIMS_PER_BOUNCE = 8

# Offsets within a bounce's block of dimensions
DIM_SCATTER = 0
DIM_FRESNEL = 3
DIM_ROULETTE = 4
DIM_LIGHT_PICK = 5
DIM_LIGHT_DIR = 6

# 2^-24: floats built from the top 24 bits lie in [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.dataclass
class Sampler:
    """Identifies one random stream: a single sample of a single pixel.

    Attributes:
        pixel: Linear pixel index (row * width + col).
        sample: Sample index within the pixel.
        seed: Render seed.
    """

    pixel: ti.i32
    sample: ti.i32
    seed: ti.u32


@ti.func
def make_sampler(pixel: ti.i32, sample: ti.i32, seed: ti.u32) -> Sampler:
    return Sampler(pixel=pixel, sample=sample, seed=seed)


@ti.func
def _mix(value: ti.u32) -> ti.u32:
    """Integer avalanche hash on 32 bits."""
    x = value
    x = x ^ (x >> 16)
    x = x * ti.u32(0x7FEB352D)
    x = x ^ (x >> 15)
    x = x * ti.u32(0x1B873593)
    x = x ^ (x >> 16)
    return x


@ti.func
def bounce_dimension(depth: ti.i32, offset: ti.i32) -> ti.i32:
    """First dimension of the block reserved for bounce ``depth``, plus offset."""
    return DIM_BOUNCE_BASE + depth * DIMS_PER_BOUNCE + offset


@ti.func
def sample_1d(sampler: Sampler, dimension: ti.i32) -> ti.f32:
    """Uniform float in [0, 1) for the given stream and dimension."""
    h = _mix(sampler.seed)
    h = _mix(h + ti.cast(sampler.pixel, ti.u32))
    h = _mix(h + ti.cast(sampler.sample, ti.u32))
    h = _mix(h + ti.cast(dimension, ti.u32))
    return ti.cast(h >> 8, ti.f32) * _INV_2_24


# =============================================================================
# Warping functions
# =============================================================================


@ti.func
def random_in_unit_sphere(sampler: Sampler, dimension: ti.i32) -> vec3:
    """Uniform point inside the unit ball.

    Draws a uniform direction and scales it by the cube root of a uniform
    radius variable. Consumes three dimensions starting at ``dimension``.
    """
    z = 1.0 - 2.0 * sample_1d(sampler, dimension)
    phi = 2.0 * tm.pi * sample_1d(sampler, dimension + 1)
    r_xy = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    radius = sample_1d(sampler, dimension + 2) ** (1.0 / 3.0)
    return radius * vec3(r_xy * ti.cos(phi), r_xy * ti.sin(phi), z)


@ti.func
def random_cosine_direction(sampler: Sampler, dimension: ti.i32) -> vec3:
    """Cosine-weighted direction in the local frame (z up), pdf = cos / pi."""
    r1 = sample_1d(sampler, dimension)
    r2 = sample_1d(sampler, dimension + 1)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(1.0 - r2)
    return vec3(x, y, z)


@ti.func
def sample_cosine_hemisphere(normal: vec3, sampler: Sampler, dimension: ti.i32):
    """Cosine-weighted hemisphere sampling about a unit normal.

    Returns:
        A tuple of (direction, pdf) with direction in world space and
        pdf = cos(theta) / pi.
    """
    local_dir = random_cosine_direction(sampler, dimension)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = tm.dot(world_dir, normal) / tm.pi
    return world_dir, pdf


@ti.func
def sample_cone(axis: vec3, cos_theta_max: ti.f32, sampler: Sampler, dimension: ti.i32) -> vec3:
    """Uniform direction inside the cone of half-angle acos(cos_theta_max).

    The solid-angle pdf of the result is 1 / (2 pi (1 - cos_theta_max)).
    Consumes two dimensions starting at ``dimension``.
    """
    u1 = sample_1d(sampler, dimension)
    u2 = sample_1d(sampler, dimension + 1)
    cos_theta = 1.0 - u1 * (1.0 - cos_theta_max)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    phi = 2.0 * tm.pi * u2
    local_dir = vec3(ti.cos(phi) * sin_theta, ti.sin(phi) * sin_theta, cos_theta)
    tangent, bitangent, n = build_onb_from_normal(axis)
    return local_to_world(local_dir, tangent, bitangent, n)
