"""Lambert (ideal diffuse) material.

The Lambert BRDF is constant:

    f_r(wi, wo) = albedo / pi

and directions are drawn with cosine-weighted hemisphere sampling,

    pdf(wi) = cos(theta) / pi

so the per-bounce weight f_r * cos / pdf reduces to the albedo itself.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import Sampler, sample_cosine_hemisphere

vec3 = tm.vec3


@ti.func
def eval_lambert(albedo: vec3) -> vec3:
    """Evaluate the Lambert BRDF (without the cosine term)."""
    return albedo / tm.pi


@ti.func
def pdf_lambert(normal: vec3, scattered_direction: vec3) -> ti.f32:
    """Solid-angle pdf of cosine-weighted sampling, 0 below the surface."""
    cos_theta = tm.dot(normal, scattered_direction)
    pdf = 0.0
    if cos_theta > 0.0:
        pdf = cos_theta / tm.pi
    return pdf


@ti.func
def scatter_lambert(albedo: vec3, normal: vec3, sampler: Sampler, dimension: ti.i32):
    """Sample a diffuse bounce.

    Args:
        albedo: Diffuse reflectance (RGB, each component in [0, 1]).
        normal: Shading normal, facing the incoming ray.
        sampler: Random stream of the current sample.
        dimension: First of the two dimensions consumed.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). A Lambert
        surface always scatters and its attenuation equals the albedo.
    """
    scattered_direction, _ = sample_cosine_hemisphere(normal, sampler, dimension)

    # (albedo / pi) * cos / (cos / pi)
    attenuation = albedo
    did_scatter = 1

    return scattered_direction, attenuation, did_scatter
