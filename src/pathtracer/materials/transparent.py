"""Transparent (dielectric) material.

A transparent surface either reflects or refracts each path. The choice is
made stochastically with probability equal to the Fresnel reflectance
(Schlick's approximation), so no explicit Fresnel weight enters the
throughput. Total internal reflection forces the reflection branch.

The transmitted and reflected light are tinted by

    lerp(white, albedo, metallic)

so a metallic value of 0 gives clear glass regardless of the albedo.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import refract, schlick_fresnel
from pathtracer.core.sampler import DIM_FRESNEL, Sampler, sample_1d
from pathtracer.materials.mirror import fuzzed_reflection

vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """eta = 1 / ior entering the surface, ior leaving it."""
    eta = ior
    if front_face == 1:
        eta = 1.0 / ior
    return eta


@ti.func
def transparent_tint(albedo: vec3, metallic: ti.f32) -> vec3:
    return tm.mix(vec3(1.0, 1.0, 1.0), albedo, metallic)


@ti.func
def scatter_transparent(
    albedo: vec3,
    roughness: ti.f32,
    ior: ti.f32,
    metallic: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    sampler: Sampler,
    dimension: ti.i32,
):
    """Sample a reflect-or-refract bounce.

    Args:
        albedo: Tint colour.
        roughness: Fuzz radius applied to the reflection branch.
        ior: Index of refraction (> 0).
        metallic: Blend factor between white and the albedo tint.
        incident_direction: Incoming direction (normalized).
        normal: Shading normal, facing the incoming ray.
        front_face: 1 if the ray arrives from outside the sphere.
        sampler: Random stream of the current sample.
        dimension: First dimension of this bounce's block.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    attenuation = transparent_tint(albedo, metallic)
    eta = refraction_ratio(ior, front_face)

    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))

    cannot_refract = eta * sin_theta > 1.0
    reflectance = schlick_fresnel(cos_theta, eta)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    if cannot_refract or sample_1d(sampler, dimension + DIM_FRESNEL) < reflectance:
        scattered_direction, did_scatter = fuzzed_reflection(
            incident_direction, normal, roughness, sampler, dimension
        )
    else:
        scattered_direction = tm.normalize(refract(incident_direction, normal, eta))
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter
