"""Mirror material: specular reflection with roughness fuzz."""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, reflect
from pathtracer.core.sampler import Sampler, random_in_unit_sphere

vec3 = tm.vec3


@ti.func
def fuzzed_reflection(
    incident_direction: vec3,
    normal: vec3,
    roughness: ti.f32,
    sampler: Sampler,
    dimension: ti.i32,
):
    """Reflect about the normal and perturb by roughness times a ball sample.

    Returns:
        A tuple of (direction, did_scatter). did_scatter is 0 when the fuzzed
        vector is degenerate or points into the surface; the direction is
        then a zero vector.
    """
    reflected = reflect(incident_direction, normal)
    fuzzed = reflected + roughness * random_in_unit_sphere(sampler, dimension)

    direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    if not near_zero(fuzzed):
        candidate = tm.normalize(fuzzed)
        if tm.dot(candidate, normal) > 0.0:
            direction = candidate
            did_scatter = 1

    return direction, did_scatter


@ti.func
def scatter_mirror(
    albedo: vec3,
    roughness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    sampler: Sampler,
    dimension: ti.i32,
):
    """Sample a mirror bounce.

    Args:
        albedo: Reflective tint (RGB, each component in [0, 1]).
        roughness: Fuzz radius in [0, 1]. 0 is a perfect mirror.
        incident_direction: Incoming direction (normalized).
        normal: Shading normal, facing the incoming ray.
        sampler: Random stream of the current sample.
        dimension: First of the three dimensions consumed.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    scattered_direction, did_scatter = fuzzed_reflection(
        incident_direction, normal, roughness, sampler, dimension
    )
    attenuation = albedo
    return scattered_direction, attenuation, did_scatter
