"""Path tracing integrator for Monte Carlo light transport.

The integrator follows one camera path iteratively, carrying two
accumulators:

    radiance    light gathered so far
    throughput  product of the attenuations of all bounces so far

At every vertex:

    1. Find the nearest hit. On a miss, add throughput * background and stop.
    2. Add throughput * emitted(material). Emission counts at every vertex.
    3. Scatter. If the material absorbs the path, stop.
    4. throughput *= attenuation; offset the origin off the surface and continue.

``max_depth`` bounds the number of vertices, so a depth of 1 sees only what
the camera ray hits and a depth of 0 yields black.

Two optional estimator features are controlled per render:

    russian_roulette  From MIN_BOUNCES_BEFORE_RR on, continue with probability
                      p = min(luminance(throughput), MAX_RR_PROBABILITY) and
                      divide the throughput by p.
    light_sampling    At Lambert vertices, sample one emissive sphere by its
                      subtended cone and trace a shadow ray. Light found that
                      way and light found by the following BSDF sample are
                      combined with the power heuristic.

Numerical degeneracies never raise: a non-finite throughput or direction
ends the path, and the renderer discards a non-finite sample.

Example:
    >>> from pathtracer.core.backend import init_backend
    >>> init_backend()
    >>> from pathtracer.core.integrator import trace_path
    >>> # radiance = trace_path(ray, sampler, max_depth, 0, 0) inside a kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import T_MAX, T_MIN, Ray, is_finite, luminance, make_ray
from pathtracer.core.sampler import (
    DIM_LIGHT_DIR,
    DIM_LIGHT_PICK,
    DIM_ROULETTE,
    DIM_SCATTER,
    Sampler,
    bounce_dimension,
    sample_1d,
    sample_cone,
)
from pathtracer.materials.base import KIND_LAMBERT, emitted, scatter, shading_normal
from pathtracer.materials.lambert import eval_lambert, pdf_lambert
from pathtracer.scene.intersection import (
    get_background,
    get_material,
    get_sphere,
    light_ids,
    num_lights,
    trace_nearest,
)

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Minimum bounces before Russian roulette can terminate paths
MIN_BOUNCES_BEFORE_RR = 3

# Russian roulette survival probability cap
MAX_RR_PROBABILITY = 0.95

# Ray offset epsilon to avoid self-intersection
RAY_EPSILON = 1e-4

# Smallest solid angle fraction (1 - cos_theta_max) a light cone may have
MIN_CONE_EXTENT = 1e-7


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Push a point off the surface, to the side the new direction leaves."""
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


@ti.func
def power_heuristic(f_pdf: ti.f32, g_pdf: ti.f32) -> ti.f32:
    """MIS weight of strategy f against g, one sample each (beta = 2)."""
    f2 = f_pdf * f_pdf
    g2 = g_pdf * g_pdf
    weight = 0.0
    if f2 + g2 > 0.0:
        weight = f2 / (f2 + g2)
    return weight


# =============================================================================
# Light Sampling
# =============================================================================


@ti.func
def light_cone(point: vec3, light_id: ti.i32):
    """Cone subtended by an emissive sphere as seen from a point.

    Returns:
        A tuple of (axis, cos_theta_max, valid). valid is 0 when the point is
        inside the sphere or the cone is too narrow to sample.
    """
    sphere = get_sphere(light_id)
    to_center = sphere.center - point
    dist2 = tm.dot(to_center, to_center)
    radius2 = sphere.radius * sphere.radius

    axis = vec3(0.0, 0.0, 1.0)
    cos_theta_max = 1.0
    valid = 0
    if dist2 > radius2:
        axis = to_center / ti.sqrt(dist2)
        cos_theta_max = ti.sqrt(ti.max(0.0, 1.0 - radius2 / dist2))
        if 1.0 - cos_theta_max > MIN_CONE_EXTENT:
            valid = 1
    return axis, cos_theta_max, valid


@ti.func
def light_pdf(point: vec3, light_id: ti.i32) -> ti.f32:
    """Solid-angle pdf of choosing a direction toward ``light_id`` from point.

    Includes the uniform choice among all lights. Zero when the light cannot
    be sampled from this point.
    """
    _, cos_theta_max, valid = light_cone(point, light_id)
    pdf = 0.0
    if valid == 1:
        pdf = 1.0 / (2.0 * tm.pi * (1.0 - cos_theta_max) * ti.cast(num_lights[None], ti.f32))
    return pdf


@ti.func
def sample_direct_light(
    point: vec3,
    normal: vec3,
    albedo: vec3,
    object_id: ti.i32,
    sampler: Sampler,
    dimension: ti.i32,
) -> vec3:
    """Next-event estimate of direct light at a Lambert vertex.

    Args:
        point: Surface point.
        normal: Shading normal at the point.
        albedo: Lambert albedo of the surface.
        object_id: Object the point lies on (never sampled as its own light).
        sampler: Random stream of the current sample.
        dimension: First dimension of this bounce's block.

    Returns:
        MIS-weighted reflected radiance, before the path throughput.
    """
    contribution = vec3(0.0, 0.0, 0.0)
    n_lights = num_lights[None]

    if n_lights > 0:
        pick = ti.cast(sample_1d(sampler, dimension + DIM_LIGHT_PICK) * n_lights, ti.i32)
        pick = ti.min(pick, n_lights - 1)
        light_id = light_ids[pick]

        if light_id != object_id:
            axis, cos_theta_max, valid = light_cone(point, light_id)
            if valid == 1:
                wi = sample_cone(axis, cos_theta_max, sampler, dimension + DIM_LIGHT_DIR)
                cos_surface = tm.dot(normal, wi)
                if cos_surface > 0.0:
                    origin = _offset_ray_origin(point, normal, wi)
                    shadow = trace_nearest(make_ray(origin, wi, T_MIN, T_MAX))
                    if shadow.hit == 1 and shadow.object_id == light_id:
                        l_pdf = 1.0 / (
                            2.0 * tm.pi * (1.0 - cos_theta_max) * ti.cast(n_lights, ti.f32)
                        )
                        weight = power_heuristic(l_pdf, pdf_lambert(normal, wi))
                        le = emitted(get_material(light_id))
                        contribution = eval_lambert(albedo) * le * cos_surface * weight / l_pdf

    return contribution


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(
    camera_ray: Ray,
    sampler: Sampler,
    max_depth: ti.i32,
    russian_roulette: ti.i32,
    light_sampling: ti.i32,
) -> vec3:
    """Estimate the radiance arriving along a camera ray.

    Args:
        camera_ray: The primary ray.
        sampler: Random stream of this sample.
        max_depth: Maximum number of path vertices.
        russian_roulette: 1 to enable Russian roulette termination.
        light_sampling: 1 to enable next-event estimation with MIS.

    Returns:
        The radiance estimate (RGB). May be non-finite only if the scene
        itself contains degenerate data; the caller discards such samples.
    """
    ray = camera_ray
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi doesn't support break in ti.func loops
    active = 1

    # Previous vertex, for weighting emission found by BSDF sampling
    prev_point = vec3(0.0, 0.0, 0.0)
    prev_bsdf_pdf = 0.0
    prev_was_sampled = 0

    for depth in range(max_depth):
        if active == 1:
            rec = trace_nearest(ray)

            if rec.hit == 0:
                radiance += throughput * get_background()
                active = 0
            else:
                material = get_material(rec.object_id)
                emission = emitted(material)

                mis_weight = 1.0
                if prev_was_sampled == 1 and emission.max() > 0.0:
                    mis_weight = power_heuristic(
                        prev_bsdf_pdf, light_pdf(prev_point, rec.object_id)
                    )
                radiance += throughput * emission * mis_weight

                dim = bounce_dimension(depth, 0)
                normal = shading_normal(rec.normal, rec.front_face)

                next_event = light_sampling == 1 and material.kind == KIND_LAMBERT
                if next_event and depth + 1 < max_depth:
                    radiance += throughput * sample_direct_light(
                        rec.point, normal, material.albedo, rec.object_id, sampler, dim
                    )

                direction, attenuation, did_scatter = scatter(
                    material, ray.direction, rec.normal, rec.front_face, sampler, dim + DIM_SCATTER
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation

                    if russian_roulette == 1 and depth >= MIN_BOUNCES_BEFORE_RR:
                        rr_prob = tm.min(luminance(throughput), MAX_RR_PROBABILITY)
                        if sample_1d(sampler, dim + DIM_ROULETTE) >= rr_prob:
                            active = 0
                        else:
                            throughput /= rr_prob

                    if active == 1:
                        if is_finite(throughput) == 0 or is_finite(direction) == 0:
                            active = 0
                        else:
                            prev_point = rec.point
                            prev_was_sampled = 0
                            if next_event:
                                prev_was_sampled = 1
                                prev_bsdf_pdf = pdf_lambert(normal, direction)
                            origin = _offset_ray_origin(rec.point, rec.normal, direction)
                            ray = make_ray(origin, direction, T_MIN, T_MAX)

    return radiance


@ti.func
def trace_camera_sample(
    camera_ray: Ray,
    sampler: Sampler,
    max_depth: ti.i32,
    russian_roulette: ti.i32,
    light_sampling: ti.i32,
) -> vec3:
    """Trace one sample and sanitise it for accumulation.

    Negative components are clamped to zero and a non-finite sample is
    discarded (counted as zero).
    """
    color = trace_path(camera_ray, sampler, max_depth, russian_roulette, light_sampling)
    color = tm.max(color, vec3(0.0, 0.0, 0.0))
    if is_finite(color) == 0:
        color = vec3(0.0, 0.0, 0.0)
    return color

