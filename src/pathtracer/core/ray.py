"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the vector helpers used by the
geometry, material and integrator modules. All functions are Taichi functions
and are meant to be called from inside kernels.

A ray carries its own valid parametric interval ``(t_min, t_max)``. Colours
share the ``vec3`` type with positions and directions: they are linear,
non-negative and unbounded until the image is tone mapped for output.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> @ti.kernel
    ... def k() -> ti.f32:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), T_MIN, T_MAX)
    ...     return ray_at(ray, 5.0).z
"""

import taichi as ti
import taichi.math as tm

# Positions, directions and linear RGB colours
vec3 = tm.vec3

# Default parametric interval for primary and scattered rays
T_MIN = 1e-4
T_MAX = 1e10

# Threshold below which a vector is treated as degenerate
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A half-line with a valid parametric interval.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3, unit length).
        t_min: Smallest accepted hit distance (exclusive).
        t_max: Largest accepted hit distance (exclusive).
    """

    origin: vec3
    direction: vec3
    t_min: ti.f32
    t_max: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32) -> Ray:
    """Create a ray inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction, t_min=t_min, t_max=t_max)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface (Snell's law).

    Args:
        incident: The incoming direction (normalized).
        normal: The shading normal, facing the incident ray.
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction, or a zero vector on total internal
        reflection.
    """
    cos_theta = ti.min(-tm.dot(incident, normal), 1.0)
    perp = eta * (incident + cos_theta * normal)
    k = 1.0 - tm.dot(perp, perp)
    out = vec3(0.0, 0.0, 0.0)
    if k >= 0.0:
        out = perp - ti.sqrt(k) * normal
    return out


@ti.func
def schlick_fresnel(cosine: ti.f32, eta: ti.f32) -> ti.f32:
    """Fresnel reflectance by Schlick's approximation.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        eta: Ratio of refractive indices.

    Returns:
        Reflectance in [0, 1].
    """
    r0 = (1.0 - eta) / (1.0 + eta)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component of v is below NEAR_ZERO_EPSILON."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def is_finite(v: vec3) -> ti.i32:
    """Return 1 if no component of v is NaN or infinite."""
    result = 1
    for k in ti.static(range(3)):
        # NaN fails every comparison; inf fails the bound
        if not (ti.abs(v[k]) <= 3.0e38):
            result = 0
    return result


@ti.func
def luminance(color: vec3) -> ti.f32:
    """Rec. 709 relative luminance of a linear RGB colour."""
    return 0.2126 * color.x + 0.7152 * color.y + 0.0722 * color.z


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis (tangent, bitangent, normal) around a normal."""
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(a, normal))
    bitangent = tm.cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal
