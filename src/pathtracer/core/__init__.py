"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Counter-based random streams and warping functions
    config: Render parameters
    backend: Taichi runtime initialisation
    errors: Exception types
    integrator: Path tracing light transport (imported lazily, allocates fields)
    renderer: Row-band scheduler and frame buffer (imported lazily, allocates fields)
"""

from .config import RenderParams
from .errors import RenderError, SceneValidationError
from .ray import (
    T_MAX,
    T_MIN,
    Ray,
    build_onb_from_normal,
    is_finite,
    local_to_world,
    luminance,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import (
    Sampler,
    make_sampler,
    random_cosine_direction,
    random_in_unit_sphere,
    sample_1d,
    sample_cone,
    sample_cosine_hemisphere,
)

# Note: integrator and renderer are NOT imported here. They allocate Taichi
# fields and must be imported after pathtracer.core.backend.init_backend().

__all__ = [
    "RenderParams",
    "RenderError",
    "SceneValidationError",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "T_MIN",
    "T_MAX",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "is_finite",
    "luminance",
    "build_onb_from_normal",
    "local_to_world",
    "Sampler",
    "make_sampler",
    "sample_1d",
    "random_in_unit_sphere",
    "random_cosine_direction",
    "sample_cosine_hemisphere",
    "sample_cone",
]
