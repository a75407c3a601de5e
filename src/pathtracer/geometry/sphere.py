"""Sphere primitive with robust ray-sphere intersection.

This module provides the device-side Sphere dataclass and intersection
function, plus the Python-side SphereShape used to describe scenes.

The intersection uses the robust quadratic formulation from Ray Tracing Gems
to avoid catastrophic cancellation when b^2 is nearly equal to 4ac.

The hit record always carries the OUTWARD normal together with a
``front_face`` flag. Orienting the normal against the incoming ray is left to
the material layer.

Example:
    >>> from pathtracer.geometry.sphere import SphereShape
    >>> shape = SphereShape(center=(0.0, 1.25, 5.0), radius=0.75)
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.errors import SceneValidationError
from pathtracer.core.ray import Ray

vec3 = tm.vec3


@dataclass(frozen=True)
class SphereShape:
    """Immutable sphere description used when building a scene.

    Attributes:
        center: Center point (x, y, z).
        radius: Radius, strictly positive.

    Raises:
        SceneValidationError: If the radius is not positive or a coordinate
            is not finite.
    """

    center: tuple[float, float, float]
    radius: float

    def __post_init__(self) -> None:
        if len(self.center) != 3:
            raise SceneValidationError(f"Sphere center must have 3 components, got {self.center}")
        center = tuple(float(c) for c in self.center)
        if not all(math.isfinite(c) for c in center):
            raise SceneValidationError(f"Sphere center must be finite, got {center}")
        if not math.isfinite(self.radius) or self.radius <= 0.0:
            raise SceneValidationError(f"Sphere radius must be positive, got {self.radius}")
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "radius", float(self.radius))


@ti.dataclass
class Sphere:
    """Device-side sphere: center and radius."""

    center: vec3
    radius: ti.f32


@ti.dataclass
class SphereHit:
    """Result of intersecting one ray with one sphere.

    Attributes:
        hit: 1 when a root lies inside the requested interval. The other
            fields are meaningless otherwise.
        t: Ray parameter of the accepted root.
        point: Position of the accepted root.
        normal: Outward unit normal (P - C) / r, never flipped.
        front_face: 1 when the ray arrives from outside the sphere.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _stable_roots(a: ti.f32, h: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Ordered roots of a*t^2 + 2*h*t + c = 0.

    One root comes from q = -(h + sign(h) * sqrt_d) / a and the other from
    the product of roots c / a, so no root is the difference of two nearly
    equal numbers.
    """
    q = -h - ti.select(h < 0.0, -sqrt_d, sqrt_d)
    near = (-h - sqrt_d) / a
    far = (-h + sqrt_d) / a
    # q is zero only for h == 0 and a tangent ray, where the plain form is exact
    if ti.abs(q) >= 1e-10:
        r0 = q / a
        r1 = c / q
        near = ti.min(r0, r1)
        far = ti.max(r0, r1)
    return near, far


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> SphereHit:
    """Intersect a ray with a sphere inside the open interval (t_min, t_max).

    The near root wins when it lies in the interval; otherwise the far root
    is tried, which is the exit point for an origin inside the sphere.

    Args:
        ray: The ray to test. Its own interval is ignored in favour of the
            explicit bounds, which callers narrow while traversing a scene.
        sphere: The sphere to test.
        t_min: Smallest accepted distance (exclusive).
        t_max: Largest accepted distance (exclusive).
    """
    result = SphereHit(hit=0, t=0.0, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0), front_face=0)

    to_origin = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, to_origin)
    c = tm.dot(to_origin, to_origin) - sphere.radius * sphere.radius
    disc = h * h - a * c

    if disc >= 0.0:
        near, far = _stable_roots(a, h, c, ti.sqrt(disc))
        t = near
        if not (t_min < t < t_max):
            t = far
        if t_min < t < t_max:
            point = ray.origin + t * ray.direction
            outward = (point - sphere.center) / sphere.radius
            result.hit = 1
            result.t = t
            result.point = point
            result.normal = outward
            result.front_face = ti.select(tm.dot(ray.direction, outward) < 0.0, 1, 0)

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
