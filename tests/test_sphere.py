"""Unit tests for sphere geometry.

Tests cover:
- SphereShape validation
- Ray hitting a sphere from outside (front face)
- Ray missing a sphere
- Ray starting inside a sphere (outward normal, back face)
- Interval bounds
- Grazing and far-away configurations
"""

import math

import pytest
import taichi as ti

from pathtracer.core.errors import SceneValidationError
from pathtracer.geometry.sphere import SphereShape


class TestSphereShape:
    """Tests for the Python-side sphere description."""

    def test_valid_shape(self):
        shape = SphereShape(center=(0, 1.25, 5), radius=0.75)
        assert shape.center == (0.0, 1.25, 5.0)
        assert shape.radius == 0.75

    @pytest.mark.parametrize("radius", [0.0, -1.0, math.inf, math.nan])
    def test_invalid_radius(self, radius):
        with pytest.raises(SceneValidationError):
            SphereShape(center=(0.0, 0.0, 0.0), radius=radius)

    def test_invalid_center(self):
        with pytest.raises(SceneValidationError):
            SphereShape(center=(0.0, math.inf, 0.0), radius=1.0)
        with pytest.raises(SceneValidationError):
            SphereShape(center=(0.0, 0.0), radius=1.0)

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            SphereShape(center=(0.0, 0.0, 0.0), radius=-0.5)


def _make_hit_fields():
    return {
        "hit": ti.field(dtype=ti.i32, shape=()),
        "t": ti.field(dtype=ti.f32, shape=()),
        "point": ti.Vector.field(3, dtype=ti.f32, shape=()),
        "normal": ti.Vector.field(3, dtype=ti.f32, shape=()),
        "front_face": ti.field(dtype=ti.i32, shape=()),
    }


class TestSphereIntersection:
    """Tests for hit_sphere."""

    def test_hit_from_origin(self):
        """Sphere of radius 1 at (0, 0, 5), ray from the origin along +z."""
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        f = _make_hit_fields()
        hit, t_val, point, normal, front_face = (
            f["hit"], f["t"], f["point"], f["normal"], f["front_face"]
        )

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 0.0, 1e10)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 5.0), 1.0), 0.0, 1e10)
            hit[None] = rec.hit
            t_val[None] = rec.t
            point[None] = rec.point
            normal[None] = rec.normal
            front_face[None] = rec.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 4.0) < 1e-5
        assert point[None].to_numpy().tolist() == pytest.approx([0.0, 0.0, 4.0], abs=1e-5)
        assert normal[None].to_numpy().tolist() == pytest.approx([0.0, 0.0, -1.0], abs=1e-5)
        assert front_face[None] == 1

    def test_miss(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(5.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0, 1e10)
            hit[None] = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 0.0), 1.0), 0.001, 1e10).hit

        test_kernel()
        assert hit[None] == 0

    def test_pointing_away(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0, 1e10)
            hit[None] = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 5.0), 1.0), 0.001, 1e10).hit

        test_kernel()
        assert hit[None] == 0

    def test_inside_hits_far_root_with_outward_normal(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        f = _make_hit_fields()
        hit, t_val, normal, front_face = f["hit"], f["t"], f["normal"], f["front_face"]

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 0.0, 1e10)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 0.0), 2.0), 0.001, 1e10)
            hit[None] = rec.hit
            t_val[None] = rec.t
            normal[None] = rec.normal
            front_face[None] = rec.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 2.0) < 1e-5
        # The normal is never flipped toward the ray
        assert normal[None].to_numpy().tolist() == pytest.approx([0.0, 0.0, 1.0], abs=1e-5)
        assert front_face[None] == 0

    def test_interval_excludes_hits(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        too_close = ti.field(dtype=ti.i32, shape=())
        far_only = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 0.0, 1e10)
            sphere = make_sphere(vec3(0.0, 0.0, 5.0), 1.0)
            too_close[None] = hit_sphere(ray, sphere, 0.001, 3.5).hit
            # Near root excluded by t_min: the far root is returned
            far_only[None] = hit_sphere(ray, sphere, 4.5, 1e10).t

        test_kernel()
        assert too_close[None] == 0
        assert abs(far_only[None] - 6.0) < 1e-5

    def test_non_unit_direction(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 2.0), 0.0, 1e10)
            t_val[None] = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 5.0), 1.0), 0.0, 1e10).t

        test_kernel()
        assert abs(t_val[None] - 2.0) < 1e-5

    def test_large_distant_sphere_is_stable(self):
        """b^2 close to 4ac: a big sphere far away, hit near its pole."""
        from pathtracer.core.ray import make_ray
        from pathtracer.geometry.sphere import hit_sphere, make_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(0.0, -1.0, 0.0), 0.0, 1e10)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, -1000.0, 0.0), 1000.0), 1e-4, 1e10)
            hit[None] = rec.hit
            t_val[None] = rec.t

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 1.0) < 1e-3
