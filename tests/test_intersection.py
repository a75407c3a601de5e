"""Tests for device-side scene storage and trace_nearest.

Tests cover:
- Uploading a Scene and clearing device state
- Nearest-hit selection among several spheres
- Tie breaking toward the earlier object
- Miss records and ray interval bounds
"""

import numpy as np
import taichi as ti

from pathtracer.materials.base import Material, MaterialKind
from pathtracer.scene.scene import SceneBuilder


def _three_spheres():
    builder = SceneBuilder(background=(0.25, 0.5, 0.75))
    builder.add_sphere((0.0, 0.0, 10.0), 1.0, Material.lambert((0.5, 0.5, 0.5)))
    builder.add_sphere((0.0, 0.0, 5.0), 1.0, Material.mirror((0.9, 0.9, 0.9), roughness=0.2))
    builder.add_light((0.0, 5.0, 5.0), 0.5, emission=(3.0, 2.0, 1.0))
    return builder.build()


class TestUpload:
    def test_upload_and_clear(self):
        from pathtracer.scene.intersection import (
            clear_scene,
            get_light_count,
            get_object_count,
            is_scene_uploaded,
            light_ids,
            material_albedos,
            material_emittances,
            material_kinds,
            material_roughness,
            upload_scene,
        )

        assert not is_scene_uploaded()
        upload_scene(_three_spheres())

        assert is_scene_uploaded()
        assert get_object_count() == 3
        assert get_light_count() == 1
        assert light_ids[0] == 2
        assert material_kinds[1] == int(MaterialKind.MIRROR)
        assert abs(material_roughness[1] - 0.2) < 1e-6
        assert abs(material_emittances[2] - 3.0) < 1e-6
        np.testing.assert_allclose(material_albedos[2].to_numpy(), [1.0, 2.0 / 3.0, 1.0 / 3.0], atol=1e-6)

        clear_scene()
        assert not is_scene_uploaded()
        assert get_object_count() == 0
        assert get_light_count() == 0

    def test_background(self):
        from pathtracer.scene.intersection import get_background, upload_scene

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_background()

        upload_scene(_three_spheres())
        test_kernel()
        np.testing.assert_allclose(result[None].to_numpy(), [0.25, 0.5, 0.75])

    def test_get_material_round_trips(self):
        from pathtracer.scene.intersection import get_material, upload_scene

        kind = ti.field(dtype=ti.i32, shape=())
        ior = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            m = get_material(0)
            kind[None] = m.kind
            ior[None] = m.ior

        builder = SceneBuilder()
        builder.add_sphere((0.0, 0.0, 3.0), 1.0, Material.transparent(ior=1.33))
        upload_scene(builder.build())
        test_kernel()
        assert kind[None] == int(MaterialKind.TRANSPARENT)
        assert abs(ior[None] - 1.33) < 1e-6


def _trace_fields():
    return (
        ti.field(dtype=ti.i32, shape=()),
        ti.field(dtype=ti.f32, shape=()),
        ti.field(dtype=ti.i32, shape=()),
    )


class TestTraceNearest:
    def test_nearest_of_several(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.scene.intersection import trace_nearest, upload_scene, vec3

        hit, t_val, object_id = _trace_fields()

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                rec = trace_nearest(make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 1e-4, 1e10))
                hit[None] = rec.hit
                t_val[None] = rec.t
                object_id[None] = rec.object_id

        upload_scene(_three_spheres())
        test_kernel()
        assert hit[None] == 1
        # Object 1 at z = 5 is in front of object 0 at z = 10
        assert object_id[None] == 1
        assert abs(t_val[None] - 4.0) < 1e-5

    def test_miss_record(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.scene.intersection import trace_nearest, upload_scene, vec3

        hit, t_val, object_id = _trace_fields()

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                rec = trace_nearest(make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 1e-4, 1e10))
                hit[None] = rec.hit
                object_id[None] = rec.object_id

        upload_scene(_three_spheres())
        test_kernel()
        assert hit[None] == 0
        assert object_id[None] == -1

    def test_empty_scene_misses(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.scene.intersection import trace_nearest, upload_scene, vec3

        hit = _trace_fields()[0]

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                hit[None] = trace_nearest(
                    make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 1e-4, 1e10)
                ).hit

        upload_scene(SceneBuilder().build())
        test_kernel()
        assert hit[None] == 0

    def test_tie_keeps_earlier_object(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.scene.intersection import trace_nearest, upload_scene, vec3

        object_id = _trace_fields()[2]

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                object_id[None] = trace_nearest(
                    make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 1e-4, 1e10)
                ).object_id

        builder = SceneBuilder()
        builder.add_sphere((0.0, 0.0, 5.0), 1.0, Material.lambert((0.1, 0.1, 0.1)))
        builder.add_sphere((0.0, 0.0, 5.0), 1.0, Material.lambert((0.9, 0.9, 0.9)))
        upload_scene(builder.build())
        test_kernel()
        assert object_id[None] == 0

    def test_respects_ray_interval(self):
        from pathtracer.core.ray import make_ray
        from pathtracer.scene.intersection import trace_nearest, upload_scene, vec3

        hit, t_val, object_id = _trace_fields()

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                # t_max stops short of object 0; t_min skips object 1's entry
                rec = trace_nearest(make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 4.5, 8.0))
                hit[None] = rec.hit
                t_val[None] = rec.t
                object_id[None] = rec.object_id

        upload_scene(_three_spheres())
        test_kernel()
        assert hit[None] == 1
        assert object_id[None] == 1
        assert abs(t_val[None] - 6.0) < 1e-5
