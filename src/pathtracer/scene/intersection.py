"""Device-side scene storage and nearest-hit traversal.

``upload_scene`` copies an immutable Scene into Taichi fields (structure of
arrays, indexed by object id). It is the only writer and runs before any
render pass; kernels only read these fields.

``trace_nearest`` is the single query the integrator uses. It scans the
objects linearly, narrowing the search interval to the closest hit so far,
so on an exact tie the earlier object is kept.

Example:
    >>> from pathtracer.core.backend import init_backend
    >>> init_backend()
    >>> from pathtracer.scene.intersection import upload_scene, trace_nearest
    >>> upload_scene(scene)
    >>> # call trace_nearest(ray) within a Taichi kernel
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.geometry.sphere import Sphere, hit_sphere
from pathtracer.materials.base import MaterialParams
from pathtracer.scene.scene import MAX_OBJECTS, Scene

logger = logging.getLogger(__name__)

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Closest intersection of a ray with the scene.

    Attributes:
        hit: 1 if any object was hit, else 0.
        t: Ray parameter of the intersection.
        point: The intersection point.
        normal: Outward unit normal of the hit sphere.
        front_face: 1 if the ray arrived from outside the sphere.
        object_id: Index of the hit object, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    object_id: ti.i32


# Geometry: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)

# Materials, one per object
material_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
material_emittances = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
material_roughness = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
material_metallics = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)

num_objects = ti.field(dtype=ti.i32, shape=())

# Emissive objects, by object id
light_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_lights = ti.field(dtype=ti.i32, shape=())

background_color = ti.Vector.field(3, dtype=ti.f32, shape=())

_scene_uploaded = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all objects and lights and reset the background to black."""
    num_objects[None] = 0
    num_lights[None] = 0
    background_color[None] = [0.0, 0.0, 0.0]
    _scene_uploaded[None] = 0


def upload_scene(scene: Scene) -> None:
    """Copy a Scene snapshot into the device fields.

    Must not be called while a render pass is running.

    Args:
        scene: The scene to upload. Its size was checked against
            MAX_OBJECTS when it was built.
    """
    clear_scene()
    for idx, obj in enumerate(scene.objects):
        sphere_centers[idx] = list(obj.shape.center)
        sphere_radii[idx] = obj.shape.radius
        mat = obj.material
        material_kinds[idx] = int(mat.kind)
        material_albedos[idx] = list(mat.albedo)
        material_emittances[idx] = mat.emittance
        material_roughness[idx] = mat.roughness
        material_iors[idx] = mat.ior
        material_metallics[idx] = mat.metallic

    for slot, object_id in enumerate(scene.lights):
        light_ids[slot] = object_id

    num_objects[None] = len(scene.objects)
    num_lights[None] = len(scene.lights)
    background_color[None] = list(scene.background)
    _scene_uploaded[None] = 1

    logger.info(
        "Uploaded scene with %d objects (%d emissive)", len(scene.objects), len(scene.lights)
    )


def is_scene_uploaded() -> bool:
    return bool(_scene_uploaded[None])


def get_object_count() -> int:
    return int(num_objects[None])


def get_light_count() -> int:
    return int(num_lights[None])


# =============================================================================
# Taichi accessors
# =============================================================================


@ti.func
def get_sphere(object_id: ti.i32) -> Sphere:
    return Sphere(center=sphere_centers[object_id], radius=sphere_radii[object_id])


@ti.func
def get_material(object_id: ti.i32) -> MaterialParams:
    return MaterialParams(
        kind=material_kinds[object_id],
        albedo=material_albedos[object_id],
        emittance=material_emittances[object_id],
        roughness=material_roughness[object_id],
        ior=material_iors[object_id],
        metallic=material_metallics[object_id],
    )


@ti.func
def get_background() -> vec3:
    return background_color[None]


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        object_id=-1,
    )


@ti.func
def trace_nearest(ray: Ray) -> SceneHitRecord:
    """Find the closest intersection of a ray within its own interval.

    Args:
        ray: The ray to trace; only hits in (ray.t_min, ray.t_max) count.

    Returns:
        The closest SceneHitRecord, or a miss record (hit == 0).
    """
    closest_t = ray.t_max
    result = _make_miss_record()

    for i in range(num_objects[None]):
        rec = hit_sphere(ray, get_sphere(i), ray.t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                front_face=rec.front_face,
                object_id=i,
            )

    return result
