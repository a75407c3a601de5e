"""Scene file loading and saving.

Scenes are described as JSON documents (or the equivalent dict):

    {
      "background": [0.68, 0.87, 0.96],
      "camera": {"position": [0, 1.25, 0], "target": [0, 1.25, 5], "fov": 60},
      "objects": [
        {"geometry": {"center": [0, 1.25, 5], "radius": 0.75},
         "material": {"albedo": [1, 1, 1], "emittance": 0, "roughness": 0,
                      "ior": 1.5, "metallic": 0, "material": "Lambert"}}
      ],
      "lights": [
        {"geometry": {"center": [0, 4, 5], "radius": 0.5}, "emission": [4, 4, 4]}
      ]
    }

Lights become Lambert objects with emittance = max(emission) and
albedo = emission / emittance, appended after the regular objects.

Example:
    >>> from pathtracer.scene.loader import load_scene
    >>> description = load_scene("examples/scenes/single_sphere.json")
    >>> description.scene, description.camera
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from pathtracer.camera.camera import Camera
from pathtracer.core.errors import SceneValidationError
from pathtracer.geometry.sphere import SphereShape
from pathtracer.materials.base import Material
from pathtracer.scene.scene import Scene, SceneBuilder, SceneObject

logger = logging.getLogger(__name__)

# Camera used when a document has none: at the origin, looking down +z,
# with an image plane of half-height 0.5 at unit distance
DEFAULT_CAMERA_POSITION = (0.0, 0.0, 0.0)
DEFAULT_CAMERA_TARGET = (0.0, 0.0, 1.0)
DEFAULT_CAMERA_FOV = math.degrees(2.0 * math.atan(0.5))


@dataclass(frozen=True)
class SceneDescription:
    """A parsed scene document.

    Attributes:
        scene: The immutable scene.
        camera: The camera described by the document (or the default one).
    """

    scene: Scene
    camera: Camera


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SceneValidationError(f"{where} must be an object, got {type(value).__name__}")
    return value


def _vec3(value: Any, where: str) -> tuple[float, float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise SceneValidationError(f"{where} must be a list of 3 numbers, got {value!r}")
    try:
        return tuple(float(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise SceneValidationError(f"{where} must be a list of 3 numbers, got {value!r}") from exc


def _parse_geometry(data: Any, where: str) -> SphereShape:
    geometry = _require_mapping(data, f"{where}.geometry")
    if "center" not in geometry or "radius" not in geometry:
        raise SceneValidationError(f"{where}.geometry requires 'center' and 'radius'")
    try:
        radius = float(geometry["radius"])
    except (TypeError, ValueError) as exc:
        raise SceneValidationError(f"{where}.geometry.radius must be a number") from exc
    return SphereShape(center=_vec3(geometry["center"], f"{where}.geometry.center"), radius=radius)


def _parse_camera(data: Any) -> Camera:
    if data is None:
        return Camera(
            position=DEFAULT_CAMERA_POSITION,
            target=DEFAULT_CAMERA_TARGET,
            vfov=DEFAULT_CAMERA_FOV,
        )
    camera = _require_mapping(data, "camera")
    position = _vec3(camera.get("position", DEFAULT_CAMERA_POSITION), "camera.position")
    if "target" in camera:
        target = _vec3(camera["target"], "camera.target")
    else:
        target = (position[0], position[1], position[2] + 1.0)
    try:
        fov = float(camera.get("fov", DEFAULT_CAMERA_FOV))
    except (TypeError, ValueError) as exc:
        raise SceneValidationError("camera.fov must be a number") from exc
    up = _vec3(camera.get("up", (0.0, 1.0, 0.0)), "camera.up")
    return Camera(position=position, target=target, vfov=fov, up=up)


def parse_scene(data: dict[str, Any]) -> SceneDescription:
    """Build a scene and camera from a scene document.

    Args:
        data: The decoded document.

    Returns:
        The parsed SceneDescription.

    Raises:
        SceneValidationError: If the document is malformed or any value is
            out of range.
    """
    document = _require_mapping(data, "scene")
    builder = SceneBuilder(background=_vec3(document.get("background", (0.0, 0.0, 0.0)), "background"))

    objects = document.get("objects", [])
    if not isinstance(objects, list):
        raise SceneValidationError("'objects' must be a list")
    for i, entry in enumerate(objects):
        where = f"objects[{i}]"
        record = _require_mapping(entry, where)
        shape = _parse_geometry(record.get("geometry"), where)
        material = Material.from_dict(_require_mapping(record.get("material", {}), f"{where}.material"))
        builder.add(SceneObject(shape, material))

    lights = document.get("lights", [])
    if not isinstance(lights, list):
        raise SceneValidationError("'lights' must be a list")
    for i, entry in enumerate(lights):
        where = f"lights[{i}]"
        record = _require_mapping(entry, where)
        shape = _parse_geometry(record.get("geometry"), where)
        emission = _vec3(record.get("emission"), f"{where}.emission")
        builder.add(SceneObject(shape, Material.emitter(emission)))

    description = SceneDescription(scene=builder.build(), camera=_parse_camera(document.get("camera")))
    logger.debug(
        "Parsed scene: %d objects, %d lights",
        len(description.scene),
        len(description.scene.lights),
    )
    return description


def load_scene(path: Union[str, Path]) -> SceneDescription:
    """Read and parse a JSON scene file.

    Raises:
        SceneValidationError: If the file is not valid JSON or not a valid scene.
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise SceneValidationError(f"{path}: invalid JSON ({exc})") from exc
    logger.info("Loading scene from %s", path)
    return parse_scene(data)


def scene_to_dict(scene: Scene, camera: Camera) -> dict[str, Any]:
    """Serialize a scene and camera to a document ``parse_scene`` accepts.

    Every object, emissive ones included, is written under "objects" with its
    full material record.
    """
    return {
        "background": list(scene.background),
        "camera": camera.to_dict(),
        "objects": [
            {
                "geometry": {"center": list(obj.shape.center), "radius": obj.shape.radius},
                "material": obj.material.to_dict(),
            }
            for obj in scene.objects
        ],
        "lights": [],
    }


def save_scene(scene: Scene, camera: Camera, path: Union[str, Path]) -> None:
    """Write a scene and camera as a JSON scene file."""
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(scene_to_dict(scene, camera), f, indent=2)
