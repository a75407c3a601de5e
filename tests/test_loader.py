"""Tests for JSON scene loading and saving.

Tests cover:
- Parsing objects, lights, background and camera
- Defaults for missing fields
- Validation errors for malformed documents
- Round trips through scene_to_dict and save_scene / load_scene
- The scene files shipped with the project
"""

import json
import math
from pathlib import Path

import pytest

from pathtracer.core.errors import SceneValidationError
from pathtracer.materials.base import MaterialKind
from pathtracer.scene.loader import (
    DEFAULT_CAMERA_FOV,
    load_scene,
    parse_scene,
    save_scene,
    scene_to_dict,
)
from pathtracer.scene.presets import get_preset

SCENES_DIR = Path(__file__).resolve().parent.parent / "examples" / "scenes"


def _document():
    return {
        "background": [0.68, 0.87, 0.96],
        "camera": {"position": [0, 1.25, 0], "target": [0, 1.25, 5], "fov": 60},
        "objects": [
            {
                "geometry": {"center": [0, 1.25, 5], "radius": 0.75},
                "material": {"albedo": [1, 1, 1], "emittance": 1, "material": "Lambert"},
            },
            {
                "geometry": {"center": [2, 1, 5], "radius": 0.5},
                "material": {"albedo": [0.9, 0.9, 0.9], "roughness": 0.1, "material": "Mirror"},
            },
        ],
        "lights": [
            {"geometry": {"center": [0, 4, 5], "radius": 0.5}, "emission": [8, 4, 2]},
        ],
    }


class TestParseScene:
    def test_objects_and_lights(self):
        description = parse_scene(_document())
        scene = description.scene

        assert len(scene) == 3
        assert scene.background == (0.68, 0.87, 0.96)
        assert [o.material.kind for o in scene] == [
            MaterialKind.LAMBERT,
            MaterialKind.MIRROR,
            MaterialKind.LAMBERT,
        ]
        assert scene.objects[1].material.roughness == pytest.approx(0.1)
        # Both the self-luminous sphere and the light emit
        assert scene.lights == (0, 2)

    def test_light_becomes_normalised_emitter(self):
        light = parse_scene(_document()).scene.objects[2].material
        assert light.emittance == 8.0
        assert light.albedo == (1.0, 0.5, 0.25)
        assert light.emitted_color == (8.0, 4.0, 2.0)

    def test_camera(self):
        camera = parse_scene(_document()).camera
        assert camera.position == (0.0, 1.25, 0.0)
        assert camera.target == (0.0, 1.25, 5.0)
        assert camera.vfov == 60.0

    def test_defaults(self):
        description = parse_scene({})
        assert description.scene.is_empty
        assert description.scene.background == (0.0, 0.0, 0.0)
        assert description.camera.position == (0.0, 0.0, 0.0)
        assert description.camera.forward == pytest.approx((0.0, 0.0, 1.0))
        # Image plane of half-height 0.5 at unit distance
        assert description.camera.half_height == pytest.approx(0.5)
        assert DEFAULT_CAMERA_FOV == pytest.approx(math.degrees(2.0 * math.atan(0.5)))

    def test_camera_without_target_looks_down_z(self):
        camera = parse_scene({"camera": {"position": [1, 2, 3]}}).camera
        assert camera.target == (1.0, 2.0, 4.0)

    def test_material_defaults_to_lambert(self):
        document = {"objects": [{"geometry": {"center": [0, 0, 5], "radius": 1}}]}
        material = parse_scene(document).scene.objects[0].material
        assert material.kind == MaterialKind.LAMBERT
        assert material.emittance == 0.0

    @pytest.mark.parametrize(
        "document,message",
        [
            ({"objects": {}}, "'objects' must be a list"),
            ({"lights": "sun"}, "'lights' must be a list"),
            ({"background": [0, 0]}, "background"),
            ({"objects": [{"geometry": {"center": [0, 0, 5]}}]}, "radius"),
            ({"objects": [{"geometry": {"center": [0, 0, 5], "radius": 0}}]}, "radius"),
            ({"objects": [{"geometry": {"center": [0, 0, 5], "radius": "big"}}]}, "radius"),
            ({"objects": [{"geometry": {"center": [0, "x", 5], "radius": 1}}]}, "center"),
            ({"objects": ["sphere"]}, r"objects\[0\]"),
            (
                {"objects": [{"geometry": {"center": [0, 0, 5], "radius": 1}, "material": {"material": "Velvet"}}]},
                "Velvet",
            ),
            (
                {"objects": [{"geometry": {"center": [0, 0, 5], "radius": 1}, "material": {"albedo": [2, 0, 0]}}]},
                "albedo",
            ),
            ({"lights": [{"geometry": {"center": [0, 3, 5], "radius": 1}, "emission": [0, 0, 0]}]}, "emission"),
            ({"camera": {"position": [0, 0, 0], "target": [0, 0, 0]}}, "differ"),
            ({"camera": {"fov": 0}}, "fov"),
        ],
    )
    def test_invalid_documents(self, document, message):
        with pytest.raises(SceneValidationError, match=message):
            parse_scene(document)

    def test_rejects_non_mapping(self):
        with pytest.raises(SceneValidationError):
            parse_scene([1, 2, 3])


class TestFiles:
    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SceneValidationError, match="invalid JSON"):
            load_scene(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_scene(tmp_path / "missing.json")

    def test_save_and_load_round_trip(self, tmp_path):
        description = get_preset("spheres")
        path = tmp_path / "spheres.json"
        save_scene(description.scene, description.camera, path)

        loaded = load_scene(path)
        assert loaded.scene == description.scene
        assert loaded.camera.position == description.camera.position
        assert loaded.camera.target == description.camera.target
        assert loaded.camera.vfov == description.camera.vfov

    def test_scene_to_dict_is_json_serialisable(self):
        description = parse_scene(_document())
        data = scene_to_dict(description.scene, description.camera)
        assert json.loads(json.dumps(data)) == data
        assert len(data["objects"]) == 3
        assert data["lights"] == []

    @pytest.mark.parametrize("name", ["single_sphere.json", "demo.json"])
    def test_shipped_scenes_load(self, name):
        description = load_scene(SCENES_DIR / name)
        assert not description.scene.is_empty
        assert description.scene.lights

    def test_single_sphere_file_matches_preset(self):
        from_file = load_scene(SCENES_DIR / "single_sphere.json")
        assert from_file.scene == get_preset("single_sphere").scene
